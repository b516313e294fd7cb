from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from booking_flow.application.exceptions import (
    Conflict,
    IncompleteSelection,
    SelectionLocked,
    StaleSelection,
    SubmissionError,
)
from booking_flow.application.utils.slot_deriver import find_slot
from booking_flow.domain.entities.appointment import BookingRequest, ConfirmedAppointment
from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.selection_state import (
    AvailabilityStatus,
    FetchTicket,
    FlowStatus,
    Selection,
    SelectionSnapshot,
)
from booking_flow.domain.entities.slot import Slot

_LOCKED = (FlowStatus.submitting, FlowStatus.submitted)


class SelectionState:
    """
    Provider, date and hour chosen for one booking attempt.

    Every pick replaces one field of an immutable Selection. Changing the
    provider or the date clears the hour and starts a new fetch generation,
    so availability responses issued for an older pair are discarded.
    While a submission is in flight (and after it succeeded) every mutation
    is rejected.
    """

    def __init__(self, today: date, provider: Provider | None = None) -> None:
        self._selection = Selection(date=today, provider=provider)
        self._date_picked = False
        self._slots: tuple[Slot, ...] = ()
        self._availability = AvailabilityStatus.pending
        self._generation = 0
        self._last_error: str | None = None
        self._status = self._upstream_status()
        self._logger = logging.getLogger(__name__)

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def status(self) -> FlowStatus:
        return self._status

    @property
    def slots(self) -> tuple[Slot, ...]:
        return self._slots

    @property
    def availability(self) -> AvailabilityStatus:
        return self._availability

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def select_provider(self, provider: Provider) -> bool:
        if self._reject_if_locked("provider"):
            return False
        self._selection = replace(self._selection, provider=provider, hour=None)
        self._invalidate_slots()
        self._last_error = None
        self._status = self._upstream_status()
        return True

    def select_date(self, day: date) -> bool:
        if self._reject_if_locked("date"):
            return False
        self._selection = replace(self._selection, date=day, hour=None)
        self._date_picked = True
        self._invalidate_slots()
        self._last_error = None
        self._status = self._upstream_status()
        return True

    def select_hour(self, hour: int) -> bool:
        if self._reject_if_locked("hour"):
            return False
        if self._selection.provider is None or not self._is_available(hour):
            self._logger.debug("Ignoring pick of unavailable hour", extra={"hour": hour})
            return False
        self._selection = replace(self._selection, hour=hour)
        self._last_error = None
        self._status = FlowStatus.slot_chosen
        return True

    def is_submittable(self) -> bool:
        if self._status in _LOCKED:
            return False
        if self._selection.provider is None or self._selection.hour is None:
            return False
        return self._is_available(self._selection.hour)

    def begin_fetch(self) -> FetchTicket:
        """Start a fetch for the current pair; any earlier ticket becomes stale."""
        provider = self._selection.provider
        if provider is None:
            raise IncompleteSelection("A provider must be selected before fetching availability")
        self._generation += 1
        self._availability = AvailabilityStatus.pending
        return FetchTicket(generation=self._generation, provider_id=provider.id, date=self._selection.date)

    def apply_slots(self, ticket: FetchTicket, slots: Iterable[Slot]) -> bool:
        if not self._is_current(ticket):
            self._logger.debug(
                "Discarding stale availability",
                extra={"generation": ticket.generation, "provider_id": ticket.provider_id, "date": ticket.date},
            )
            return False
        self._slots = tuple(slots)
        self._availability = AvailabilityStatus.ready
        return True

    def fail_fetch(self, ticket: FetchTicket) -> bool:
        if not self._is_current(ticket):
            return False
        self._slots = ()
        self._availability = AvailabilityStatus.unavailable
        return True

    def begin_submission(self) -> BookingRequest:
        if self._status in _LOCKED:
            raise SelectionLocked(f"Cannot submit while {self._status.value}")
        provider = self._selection.provider
        hour = self._selection.hour
        if provider is None or hour is None:
            raise IncompleteSelection("Provider and hour are required to book")
        if not self._is_available(hour):
            raise StaleSelection(f"Hour {hour} is no longer available")

        self._status = FlowStatus.submitting
        self._last_error = None
        return BookingRequest(provider_id=provider.id, date=self._selection.date, hour=hour)

    def complete_submission(self, appointment: ConfirmedAppointment) -> None:
        if self._status is not FlowStatus.submitting:
            raise SelectionLocked("No submission in flight")
        self._status = FlowStatus.submitted
        self._logger.info(
            "Booking submitted",
            extra={"provider_id": appointment.provider_id, "status": self._status.value},
        )

    def fail_submission(self, error: SubmissionError) -> None:
        if self._status is not FlowStatus.submitting:
            raise SelectionLocked("No submission in flight")
        if isinstance(error, Conflict):
            self._selection = replace(self._selection, hour=None)
        self._status = FlowStatus.failed
        self._last_error = error.reason

    def drop_stale_hour(self) -> None:
        """Clear an hour that vanished from the current slots."""
        if self._status in _LOCKED:
            return
        self._selection = replace(self._selection, hour=None)
        self._last_error = "stale_selection"
        self._status = self._upstream_status()

    def snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot(
            selection=self._selection,
            status=self._status,
            availability=self._availability,
            slots=self._slots,
            submittable=self.is_submittable(),
            last_error=self._last_error,
        )

    def _is_current(self, ticket: FetchTicket) -> bool:
        provider = self._selection.provider
        return (
            ticket.generation == self._generation
            and provider is not None
            and ticket.provider_id == provider.id
            and ticket.date == self._selection.date
        )

    def _is_available(self, hour: int) -> bool:
        slot = find_slot(self._slots, hour)
        return slot is not None and slot.available

    def _invalidate_slots(self) -> None:
        self._generation += 1
        self._slots = ()
        self._availability = AvailabilityStatus.pending

    def _upstream_status(self) -> FlowStatus:
        if self._selection.provider is None:
            return FlowStatus.empty
        if self._date_picked:
            return FlowStatus.date_chosen
        return FlowStatus.provider_chosen

    def _reject_if_locked(self, field: str) -> bool:
        if self._status not in _LOCKED:
            return False
        self._logger.warning(
            "Selection change rejected",
            extra={"reason": f"{field} change while {self._status.value}", "status": self._status.value},
        )
        return True
