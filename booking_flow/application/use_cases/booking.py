from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo

from booking_flow.application.exceptions import (
    Conflict,
    IncompleteSelection,
    RemoteUnavailable,
    SelectionLocked,
    StaleSelection,
    SubmissionError,
    Unreachable,
)
from booking_flow.application.use_cases.fetch_availability import AvailabilityFetcher
from booking_flow.application.use_cases.selection import SelectionState
from booking_flow.application.use_cases.submit_booking import BookingSubmitter
from booking_flow.application.utils.appointment_format import format_appointment_date
from booking_flow.application.utils.slot_deriver import derive_slots
from booking_flow.domain.entities.appointment import ConfirmedAppointment
from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.selection_state import SelectionSnapshot
from booking_flow.domain.entities.session import SessionContext
from booking_flow.domain.entities.slot import DEFAULT_GRID, SlotGrid


@dataclass(frozen=True)
class BookingResult:
    action: str  # "booked", "conflict", "unreachable", "rejected", "stale_selection", "incomplete", "busy"
    snapshot: SelectionSnapshot
    appointment: ConfirmedAppointment | None = None
    description: str | None = None
    error: str | None = None


class BookingFlowUseCase:
    def __init__(
        self,
        fetcher: AvailabilityFetcher,
        submitter: BookingSubmitter,
        session: SessionContext,
        timezone: tzinfo,
        grid: SlotGrid = DEFAULT_GRID,
        clock: Callable[[], datetime] | None = None,
        language: str = "pt",
        provider: Provider | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._submitter = submitter
        self._session = session
        self._timezone = timezone
        self._grid = grid
        self._clock = clock or (lambda: datetime.now(timezone))
        self._language = language
        self._logger = logging.getLogger(__name__)

        self._state = SelectionState(today=self._now().date(), provider=provider)
        if provider is not None:
            self.refresh_availability()

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def grid(self) -> SlotGrid:
        return self._grid

    def snapshot(self) -> SelectionSnapshot:
        return self._state.snapshot()

    def select_provider(self, provider: Provider) -> SelectionSnapshot:
        if self._state.select_provider(provider):
            self.refresh_availability()
        return self._state.snapshot()

    def select_date(self, day: date) -> SelectionSnapshot:
        if self._state.select_date(day) and self._state.selection.provider is not None:
            self.refresh_availability()
        return self._state.snapshot()

    def select_hour(self, hour: int) -> bool:
        return self._state.select_hour(hour)

    def refresh_availability(self) -> SelectionSnapshot:
        """Fetch occupied hours for the current pair and re-derive the slots."""
        if self._state.selection.provider is None:
            return self._state.snapshot()

        ticket = self._state.begin_fetch()
        try:
            occupied = self._fetcher.fetch(ticket.provider_id, ticket.date, self._session)
        except RemoteUnavailable as e:
            self._logger.warning(
                "Availability unavailable",
                extra={
                    "provider_id": ticket.provider_id,
                    "date": ticket.date.isoformat(),
                    "generation": ticket.generation,
                    "error": str(e),
                },
            )
            self._state.fail_fetch(ticket)
            return self._state.snapshot()

        slots = derive_slots(ticket.date, occupied, self._now(), self._grid, self._timezone)
        self._state.apply_slots(ticket, slots)
        return self._state.snapshot()

    def submit(self) -> BookingResult:
        try:
            request = self._state.begin_submission()
        except SelectionLocked as e:
            return self._result("busy", error=str(e))
        except IncompleteSelection as e:
            return self._result("incomplete", error=str(e))
        except StaleSelection as e:
            self._logger.info("Stale selection dropped", extra={"reason": str(e)})
            self._state.drop_stale_hour()
            return self._result("stale_selection", error=str(e))

        try:
            appointment = self._submitter.submit(request, self._session)
        except SubmissionError as e:
            self._state.fail_submission(e)
            if isinstance(e, Conflict):
                self.refresh_availability()
            return self._result(e.reason, error=str(e))
        except Exception as e:
            self._logger.exception(
                "Unexpected booking failure",
                extra={"provider_id": request.provider_id, "date": request.date.isoformat(), "hour": request.hour},
            )
            failure = Unreachable(str(e) or type(e).__name__)
            self._state.fail_submission(failure)
            return self._result(failure.reason, error=str(failure))

        self._state.complete_submission(appointment)
        return self._result(
            "booked",
            appointment=appointment,
            description=format_appointment_date(appointment.date.astimezone(self._timezone), self._language),
        )

    def _result(
        self,
        action: str,
        appointment: ConfirmedAppointment | None = None,
        description: str | None = None,
        error: str | None = None,
    ) -> BookingResult:
        return BookingResult(
            action=action,
            snapshot=self._state.snapshot(),
            appointment=appointment,
            description=description,
            error=error,
        )

    def _now(self) -> datetime:
        return self._clock()
