"""
Tests for the booking flow: fetch, derive, select and submit against in-memory backends.
"""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from booking_flow.application.exceptions import BookingRejected, RemoteUnavailable, Unreachable
from booking_flow.application.ports.availability import AvailabilityPort
from booking_flow.application.ports.booking import BookingPort
from booking_flow.application.use_cases.booking import BookingFlowUseCase
from booking_flow.application.use_cases.fetch_availability import AvailabilityFetcher
from booking_flow.application.use_cases.submit_booking import BookingSubmitter
from booking_flow.domain.entities.appointment import BookingRequest, ConfirmedAppointment
from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.selection_state import AvailabilityStatus, FlowStatus
from booking_flow.domain.entities.session import SessionContext
from booking_flow.infrastructure.mock.mock_backend import MockBookingBackend

TZ = ZoneInfo("America/Sao_Paulo")
TODAY = date(2026, 10, 17)
TOMORROW = date(2026, 10, 18)
NOW = datetime(2026, 10, 17, 14, 0, tzinfo=TZ)
SESSION = SessionContext(token="token-123", user_id="user-1")

P1 = Provider(id="provider-1", name="Diego Fernandes")
P2 = Provider(id="provider-2", name="Mayk Brito")


class CountingAvailability(AvailabilityPort):
    def __init__(self, inner: AvailabilityPort) -> None:
        self.inner = inner
        self.calls: list[tuple[str, date]] = []
        self.sessions: list[SessionContext] = []

    def get_occupied_hours(self, provider_id, day, session):
        self.calls.append((provider_id, day))
        self.sessions.append(session)
        return self.inner.get_occupied_hours(provider_id, day, session)


class RecordingBooking(BookingPort):
    def __init__(self, inner: BookingPort, failures: list[Exception] | None = None) -> None:
        self.inner = inner
        self.failures = list(failures or [])
        self.requests: list[BookingRequest] = []

    def create_appointment(self, request, session):
        self.requests.append(request)
        if self.failures:
            raise self.failures.pop(0)
        return self.inner.create_appointment(request, session)


class DownAvailability(AvailabilityPort):
    def get_occupied_hours(self, provider_id, day, session):
        raise RemoteUnavailable("connection refused")


def _flow(
    backend: MockBookingBackend | None = None,
    availability: AvailabilityPort | None = None,
    booking: BookingPort | None = None,
    provider: Provider | None = None,
) -> BookingFlowUseCase:
    backend = backend or MockBookingBackend(timezone=TZ)
    return BookingFlowUseCase(
        fetcher=AvailabilityFetcher(source=availability or backend),
        submitter=BookingSubmitter(backend=booking or backend),
        session=SESSION,
        timezone=TZ,
        clock=lambda: NOW,
        provider=provider,
    )


def test_provider_preselected_fetches_today():
    backend = MockBookingBackend(timezone=TZ)
    backend.occupy("provider-1", TODAY, 15)
    availability = CountingAvailability(backend)

    flow = _flow(backend, availability=availability, provider=P1)
    snapshot = flow.snapshot()

    assert availability.calls == [("provider-1", TODAY)]
    assert snapshot.availability is AvailabilityStatus.ready
    assert [s.hour for s in snapshot.slots if s.available] == [16, 17]


def test_session_is_passed_to_availability_source():
    backend = MockBookingBackend(timezone=TZ)
    availability = CountingAvailability(backend)
    _flow(backend, availability=availability, provider=P1)

    assert availability.sessions == [SESSION]


def test_date_change_refetches_and_rederives():
    backend = MockBookingBackend(timezone=TZ)
    availability = CountingAvailability(backend)
    flow = _flow(backend, availability=availability, provider=P1)

    snapshot = flow.select_date(TOMORROW)

    assert availability.calls[-1] == ("provider-1", TOMORROW)
    assert all(slot.available for slot in snapshot.slots)
    assert len(snapshot.slots) == 9


def test_date_without_provider_does_not_fetch():
    backend = MockBookingBackend(timezone=TZ)
    availability = CountingAvailability(backend)
    flow = _flow(backend, availability=availability)

    flow.select_date(TOMORROW)

    assert availability.calls == []
    assert flow.snapshot().status is FlowStatus.empty


def test_late_response_for_previous_date_is_discarded():
    """A date change made while the first fetch is in flight wins."""
    backend = MockBookingBackend(timezone=TZ)
    backend.occupy("provider-1", TODAY, 8, 9, 10, 11, 13, 14, 15, 16, 17)

    class InterleavingAvailability(AvailabilityPort):
        def __init__(self) -> None:
            self.flow: BookingFlowUseCase | None = None
            self.days: list[date] = []

        def get_occupied_hours(self, provider_id, day, session):
            self.days.append(day)
            if len(self.days) == 1:
                # user picks another day before this answer lands
                self.flow.select_date(date(2026, 10, 19))
            return backend.get_occupied_hours(provider_id, day, session)

    availability = InterleavingAvailability()
    flow = _flow(backend, availability=availability)
    availability.flow = flow

    flow.select_provider(P1)
    snapshot = flow.snapshot()

    assert availability.days == [TODAY, date(2026, 10, 19)]
    assert snapshot.selection.date == date(2026, 10, 19)
    assert all(slot.available for slot in snapshot.slots)


def test_remote_unavailable_leaves_slots_unknown():
    flow = _flow(availability=DownAvailability(), provider=P1)
    snapshot = flow.snapshot()

    assert snapshot.availability is AvailabilityStatus.unavailable
    assert snapshot.slots == ()
    assert flow.select_hour(16) is False
    assert snapshot.submittable is False


def test_refresh_recovers_after_remote_unavailable():
    backend = MockBookingBackend(timezone=TZ)

    class RecoveringAvailability(AvailabilityPort):
        def __init__(self) -> None:
            self.down = True

        def get_occupied_hours(self, provider_id, day, session):
            if self.down:
                raise RemoteUnavailable("timeout")
            return backend.get_occupied_hours(provider_id, day, session)

    availability = RecoveringAvailability()
    flow = _flow(backend, availability=availability, provider=P1)
    assert flow.snapshot().availability is AvailabilityStatus.unavailable

    availability.down = False
    snapshot = flow.refresh_availability()

    assert snapshot.availability is AvailabilityStatus.ready
    assert flow.select_hour(16) is True


def test_submit_books_and_describes_appointment():
    backend = MockBookingBackend(timezone=TZ)
    flow = _flow(backend, provider=P1)
    flow.select_date(TOMORROW)
    assert flow.select_hour(10)

    result = flow.submit()

    assert result.action == "booked"
    assert result.appointment is not None
    assert result.appointment.date == datetime(2026, 10, 18, 10, 0, tzinfo=TZ)
    assert result.description == "domingo, 18 de outubro de 2026, às 10:00h"
    assert result.snapshot.status is FlowStatus.submitted
    assert backend.get_occupied_hours("provider-1", TOMORROW, SESSION) == {10}


def test_stale_selection_rejected_without_remote_call():
    """Hour 10 vanished from the latest slots: no booking call is made."""
    backend = MockBookingBackend(timezone=TZ)
    booking = RecordingBooking(backend)
    flow = _flow(backend, booking=booking, provider=P1)
    flow.select_date(TOMORROW)
    flow.select_hour(10)

    backend.occupy("provider-1", TOMORROW, 10)
    flow.refresh_availability()
    result = flow.submit()

    assert result.action == "stale_selection"
    assert booking.requests == []
    assert result.snapshot.selection.hour is None
    assert result.snapshot.last_error == "stale_selection"
    assert result.snapshot.status is FlowStatus.date_chosen


def test_conflict_fails_clears_hour_and_refetches():
    backend = MockBookingBackend(timezone=TZ)
    availability = CountingAvailability(backend)
    flow = _flow(backend, availability=availability, provider=P1)
    flow.select_date(TOMORROW)
    flow.select_hour(10)
    calls_before = len(availability.calls)

    # another client books 10:00 between our derivation and submission
    backend.occupy("provider-1", TOMORROW, 10)
    result = flow.submit()

    assert result.action == "conflict"
    assert result.snapshot.status is FlowStatus.failed
    assert result.snapshot.last_error == "conflict"
    assert result.snapshot.selection.hour is None
    assert len(availability.calls) == calls_before + 1
    slot_10 = next(s for s in result.snapshot.slots if s.hour == 10)
    assert slot_10.available is False


def test_unreachable_can_be_retried_verbatim():
    backend = MockBookingBackend(timezone=TZ)
    booking = RecordingBooking(backend, failures=[Unreachable("read timeout")])
    flow = _flow(backend, booking=booking, provider=P1)
    flow.select_date(TOMORROW)
    flow.select_hour(11)

    first = flow.submit()
    assert first.action == "unreachable"
    assert first.snapshot.status is FlowStatus.failed
    assert first.snapshot.submittable is True

    second = flow.submit()
    assert second.action == "booked"
    assert booking.requests[0] == booking.requests[1]


def test_rejected_booking_is_reported():
    backend = MockBookingBackend(timezone=TZ)
    booking = RecordingBooking(backend, failures=[BookingRejected("Token expired")])
    flow = _flow(backend, booking=booking, provider=P1)
    flow.select_date(TOMORROW)
    flow.select_hour(11)

    result = flow.submit()

    assert result.action == "rejected"
    assert result.error == "Token expired"
    assert result.snapshot.selection.hour == 11


def test_unexpected_backend_error_does_not_strand_the_flow():
    backend = MockBookingBackend(timezone=TZ)
    booking = RecordingBooking(backend, failures=[KeyError("id")])
    flow = _flow(backend, booking=booking, provider=P1)
    flow.select_date(TOMORROW)
    flow.select_hour(11)

    result = flow.submit()

    assert result.action == "unreachable"
    assert result.snapshot.status is FlowStatus.failed
    assert result.snapshot.selection.hour == 11
    assert flow.select_hour(13) is True
    assert flow.submit().action == "booked"


def test_submit_without_hour_is_incomplete():
    flow = _flow(provider=P1)
    result = flow.submit()
    assert result.action == "incomplete"


def test_changes_during_submission_are_rejected():
    backend = MockBookingBackend(timezone=TZ)
    seen: dict[str, object] = {}

    class InspectingBooking(BookingPort):
        def __init__(self) -> None:
            self.flow: BookingFlowUseCase | None = None

        def create_appointment(self, request, session) -> ConfirmedAppointment:
            seen["status"] = self.flow.state.status
            seen["provider_accepted"] = self.flow.state.select_provider(P2)
            seen["hour_accepted"] = self.flow.select_hour(13)
            seen["resubmit"] = self.flow.submit().action
            return backend.create_appointment(request, session)

    booking = InspectingBooking()
    flow = _flow(backend, booking=booking, provider=P1)
    booking.flow = flow
    flow.select_date(TOMORROW)
    flow.select_hour(9)

    result = flow.submit()

    assert seen == {
        "status": FlowStatus.submitting,
        "provider_accepted": False,
        "hour_accepted": False,
        "resubmit": "busy",
    }
    assert result.action == "booked"
    assert result.snapshot.selection.provider == P1
    assert result.snapshot.selection.hour == 9


def test_submitted_flow_rejects_further_changes():
    flow = _flow(provider=P1)
    flow.select_date(TOMORROW)
    flow.select_hour(9)
    flow.submit()

    snapshot = flow.select_provider(P2)

    assert snapshot.selection.provider == P1
    assert flow.submit().action == "busy"


def test_fetcher_drops_out_of_range_hours():
    class NoisyAvailability(AvailabilityPort):
        def get_occupied_hours(self, provider_id, day, session):
            return {9, 24, -1}

    fetcher = AvailabilityFetcher(source=NoisyAvailability())
    assert fetcher.fetch("provider-1", TOMORROW, SESSION) == frozenset({9})
