from __future__ import annotations

import logging
from datetime import date, datetime, timezone, tzinfo

from booking_flow.application.exceptions import Conflict
from booking_flow.application.ports.availability import AvailabilityPort
from booking_flow.application.ports.booking import BookingPort
from booking_flow.application.ports.provider_directory import ProviderDirectoryPort
from booking_flow.domain.entities.appointment import BookingRequest, ConfirmedAppointment
from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.session import SessionContext

DEFAULT_PROVIDERS = (
    Provider(id="provider-1", name="Diego Fernandes", avatar_url=None),
    Provider(id="provider-2", name="Mayk Brito", avatar_url=None),
    Provider(id="provider-3", name="Robson Marques", avatar_url=None),
)


class MockBookingBackend(AvailabilityPort, BookingPort, ProviderDirectoryPort):
    """In-memory stand-in for the booking API, used in dev and tests."""

    def __init__(
        self,
        timezone: tzinfo,
        providers: tuple[Provider, ...] | list[Provider] = DEFAULT_PROVIDERS,
    ) -> None:
        self._timezone = timezone
        self._providers = list(providers)
        self._booked: dict[tuple[str, date], set[int]] = {}
        self._appointments: dict[str, ConfirmedAppointment] = {}
        self._logger = logging.getLogger(__name__)

    def list_providers(self, session: SessionContext) -> list[Provider]:
        return list(self._providers)

    def get_occupied_hours(self, provider_id: str, day: date, session: SessionContext) -> set[int]:
        return set(self._booked.get((provider_id, day), set()))

    def occupy(self, provider_id: str, day: date, *hours: int) -> None:
        self._booked.setdefault((provider_id, day), set()).update(hours)

    def create_appointment(self, request: BookingRequest, session: SessionContext) -> ConfirmedAppointment:
        taken = self._booked.setdefault((request.provider_id, request.date), set())
        if request.hour in taken:
            raise Conflict("This appointment is already booked")
        taken.add(request.hour)

        appointment = ConfirmedAppointment(
            id=f"mock_appointment_{len(self._appointments) + 1}",
            provider_id=request.provider_id,
            date=request.starts_at(self._timezone),
            created_at=datetime.now(timezone.utc),
        )
        self._appointments[appointment.id] = appointment
        self._logger.info(
            "Mock appointment created",
            extra={
                "provider_id": request.provider_id,
                "date": request.date.isoformat(),
                "hour": request.hour,
            },
        )
        return appointment
