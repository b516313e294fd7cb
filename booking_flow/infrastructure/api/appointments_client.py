from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo

import httpx

from booking_flow.application.exceptions import BookingRejected, Conflict, Unreachable
from booking_flow.application.ports.booking import BookingPort
from booking_flow.domain.entities.appointment import BookingRequest, ConfirmedAppointment
from booking_flow.domain.entities.session import SessionContext
from booking_flow.infrastructure.api.api_client import BookingApiClient

_CONFLICT_MARKERS = ("already booked", "already taken", "not available")


class HttpBooking(BookingPort):
    def __init__(self, client: BookingApiClient, timezone: tzinfo) -> None:
        self._client = client
        self._timezone = timezone
        self._logger = logging.getLogger(__name__)

    def create_appointment(self, request: BookingRequest, session: SessionContext) -> ConfirmedAppointment:
        starts_at = request.starts_at(self._timezone)
        payload = {"provider_id": request.provider_id, "date": starts_at.isoformat()}

        try:
            resp = self._client.post("/appointments", session, payload)
        except httpx.HTTPError as e:
            self._logger.error(
                "Error creating appointment",
                extra={"provider_id": request.provider_id, "error": str(e)},
            )
            raise Unreachable(f"Booking request failed: {e}") from e

        if resp.status_code >= 400:
            message = self._client.log_error_response(resp, "create_appointment")
            if resp.status_code == 409 or (
                resp.status_code == 400 and any(marker in message.lower() for marker in _CONFLICT_MARKERS)
            ):
                raise Conflict(message)
            if resp.status_code >= 500:
                raise Unreachable(f"Booking service returned {resp.status_code}: {message}")
            raise BookingRejected(message)

        try:
            data = resp.json()
            appointment_id = data.get("id")
            if not appointment_id:
                raise ValueError("No appointment ID returned")
            return ConfirmedAppointment(
                id=str(appointment_id),
                provider_id=str(data.get("provider_id") or request.provider_id),
                date=_parse_instant(data.get("date")) if data.get("date") else starts_at,
                created_at=_parse_instant(data["created_at"]) if data.get("created_at") else datetime.now(timezone.utc),
            )
        except (ValueError, AttributeError) as e:
            # The booking may exist even though the response is unreadable.
            self._logger.error(
                "Unreadable appointment response",
                extra={"provider_id": request.provider_id, "error": str(e)},
            )
            raise Unreachable(f"Unreadable booking response: {e}") from e


def _parse_instant(value: str) -> datetime:
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
