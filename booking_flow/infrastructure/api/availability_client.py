from __future__ import annotations

import logging
from datetime import date

import httpx

from booking_flow.application.exceptions import RemoteUnavailable
from booking_flow.application.ports.availability import AvailabilityPort
from booking_flow.domain.entities.session import SessionContext
from booking_flow.infrastructure.api.api_client import BookingApiClient


class HttpAvailability(AvailabilityPort):
    def __init__(self, client: BookingApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def get_occupied_hours(self, provider_id: str, day: date, session: SessionContext) -> set[int]:
        params = {"year": day.year, "month": day.month, "day": day.day}
        try:
            resp = self._client.get(f"/providers/{provider_id}/day-availability", session, params=params)
        except httpx.HTTPError as e:
            self._logger.error(
                "Error fetching day availability",
                extra={"provider_id": provider_id, "date": day.isoformat(), "error": str(e)},
            )
            raise RemoteUnavailable(f"Availability request failed: {e}") from e

        if resp.status_code >= 400:
            message = self._client.log_error_response(resp, "day_availability")
            raise RemoteUnavailable(f"Availability request returned {resp.status_code}: {message}")

        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteUnavailable("Availability response is not JSON") from e

        if not isinstance(data, list):
            raise RemoteUnavailable("Availability response must be a list")

        occupied: set[int] = set()
        for item in data:
            try:
                hour = int(item["hour"])
                available = item["available"]
            except (KeyError, TypeError, ValueError):
                continue
            if not isinstance(available, bool):
                self._logger.error(
                    "Unreadable availability flag",
                    extra={"provider_id": provider_id, "date": day.isoformat(), "hour": hour},
                )
                raise RemoteUnavailable(f"Availability flag for hour {hour} is not a boolean: {available!r}")
            if not available:
                occupied.add(hour)
        return occupied
