from __future__ import annotations

import logging
from datetime import date

from booking_flow.application.ports.availability import AvailabilityPort
from booking_flow.domain.entities.session import SessionContext


class AvailabilityFetcher:
    def __init__(self, source: AvailabilityPort) -> None:
        self._source = source
        self._logger = logging.getLogger(__name__)

    def fetch(self, provider_id: str, day: date, session: SessionContext) -> frozenset[int]:
        """Occupied hours for one provider and day. Raises RemoteUnavailable on failure."""
        if not provider_id or not provider_id.strip():
            raise ValueError("provider_id is required")

        hours = self._source.get_occupied_hours(provider_id, day, session)

        occupied: set[int] = set()
        for hour in hours:
            if isinstance(hour, int) and 0 <= hour <= 23:
                occupied.add(hour)
            else:
                self._logger.warning(
                    "Dropping out-of-range occupied hour",
                    extra={"provider_id": provider_id, "date": day.isoformat(), "hour": hour},
                )

        self._logger.debug(
            "Availability fetched",
            extra={"provider_id": provider_id, "date": day.isoformat(), "occupied": sorted(occupied)},
        )
        return frozenset(occupied)
