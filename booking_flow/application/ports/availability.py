from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from booking_flow.domain.entities.session import SessionContext


class AvailabilityPort(ABC):
    @abstractmethod
    def get_occupied_hours(self, provider_id: str, day: date, session: SessionContext) -> set[int]:
        """
        Return the hours already booked for a provider on one day.

        Requirements:
        - Past days are legal to query
        - Return an empty set when nothing is booked
        - Raise RemoteUnavailable on network errors, timeouts or unreadable payloads
        """
        raise NotImplementedError
