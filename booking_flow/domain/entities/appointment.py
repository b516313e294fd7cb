from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo


@dataclass(frozen=True)
class BookingRequest:
    provider_id: str
    date: date
    hour: int

    def starts_at(self, tz: tzinfo) -> datetime:
        return datetime.combine(self.date, time(hour=self.hour), tzinfo=tz)


@dataclass(frozen=True)
class ConfirmedAppointment:
    id: str
    provider_id: str
    date: datetime
    created_at: datetime  # assigned by the server
