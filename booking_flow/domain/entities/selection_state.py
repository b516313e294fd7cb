from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.slot import Slot


class FlowStatus(str, Enum):
    empty = "empty"
    provider_chosen = "provider_chosen"
    date_chosen = "date_chosen"
    slot_chosen = "slot_chosen"
    submitting = "submitting"
    submitted = "submitted"
    failed = "failed"


class AvailabilityStatus(str, Enum):
    pending = "pending"  # fetch issued, no matching response yet
    ready = "ready"
    unavailable = "unavailable"  # last fetch failed; slots unknown


@dataclass(frozen=True)
class Selection:
    date: date
    provider: Provider | None = None
    hour: int | None = None


@dataclass(frozen=True)
class FetchTicket:
    generation: int
    provider_id: str
    date: date


@dataclass(frozen=True)
class SelectionSnapshot:
    selection: Selection
    status: FlowStatus
    availability: AvailabilityStatus
    slots: tuple[Slot, ...]
    submittable: bool
    last_error: str | None = None  # "conflict", "unreachable", "rejected", "stale_selection"
