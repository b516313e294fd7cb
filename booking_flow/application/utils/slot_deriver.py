from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, tzinfo

from booking_flow.domain.entities.slot import DEFAULT_GRID, Slot, SlotGrid


def format_hour_label(hour: int) -> str:
    return f"{hour:02d}:00"


def derive_slots(
    day: date,
    occupied: Iterable[int],
    now: datetime,
    grid: SlotGrid = DEFAULT_GRID,
    tz: tzinfo | None = None,
) -> tuple[Slot, ...]:
    """
    Build the full day of bookable slots for one provider.

    A slot is available when its hour is not occupied and its start instant
    (day + hour, in `tz` or in `now`'s timezone) is strictly after `now`.
    Morning hours come first, then afternoon hours, both ascending.
    """
    taken = frozenset(occupied)
    zone = tz if tz is not None else now.tzinfo

    slots: list[Slot] = []
    for hour in grid.hours:
        starts_at = datetime.combine(day, time(hour=hour), tzinfo=zone)
        slots.append(
            Slot(
                hour=hour,
                label=format_hour_label(hour),
                available=hour not in taken and starts_at > now,
            )
        )
    return tuple(slots)


def split_periods(
    slots: Iterable[Slot], grid: SlotGrid = DEFAULT_GRID
) -> tuple[tuple[Slot, ...], tuple[Slot, ...]]:
    """Split derived slots into (morning, afternoon) by the grid's morning hours."""
    morning_hours = set(grid.morning_hours)
    morning: list[Slot] = []
    afternoon: list[Slot] = []
    for slot in slots:
        if slot.hour in morning_hours:
            morning.append(slot)
        else:
            afternoon.append(slot)
    return tuple(morning), tuple(afternoon)


def find_slot(slots: Iterable[Slot], hour: int) -> Slot | None:
    for slot in slots:
        if slot.hour == hour:
            return slot
    return None
