from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Slot:
    hour: int
    label: str  # "HH:00"
    available: bool


@dataclass(frozen=True)
class SlotGrid:
    """Inclusive hour bounds of the bookable morning and afternoon blocks."""

    morning_start: int = 8
    morning_end: int = 11
    afternoon_start: int = 13
    afternoon_end: int = 17

    def __post_init__(self) -> None:
        if not (0 <= self.morning_start <= self.morning_end < self.afternoon_start <= self.afternoon_end <= 23):
            raise ValueError(
                "Slot grid must satisfy 0 <= morning_start <= morning_end < afternoon_start <= afternoon_end <= 23"
            )

    @property
    def morning_hours(self) -> tuple[int, ...]:
        return tuple(range(self.morning_start, self.morning_end + 1))

    @property
    def afternoon_hours(self) -> tuple[int, ...]:
        return tuple(range(self.afternoon_start, self.afternoon_end + 1))

    @property
    def hours(self) -> tuple[int, ...]:
        return self.morning_hours + self.afternoon_hours


DEFAULT_GRID = SlotGrid()
