from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from booking_flow.application.use_cases.booking import BookingFlowUseCase


class FlowStorePort(ABC):
    @abstractmethod
    def create(self, flow: "BookingFlowUseCase") -> str:
        """Store a new booking flow. Returns flow_id."""
        raise NotImplementedError

    @abstractmethod
    def get(self, flow_id: str) -> "BookingFlowUseCase | None":
        raise NotImplementedError

    @abstractmethod
    def try_acquire(self, flow_id: str) -> bool:
        """Take the flow's exclusive lock without waiting. Returns False if it is held."""
        raise NotImplementedError

    @abstractmethod
    def release(self, flow_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def discard(self, flow_id: str) -> bool:
        """Drop a flow. Returns True if it existed."""
        raise NotImplementedError
