from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable

from booking_flow.application.ports.flow_store import FlowStorePort
from booking_flow.application.use_cases.booking import BookingFlowUseCase


class MemoryFlowStore(FlowStorePort):
    """
    In-process flow store.

    Flows idle for longer than `idle_ttl_seconds` are dropped, and once
    `flow_limit` flows are held the least recently used idle ones make room
    for new ones. A flow whose lock is held is never evicted.
    """

    def __init__(
        self,
        flow_limit: int = 1000,
        idle_ttl_seconds: float = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._flows: dict[str, BookingFlowUseCase] = {}
        self._busy: dict[str, threading.Lock] = {}
        self._touched: dict[str, float] = {}
        self._flow_limit = flow_limit
        self._idle_ttl = idle_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def create(self, flow: BookingFlowUseCase) -> str:
        flow_id = uuid.uuid4().hex
        with self._lock:
            self._evict_locked()
            self._flows[flow_id] = flow
            self._busy[flow_id] = threading.Lock()
            self._touched[flow_id] = self._clock()
        return flow_id

    def get(self, flow_id: str) -> BookingFlowUseCase | None:
        with self._lock:
            flow = self._flows.get(flow_id)
            if flow is None:
                return None
            if self._is_expired(flow_id) and not self._busy[flow_id].locked():
                self._drop_locked(flow_id)
                return None
            self._touched[flow_id] = self._clock()
            return flow

    def try_acquire(self, flow_id: str) -> bool:
        with self._lock:
            busy = self._busy.get(flow_id)
        if busy is None:
            return False
        return busy.acquire(blocking=False)

    def release(self, flow_id: str) -> None:
        with self._lock:
            busy = self._busy.get(flow_id)
            if flow_id in self._touched:
                self._touched[flow_id] = self._clock()
        if busy is not None and busy.locked():
            busy.release()

    def discard(self, flow_id: str) -> bool:
        with self._lock:
            return self._drop_locked(flow_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._flows)

    def _is_expired(self, flow_id: str) -> bool:
        return self._clock() - self._touched[flow_id] > self._idle_ttl

    def _drop_locked(self, flow_id: str) -> bool:
        self._busy.pop(flow_id, None)
        self._touched.pop(flow_id, None)
        return self._flows.pop(flow_id, None) is not None

    def _evict_locked(self) -> None:
        idle = [flow_id for flow_id, busy in self._busy.items() if not busy.locked()]
        expired = [flow_id for flow_id in idle if self._is_expired(flow_id)]
        for flow_id in expired:
            self._drop_locked(flow_id)

        overflow = len(self._flows) - self._flow_limit + 1
        if overflow > 0:
            candidates = sorted(
                (flow_id for flow_id in idle if flow_id in self._flows),
                key=self._touched.__getitem__,
            )
            for flow_id in candidates[:overflow]:
                self._drop_locked(flow_id)
                self._logger.warning("Booking flow store full, evicted oldest flow", extra={"flow_id": flow_id})

        if expired:
            self._logger.info("Dropped %d idle booking flows", len(expired))
