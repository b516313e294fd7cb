from __future__ import annotations

from abc import ABC, abstractmethod

from booking_flow.domain.entities.appointment import BookingRequest, ConfirmedAppointment
from booking_flow.domain.entities.session import SessionContext


class BookingPort(ABC):
    @abstractmethod
    def create_appointment(self, request: BookingRequest, session: SessionContext) -> ConfirmedAppointment:
        """
        Create an appointment on the remote booking service.

        Raises:
            Conflict: the slot was booked by someone else first
            Unreachable: network errors, timeouts or server failures
            BookingRejected: any other refusal from the service
        """
        raise NotImplementedError
