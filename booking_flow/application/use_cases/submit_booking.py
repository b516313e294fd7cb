from __future__ import annotations

import logging

from booking_flow.application.exceptions import SubmissionError
from booking_flow.application.ports.booking import BookingPort
from booking_flow.domain.entities.appointment import BookingRequest, ConfirmedAppointment
from booking_flow.domain.entities.session import SessionContext


class BookingSubmitter:
    """
    Send a finalized booking request to the remote service.

    Availability is not re-checked here; the caller verifies the selection
    right before submitting and the remote service arbitrates concurrent
    bookings, reporting them as Conflict.
    """

    def __init__(self, backend: BookingPort) -> None:
        self._backend = backend
        self._logger = logging.getLogger(__name__)

    def submit(self, request: BookingRequest, session: SessionContext) -> ConfirmedAppointment:
        try:
            appointment = self._backend.create_appointment(request, session)
        except SubmissionError as e:
            self._logger.warning(
                "Booking submission failed",
                extra={
                    "provider_id": request.provider_id,
                    "date": request.date.isoformat(),
                    "hour": request.hour,
                    "reason": e.reason,
                    "error": str(e),
                },
            )
            raise

        self._logger.info(
            "Booking confirmed",
            extra={"provider_id": request.provider_id, "date": request.date.isoformat(), "hour": request.hour},
        )
        return appointment
