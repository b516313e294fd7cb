class RemoteUnavailable(RuntimeError):
    """Raised when an availability or provider query fails (network errors, timeouts, bad payloads)."""
    pass


class StaleSelection(RuntimeError):
    """Raised when the selected hour is no longer available in the freshest slot list."""
    pass


class IncompleteSelection(RuntimeError):
    """Raised when a submission is attempted without a provider or an hour."""
    pass


class SelectionLocked(RuntimeError):
    """Raised when a submission is attempted while another is in flight or after success."""
    pass


class SubmissionError(RuntimeError):
    """Base class for booking submission failures."""

    reason = "error"


class Conflict(SubmissionError):
    """Raised when the remote rejects a booking because the slot was taken concurrently."""

    reason = "conflict"


class Unreachable(SubmissionError):
    """Raised when the booking service cannot be reached (network errors, timeouts, 5xx)."""

    reason = "unreachable"


class BookingRejected(SubmissionError):
    """Raised when the remote refuses a booking for a reason other than a conflict."""

    reason = "rejected"
