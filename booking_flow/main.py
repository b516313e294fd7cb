import logging

from fastapi import FastAPI

from booking_flow.api.v1.booking_flows import router as booking_flows_router
from booking_flow.core.config import settings

# Record attributes passed through `extra=` that are worth seeing on a log line.
LOG_CONTEXT_FIELDS = ("flow_id", "provider_id", "date", "hour", "generation", "status", "reason", "error")


class ContextFormatter(logging.Formatter):
    """Appends booking context (`flow_id=... hour=...`) after the message."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{field}={getattr(record, field)}"
            for field in LOG_CONTEXT_FIELDS
            if getattr(record, field, None) not in (None, "")
        )
        return f"{line} | {context}" if context else line


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    level_value = logging.getLevelName(level.upper())
    root.setLevel(level_value if isinstance(level_value, int) else logging.INFO)


configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Appointment Booking Flow", version="1.0.0")
app.include_router(booking_flows_router, prefix="/api/v1", tags=["booking"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
