from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_flow.core.config import settings
from booking_flow.domain.entities.session import SessionContext


class BookingApiClient:
    """Thin httpx wrapper around the booking backend REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._client = client or httpx.Client(timeout=timeout or settings.API_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    def get(self, path: str, session: SessionContext, params: dict[str, Any] | None = None) -> httpx.Response:
        return self._client.get(self._url(path), params=params, headers=session.auth_headers())

    def post(self, path: str, session: SessionContext, payload: dict[str, Any]) -> httpx.Response:
        headers = {**session.auth_headers(), "Content-Type": "application/json"}
        return self._client.post(self._url(path), json=payload, headers=headers)

    def log_error_response(self, resp: httpx.Response, operation: str) -> str:
        """Log a failed response and return the server's error message."""
        error_message = resp.text
        try:
            error_json = resp.json()
            if isinstance(error_json, dict):
                error_message = str(error_json.get("message") or error_json.get("error") or resp.text)
        except ValueError:
            pass

        self._logger.error(
            "Booking API request failed",
            extra={
                "operation": operation,
                "status": resp.status_code,
                "error": error_message,
            },
        )
        return error_message

    def close(self) -> None:
        self._client.close()

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"
