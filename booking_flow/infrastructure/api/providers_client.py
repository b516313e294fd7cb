from __future__ import annotations

import httpx

from booking_flow.application.exceptions import RemoteUnavailable
from booking_flow.application.ports.provider_directory import ProviderDirectoryPort
from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.session import SessionContext
from booking_flow.infrastructure.api.api_client import BookingApiClient


class HttpProviderDirectory(ProviderDirectoryPort):
    def __init__(self, client: BookingApiClient) -> None:
        self._client = client

    def list_providers(self, session: SessionContext) -> list[Provider]:
        try:
            resp = self._client.get("/providers", session)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"Provider listing failed: {e}") from e

        if resp.status_code >= 400:
            message = self._client.log_error_response(resp, "list_providers")
            raise RemoteUnavailable(f"Provider listing returned {resp.status_code}: {message}")

        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteUnavailable("Provider listing is not JSON") from e

        providers: list[Provider] = []
        for item in data if isinstance(data, list) else []:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            providers.append(
                Provider(
                    id=str(item["id"]),
                    name=str(item.get("name") or ""),
                    avatar_url=item.get("avatar_url"),
                )
            )
        return providers
