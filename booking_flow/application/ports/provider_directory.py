from __future__ import annotations

from abc import ABC, abstractmethod

from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.session import SessionContext


class ProviderDirectoryPort(ABC):
    @abstractmethod
    def list_providers(self, session: SessionContext) -> list[Provider]:
        """List bookable providers. Raises RemoteUnavailable on failure."""
        raise NotImplementedError

    def get_provider(self, provider_id: str, session: SessionContext) -> Provider | None:
        for provider in self.list_providers(session):
            if provider.id == provider_id:
                return provider
        return None
