from collections.abc import Callable
from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from booking_flow.core.config import settings
from booking_flow.application.ports.availability import AvailabilityPort
from booking_flow.application.ports.booking import BookingPort
from booking_flow.application.ports.flow_store import FlowStorePort
from booking_flow.application.ports.provider_directory import ProviderDirectoryPort
from booking_flow.application.use_cases.booking import BookingFlowUseCase
from booking_flow.application.use_cases.fetch_availability import AvailabilityFetcher
from booking_flow.application.use_cases.submit_booking import BookingSubmitter
from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.session import SessionContext
from booking_flow.domain.entities.slot import SlotGrid
from booking_flow.infrastructure.api.api_client import BookingApiClient
from booking_flow.infrastructure.api.appointments_client import HttpBooking
from booking_flow.infrastructure.api.availability_client import HttpAvailability
from booking_flow.infrastructure.api.providers_client import HttpProviderDirectory
from booking_flow.infrastructure.mock.mock_backend import MockBookingBackend
from booking_flow.infrastructure.store.memory_store import MemoryFlowStore

FlowFactory = Callable[[SessionContext, Provider | None], BookingFlowUseCase]

_mock_backend: MockBookingBackend | None = None


def _use_mock_backend() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


@lru_cache
def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.BUSINESS_TIMEZONE)


@lru_cache
def get_slot_grid() -> SlotGrid:
    return SlotGrid(
        morning_start=settings.MORNING_START_HOUR,
        morning_end=settings.MORNING_END_HOUR,
        afternoon_start=settings.AFTERNOON_START_HOUR,
        afternoon_end=settings.AFTERNOON_END_HOUR,
    )


def get_mock_backend() -> MockBookingBackend:
    global _mock_backend
    if _mock_backend is None:
        _mock_backend = MockBookingBackend(timezone=get_timezone())
    return _mock_backend


@lru_cache
def get_api_client() -> BookingApiClient:
    return BookingApiClient(base_url=settings.API_BASE_URL, timeout=settings.API_TIMEOUT_SECONDS)


def get_availability_port() -> AvailabilityPort:
    if _use_mock_backend():
        return get_mock_backend()
    return HttpAvailability(client=get_api_client())


def get_booking_port() -> BookingPort:
    if _use_mock_backend():
        return get_mock_backend()
    return HttpBooking(client=get_api_client(), timezone=get_timezone())


def get_provider_directory() -> ProviderDirectoryPort:
    if _use_mock_backend():
        logging.getLogger(__name__).debug("Using MockBookingBackend (ENV=%s)", settings.ENV)
        return get_mock_backend()
    return HttpProviderDirectory(client=get_api_client())


@lru_cache
def get_flow_store() -> FlowStorePort:
    return MemoryFlowStore(
        flow_limit=settings.FLOW_STORE_LIMIT,
        idle_ttl_seconds=settings.FLOW_IDLE_TTL_SECONDS,
    )


def build_booking_flow(session: SessionContext, provider: Provider | None = None) -> BookingFlowUseCase:
    return BookingFlowUseCase(
        fetcher=AvailabilityFetcher(source=get_availability_port()),
        submitter=BookingSubmitter(backend=get_booking_port()),
        session=session,
        timezone=get_timezone(),
        grid=get_slot_grid(),
        language=settings.CONFIRMATION_LANGUAGE,
        provider=provider,
    )


def get_flow_factory() -> FlowFactory:
    return build_booking_flow
