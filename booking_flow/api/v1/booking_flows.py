from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, Header, HTTPException, Response

from booking_flow.api.v1.schemas import (
    AppointmentSchema,
    CreateFlowRequestSchema,
    DateChoiceSchema,
    FlowSnapshotSchema,
    HourChoiceResponseSchema,
    HourChoiceSchema,
    ProviderChoiceSchema,
    ProviderSchema,
    SelectionSchema,
    SlotSchema,
    SubmitResponseSchema,
)
from booking_flow.application.exceptions import RemoteUnavailable
from booking_flow.application.ports.flow_store import FlowStorePort
from booking_flow.application.ports.provider_directory import ProviderDirectoryPort
from booking_flow.application.use_cases.booking import BookingFlowUseCase
from booking_flow.application.utils.slot_deriver import split_periods
from booking_flow.domain.entities.provider import Provider
from booking_flow.domain.entities.selection_state import SelectionSnapshot
from booking_flow.domain.entities.session import SessionContext
from booking_flow.domain.entities.slot import SlotGrid
from booking_flow.wiring.dependencies import (
    FlowFactory,
    get_flow_factory,
    get_flow_store,
    get_provider_directory,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def get_session(
    authorization: str | None = Header(None),
    x_user_id: str | None = Header(None),
) -> SessionContext:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip() or None
    return SessionContext(token=token, user_id=x_user_id)


@router.get("/providers", response_model=list[ProviderSchema])
def list_providers(
    session: SessionContext = Depends(get_session),
    directory: ProviderDirectoryPort = Depends(get_provider_directory),
):
    try:
        providers = directory.list_providers(session)
    except RemoteUnavailable as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [_provider_schema(p) for p in providers]


@router.post("/booking-flows", response_model=FlowSnapshotSchema, status_code=201)
def create_flow(
    req: CreateFlowRequestSchema,
    session: SessionContext = Depends(get_session),
    directory: ProviderDirectoryPort = Depends(get_provider_directory),
    store: FlowStorePort = Depends(get_flow_store),
    factory: FlowFactory = Depends(get_flow_factory),
):
    provider = _lookup_provider(directory, req.provider_id, session) if req.provider_id else None
    flow = factory(session, provider)
    if req.date is not None:
        flow.select_date(req.date)

    flow_id = store.create(flow)
    logger.info("Booking flow started", extra={"flow_id": flow_id, "provider_id": req.provider_id})
    return _snapshot_schema(flow_id, flow.snapshot(), flow.grid)


@router.get("/booking-flows/{flow_id}", response_model=FlowSnapshotSchema)
def get_flow(flow_id: str, store: FlowStorePort = Depends(get_flow_store)):
    flow = _get_flow(store, flow_id)
    return _snapshot_schema(flow_id, flow.snapshot(), flow.grid)


@router.put("/booking-flows/{flow_id}/provider", response_model=FlowSnapshotSchema)
def choose_provider(
    flow_id: str,
    req: ProviderChoiceSchema,
    session: SessionContext = Depends(get_session),
    directory: ProviderDirectoryPort = Depends(get_provider_directory),
    store: FlowStorePort = Depends(get_flow_store),
):
    provider = _lookup_provider(directory, req.provider_id, session)
    with _exclusive(store, flow_id) as flow:
        _ensure_mutable(flow)
        snapshot = flow.select_provider(provider)
    return _snapshot_schema(flow_id, snapshot, flow.grid)


@router.put("/booking-flows/{flow_id}/date", response_model=FlowSnapshotSchema)
def choose_date(flow_id: str, req: DateChoiceSchema, store: FlowStorePort = Depends(get_flow_store)):
    with _exclusive(store, flow_id) as flow:
        _ensure_mutable(flow)
        snapshot = flow.select_date(req.date)
    return _snapshot_schema(flow_id, snapshot, flow.grid)


@router.put("/booking-flows/{flow_id}/hour", response_model=HourChoiceResponseSchema)
def choose_hour(flow_id: str, req: HourChoiceSchema, store: FlowStorePort = Depends(get_flow_store)):
    with _exclusive(store, flow_id) as flow:
        accepted = flow.select_hour(req.hour)
        snapshot = flow.snapshot()
    return HourChoiceResponseSchema(accepted=accepted, flow=_snapshot_schema(flow_id, snapshot, flow.grid))


@router.post("/booking-flows/{flow_id}/availability/refresh", response_model=FlowSnapshotSchema)
def refresh_availability(flow_id: str, store: FlowStorePort = Depends(get_flow_store)):
    with _exclusive(store, flow_id) as flow:
        snapshot = flow.refresh_availability()
    return _snapshot_schema(flow_id, snapshot, flow.grid)


@router.post("/booking-flows/{flow_id}/submit", response_model=SubmitResponseSchema)
def submit(flow_id: str, store: FlowStorePort = Depends(get_flow_store)):
    with _exclusive(store, flow_id) as flow:
        result = flow.submit()
    if result.action == "booked":
        store.discard(flow_id)

    logger.info("Booking flow submitted", extra={"flow_id": flow_id, "status": result.action})
    appointment = None
    if result.appointment is not None:
        appointment = AppointmentSchema(
            id=result.appointment.id,
            provider_id=result.appointment.provider_id,
            date=result.appointment.date,
            created_at=result.appointment.created_at,
        )
    return SubmitResponseSchema(
        action=result.action,
        appointment=appointment,
        description=result.description,
        error=result.error,
        flow=_snapshot_schema(flow_id, result.snapshot, flow.grid),
    )


@router.delete("/booking-flows/{flow_id}", status_code=204)
def cancel_flow(flow_id: str, store: FlowStorePort = Depends(get_flow_store)) -> Response:
    if not store.discard(flow_id):
        raise HTTPException(status_code=404, detail="Booking flow not found")
    logger.info("Booking flow discarded", extra={"flow_id": flow_id})
    return Response(status_code=204)


def _get_flow(store: FlowStorePort, flow_id: str) -> BookingFlowUseCase:
    flow = store.get(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Booking flow not found")
    return flow


@contextmanager
def _exclusive(store: FlowStorePort, flow_id: str) -> Iterator[BookingFlowUseCase]:
    flow = _get_flow(store, flow_id)
    if not store.try_acquire(flow_id):
        raise HTTPException(status_code=409, detail="Booking flow is busy")
    try:
        yield flow
    finally:
        store.release(flow_id)


def _ensure_mutable(flow: BookingFlowUseCase) -> None:
    status = flow.state.status.value
    if status in ("submitting", "submitted"):
        raise HTTPException(status_code=409, detail=f"Booking flow is {status}")


def _lookup_provider(directory: ProviderDirectoryPort, provider_id: str, session: SessionContext) -> Provider:
    try:
        provider = directory.get_provider(provider_id, session)
    except RemoteUnavailable as e:
        raise HTTPException(status_code=502, detail=str(e))
    if provider is None:
        raise HTTPException(status_code=404, detail="Provider not found")
    return provider


def _provider_schema(provider: Provider) -> ProviderSchema:
    return ProviderSchema(id=provider.id, name=provider.name, avatar_url=provider.avatar_url)


def _snapshot_schema(flow_id: str, snapshot: SelectionSnapshot, grid: SlotGrid) -> FlowSnapshotSchema:
    morning, afternoon = split_periods(snapshot.slots, grid)
    selection = snapshot.selection
    return FlowSnapshotSchema(
        flow_id=flow_id,
        status=snapshot.status.value,
        availability=snapshot.availability.value,
        selection=SelectionSchema(
            provider=_provider_schema(selection.provider) if selection.provider else None,
            date=selection.date,
            hour=selection.hour,
        ),
        morning=[SlotSchema(hour=s.hour, label=s.label, available=s.available) for s in morning],
        afternoon=[SlotSchema(hour=s.hour, label=s.label, available=s.available) for s in afternoon],
        submittable=snapshot.submittable,
        last_error=snapshot.last_error,
    )
