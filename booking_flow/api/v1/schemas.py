import datetime as dt

from pydantic import BaseModel, Field


class ProviderSchema(BaseModel):
    id: str
    name: str
    avatar_url: str | None = None


class SlotSchema(BaseModel):
    hour: int
    label: str
    available: bool


class SelectionSchema(BaseModel):
    provider: ProviderSchema | None = None
    date: dt.date
    hour: int | None = None


class FlowSnapshotSchema(BaseModel):
    flow_id: str
    status: str
    availability: str
    selection: SelectionSchema
    morning: list[SlotSchema] = Field(default_factory=list)
    afternoon: list[SlotSchema] = Field(default_factory=list)
    submittable: bool
    last_error: str | None = None


class CreateFlowRequestSchema(BaseModel):
    provider_id: str | None = None
    date: dt.date | None = None


class ProviderChoiceSchema(BaseModel):
    provider_id: str = Field(min_length=1)


class DateChoiceSchema(BaseModel):
    date: dt.date


class HourChoiceSchema(BaseModel):
    hour: int = Field(ge=0, le=23)


class HourChoiceResponseSchema(BaseModel):
    accepted: bool
    flow: FlowSnapshotSchema


class AppointmentSchema(BaseModel):
    id: str
    provider_id: str
    date: dt.datetime
    created_at: dt.datetime


class SubmitResponseSchema(BaseModel):
    action: str
    appointment: AppointmentSchema | None = None
    description: str | None = None
    error: str | None = None
    flow: FlowSnapshotSchema
