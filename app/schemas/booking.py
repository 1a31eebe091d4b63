# app/schemas/booking.py
from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from app.models.booking import BookingStatus

TitleStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]


class BookingCreate(BaseModel):
    """
    Start/end ordering is checked by the service, which reports an inverted
    or empty range as a validation error.
    """

    room_id: str
    title: TitleStr
    description: str | None = None
    start_time: datetime
    end_time: datetime

    position: str | None = None
    department: str | None = None
    phone_number: str | None = None
    room_layout: str | None = None
    equipment: list[str] = Field(default_factory=list)
    own_equipment: str | None = None
    attachments: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("attachments", mode="before")
    @classmethod
    def drop_empty_links(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [link for link in v if isinstance(link, str) and link.strip()]
        return v


class BookingReschedule(BaseModel):
    start_time: datetime
    end_time: datetime

    model_config = ConfigDict(extra="forbid")


class BookingStatusUpdate(BaseModel):
    status: BookingStatus

    model_config = ConfigDict(extra="forbid")


class AvailabilityResponse(BaseModel):
    room_id: str
    start_time: datetime
    end_time: datetime
    available: bool


class BookingResponse(BaseModel):
    id: UUID
    room_id: str
    room_name: str | None = None
    title: str
    description: str | None = None
    requester_id: str
    requester_name: str
    position: str | None = None
    department: str | None = None
    phone_number: str | None = None
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    room_layout: str | None = None
    equipment: list[str] = Field(default_factory=list)
    own_equipment: str | None = None
    attachments: list[str] = Field(default_factory=list)
    moderated_by_name: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoomResponse(BaseModel):
    id: str
    name: str
    zone: str | None = None
    equipment: list[str] = Field(default_factory=list)
