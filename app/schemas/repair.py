# app/schemas/repair.py
from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from app.models.repair_ticket import RepairStatus

RequiredStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]


class RepairCreate(BaseModel):
    room: RequiredStr
    description: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    zone: str | None = "junior_high"
    position: str | None = None
    phone: str | None = None
    images: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class RepairUpdate(BaseModel):
    status: RepairStatus
    technician_note: str | None = None
    completion_image_url: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("technician_note", "completion_image_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class UsePartRequest(BaseModel):
    product_id: UUID
    quantity: int = Field(default=1, ge=1)
    signature_url: str | None = None

    model_config = ConfigDict(extra="forbid")


class RepairResponse(BaseModel):
    id: UUID
    requester_id: str
    requester_name: str
    position: str | None = None
    phone: str | None = None
    room: str
    zone: str | None = None
    description: str
    images: list[str] = Field(default_factory=list)
    status: RepairStatus
    technician_name: str | None = None
    technician_note: str | None = None
    completion_image_url: str | None = None
    parts_used: list[dict] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
