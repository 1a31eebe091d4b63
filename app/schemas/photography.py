# app/schemas/photography.py
from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from app.models.photography_job import PhotographyJobStatus

RequiredStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]


class Assignee(BaseModel):
    id: str
    name: str


class PhotographyJobCreate(BaseModel):
    """
    Staff pass the photographers in `assignees`. Anyone else creating a job
    logs it for themselves and `assignees` is ignored.
    """

    title: RequiredStr
    location: RequiredStr
    description: str | None = None
    start_time: datetime
    end_time: datetime
    booking_id: UUID | None = None
    assignees: list[Assignee] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class PhotographyJobUpdate(BaseModel):
    title: RequiredStr | None = None
    location: RequiredStr | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    assignees: list[Assignee] | None = None
    drive_link: str | None = None
    status: PhotographyJobStatus | None = None

    model_config = ConfigDict(extra="forbid")


class PhotographyJobSubmit(BaseModel):
    drive_link: str = ""
    cover_image: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("cover_image", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PhotographyJobResponse(BaseModel):
    id: UUID
    title: str
    description: str | None = None
    location: str
    start_time: datetime
    end_time: datetime
    booking_id: UUID | None = None
    assignee_ids: list[str] = Field(default_factory=list)
    assignee_names: list[str] = Field(default_factory=list)
    requester_id: str
    requester_name: str
    is_manual_entry: bool
    status: PhotographyJobStatus
    drive_link: str | None = None
    cover_image: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MyJobsSummary(BaseModel):
    total: int = 0
    assigned: int = 0
    completed: int = 0


class MyJobsResponse(BaseModel):
    summary: MyJobsSummary
    jobs: list[PhotographyJobResponse] = Field(default_factory=list)
