# app/models/photography_job.py
import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class PhotographyJobStatus(str, PyEnum):
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


PHOTOGRAPHY_STATUS_ENUM = Enum(
    PhotographyJobStatus,
    name="photography_job_status_enum",
    native_enum=False,
    values_callable=lambda e: [m.value for m in e],
)


class PhotographyJob(Base):
    """
    A photo/video assignment for school events, handed to one or more
    photographers who deliver a Drive folder link when done.
    """

    __tablename__ = "photography_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    booking_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        doc="Set when the job was created from a room booking.",
    )

    assignee_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    assignee_names: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    requester_id: Mapped[str] = mapped_column(String(128), nullable=False)
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_manual_entry: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="True when a photographer logged the job for themselves.",
    )

    status: Mapped[PhotographyJobStatus] = mapped_column(
        PHOTOGRAPHY_STATUS_ENUM,
        nullable=False,
        default=PhotographyJobStatus.ASSIGNED,
    )
    drive_link: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
    )
