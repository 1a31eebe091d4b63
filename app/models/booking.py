# app/models/booking.py
import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class BookingStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Statuses that hold a time slot. Everything else frees it.
ACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.APPROVED, BookingStatus.PENDING})

BOOKING_STATUS_ENUM = Enum(
    BookingStatus,
    name="booking_status_enum",
    native_enum=False,
    values_callable=lambda e: [m.value for m in e],
)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_room_id", "room_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    room_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("rooms.id", ondelete="RESTRICT"),
        nullable=False,
    )
    room_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    requester_id: Mapped[str] = mapped_column(String(128), nullable=False)
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        BOOKING_STATUS_ENUM,
        nullable=False,
        default=BookingStatus.PENDING,
    )

    room_layout: Mapped[str | None] = mapped_column(String(50), nullable=True)
    equipment: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    own_equipment: Mapped[str | None] = mapped_column(String(500), nullable=True)
    attachments: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    moderated_by_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    moderated_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

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
