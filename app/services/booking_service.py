# app/services/booking_service.py
"""
Room reservations.

Conflict rule: two bookings of the same room clash when both hold the slot
(approved or pending) and their half-open intervals [start, end) overlap.
Back-to-back bookings do not clash.

Creation and reschedule lock the room row first, so the conflict check and
the insert run as one serialized unit per room.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.catalog import get_equipment_for_room, iter_rooms
from app.core.config import get_settings
from app.core.database import unit_of_work
from app.models.booking import ACTIVE_BOOKING_STATUSES, Booking, BookingStatus
from app.models.room import Room
from app.schemas.auth import Actor
from app.schemas.booking import BookingCreate, BookingReschedule
from app.services.activity_service import log_activity
from app.services.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.utils.datetime_utils import as_utc

logger = logging.getLogger(__name__)

# Allowed moderation moves. Rejected and cancelled are final.
BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED}),
    BookingStatus.APPROVED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def validate_time_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start, end = as_utc(start), as_utc(end)
    if start >= end:
        raise ValidationError("End time must be after start time.")
    return start, end


def intervals_overlap(
    existing_start: datetime,
    existing_end: datetime,
    start: datetime,
    end: datetime,
) -> bool:
    """
    Half-open overlap test. A stored interval with end <= start is treated as
    the single instant `existing_start`.
    """
    existing_start, existing_end = as_utc(existing_start), as_utc(existing_end)
    if existing_end <= existing_start:
        return start <= existing_start < end
    return existing_start < end and existing_end > start


def has_conflict(
    db: Session,
    room_id: str,
    start: datetime,
    end: datetime,
    *,
    exclude_booking_id: UUID | None = None,
) -> bool:
    """
    True if any slot-holding booking of `room_id` overlaps [start, end).

    All bookings of the room are fetched and filtered here, not in SQL.
    Query errors propagate; callers must not write on failure.
    """
    start, end = as_utc(start), as_utc(end)
    bookings = db.query(Booking).filter(Booking.room_id == room_id).all()

    for booking in bookings:
        if booking.id == exclude_booking_id:
            continue
        if booking.status not in ACTIVE_BOOKING_STATUSES:
            continue
        if intervals_overlap(booking.start_time, booking.end_time, start, end):
            return True
    return False


# -------------------------
# Rooms
# -------------------------
def list_rooms(db: Session, *, zone: str | None = None) -> list[Room]:
    query = db.query(Room).filter(Room.is_active.is_(True))
    if zone:
        query = query.filter(Room.zone == zone)
    return query.order_by(Room.zone.asc(), Room.id.asc()).all()


def get_room(db: Session, room_id: str) -> Room:
    room = db.query(Room).filter(Room.id == room_id, Room.is_active.is_(True)).first()
    if not room:
        raise NotFoundError("Room not found.")
    return room


def lock_room(db: Session, room_id: str) -> Room:
    room = (
        db.query(Room)
        .filter(Room.id == room_id, Room.is_active.is_(True))
        .with_for_update()
        .first()
    )
    if not room:
        raise NotFoundError("Room not found.")
    return room


def room_equipment(room_id: str) -> list[str]:
    return get_equipment_for_room(room_id)


def seed_rooms(db: Session) -> int:
    """
    Insert catalogue rooms that are missing and refresh names/zones of the
    existing ones. Returns the number of rooms inserted.
    """
    created = 0
    for zone, entry in iter_rooms():
        room = db.query(Room).filter(Room.id == entry["id"]).first()
        if room:
            room.name = entry["name"]
            room.zone = zone
            continue
        db.add(Room(id=entry["id"], name=entry["name"], zone=zone, is_active=True))
        created += 1

    db.commit()
    logger.info("Room catalogue seeded: %d new", created)
    return created


# -------------------------
# Bookings
# -------------------------
def get_booking(db: Session, booking_id: UUID) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError("Booking not found.")
    return booking


def list_bookings(
    db: Session,
    *,
    room_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    status: BookingStatus | None = None,
    requester_id: str | None = None,
) -> list[Booking]:
    """
    Bookings ordered by start time. A `start`/`end` window keeps bookings
    that overlap it.
    """
    query = db.query(Booking)
    if room_id:
        query = query.filter(Booking.room_id == room_id)
    if status is not None:
        query = query.filter(Booking.status == status)
    if requester_id:
        query = query.filter(Booking.requester_id == requester_id)
    if start is not None:
        query = query.filter(Booking.end_time > as_utc(start))
    if end is not None:
        query = query.filter(Booking.start_time < as_utc(end))

    return query.order_by(Booking.start_time.asc()).all()


def create_booking(
    db: Session,
    payload: BookingCreate,
    actor: Actor,
    *,
    auto_approve: bool | None = None,
) -> Booking:
    """
    Reserve a room. Auto-approved bookings start as `approved`, otherwise
    `pending` until a moderator acts.
    """
    start, end = validate_time_range(payload.start_time, payload.end_time)
    if auto_approve is None:
        auto_approve = get_settings().booking_auto_approve

    with unit_of_work(db):
        room = lock_room(db, payload.room_id)
        if has_conflict(db, room.id, start, end):
            raise ConflictError("This room is already booked for the selected time.")

        booking = Booking(
            room_id=room.id,
            room_name=room.name,
            title=payload.title,
            description=payload.description,
            requester_id=actor.id,
            requester_name=actor.name,
            position=payload.position,
            department=payload.department,
            phone_number=payload.phone_number,
            start_time=start,
            end_time=end,
            status=BookingStatus.APPROVED if auto_approve else BookingStatus.PENDING,
            room_layout=payload.room_layout,
            equipment=list(payload.equipment),
            own_equipment=payload.own_equipment,
            attachments=list(payload.attachments),
        )
        db.add(booking)

    logger.info("Booking %s created for room=%s status=%s", booking.id, booking.room_id, booking.status.value)
    log_activity(
        db,
        action="booking",
        user_name=actor.name,
        product_name=booking.room_name,
        details=booking.title,
        status=booking.status.value,
    )
    return booking


def _check_can_modify(booking: Booking, actor: Actor, new_status: BookingStatus | None) -> None:
    if actor.is_staff:
        return
    if booking.requester_id == actor.id and new_status in (None, BookingStatus.CANCELLED):
        return
    raise PermissionDeniedError("You are not allowed to change this booking.")


def _lock_booking(db: Session, booking_id: UUID) -> Booking:
    booking = (
        db.query(Booking)
        .filter(Booking.id == booking_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not booking:
        raise NotFoundError("Booking not found.")
    return booking


def update_booking_status(
    db: Session,
    booking_id: UUID,
    new_status: BookingStatus,
    actor: Actor,
) -> Booking:
    """
    Moderate a booking. Requesters may cancel their own; everything else is
    staff only.
    """
    with unit_of_work(db):
        booking = _lock_booking(db, booking_id)
        _check_can_modify(booking, actor, new_status)

        old_status = booking.status
        if new_status not in BOOKING_TRANSITIONS[old_status]:
            raise ConflictError(f"Cannot change booking from {old_status.value} to {new_status.value}.")

        booking.status = new_status
        booking.moderated_by_id = actor.id
        booking.moderated_by_name = actor.name

    logger.info("Booking %s moved %s -> %s by %s", booking.id, old_status.value, new_status.value, actor.id)
    log_activity(
        db,
        action="booking",
        user_name=actor.name,
        product_name=booking.room_name,
        details=f"{booking.title}: {old_status.value} -> {new_status.value}",
        status=new_status.value,
    )
    return booking


def reschedule_booking(
    db: Session,
    booking_id: UUID,
    payload: BookingReschedule,
    actor: Actor,
) -> Booking:
    """Move a slot-holding booking to a new time range in the same room."""
    start, end = validate_time_range(payload.start_time, payload.end_time)

    with unit_of_work(db):
        booking = _lock_booking(db, booking_id)
        _check_can_modify(booking, actor, None)
        if booking.status not in ACTIVE_BOOKING_STATUSES:
            raise ConflictError("Only pending or approved bookings can be rescheduled.")

        lock_room(db, booking.room_id)
        if has_conflict(db, booking.room_id, start, end, exclude_booking_id=booking.id):
            raise ConflictError("This room is already booked for the selected time.")

        booking.start_time = start
        booking.end_time = end

    return booking
