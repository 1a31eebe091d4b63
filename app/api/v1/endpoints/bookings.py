# app/api/v1/endpoints/bookings.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.background.tasks import enqueue_task
from app.core.database import get_db, get_session_factory
from app.models.booking import BookingStatus
from app.schemas.auth import Actor
from app.schemas.booking import (
    AvailabilityResponse,
    BookingCreate,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
    RoomResponse,
)
from app.services import booking_service
from app.services.errors import InventoryError
from app.services.notification_service import (
    booking_created_message,
    booking_status_message,
    send_notification_line,
)

router = APIRouter()
rooms_router = APIRouter()
logger = logging.getLogger(__name__)


@rooms_router.get("", response_model=list[RoomResponse], tags=["rooms"])
def list_rooms(
    zone: Optional[str] = Query(None, description="junior_high or senior_high"),
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RoomResponse]:
    rooms = booking_service.list_rooms(db, zone=zone)
    return [
        RoomResponse(
            id=room.id,
            name=room.name,
            zone=room.zone,
            equipment=booking_service.room_equipment(room.id),
        )
        for room in rooms
    ]


@router.get("", response_model=list[BookingResponse], tags=["bookings"])
def list_bookings(
    room_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None, description="Window start (bookings ending after it)"),
    end: Optional[datetime] = Query(None, description="Window end (bookings starting before it)"),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    mine: bool = Query(False, description="Only bookings made by the current user"),
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[BookingResponse]:
    bookings = booking_service.list_bookings(
        db,
        room_id=room_id,
        start=start,
        end=end,
        status=status_filter,
        requester_id=current_user.id if mine else None,
    )
    return [BookingResponse.model_validate(b) for b in bookings]


@router.get("/availability", response_model=AvailabilityResponse, tags=["bookings"])
def check_availability(
    room_id: str = Query(...),
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AvailabilityResponse:
    """
    Read-only conflict check for a prospective booking.
    """
    try:
        start, end = booking_service.validate_time_range(start_time, end_time)
        booking_service.get_room(db, room_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    conflict = booking_service.has_conflict(db, room_id, start, end)
    return AvailabilityResponse(room_id=room_id, start_time=start, end_time=end, available=not conflict)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["bookings"],
)
def create_booking(
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> BookingResponse:
    try:
        booking = booking_service.create_booking(db, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error creating booking: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create booking.")

    response = BookingResponse.model_validate(booking)

    # Best-effort: notification problems must never fail the booking
    try:
        enqueue_task(
            background_tasks,
            send_notification_line,
            session_factory,
            to=None,
            message=booking_created_message(booking),
            reason="BOOKING_CREATED",
        )
    except Exception:
        logger.exception("Failed to queue booking notification booking=%s", booking.id)

    return response


@router.get("/{booking_id}", response_model=BookingResponse, tags=["bookings"])
def get_booking(
    booking_id: UUID,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    try:
        booking = booking_service.get_booking(db, booking_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}/status", response_model=BookingResponse, tags=["bookings"])
def update_booking_status(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> BookingResponse:
    """
    Approve, reject or cancel. Requesters may only cancel their own bookings.
    """
    try:
        booking = booking_service.update_booking_status(db, booking_id, payload.status, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error updating booking=%s: %s", booking_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update booking.")

    response = BookingResponse.model_validate(booking)

    if booking.requester_id != current_user.id:
        try:
            enqueue_task(
                background_tasks,
                send_notification_line,
                session_factory,
                to=booking.requester_id,
                message=booking_status_message(booking),
                reason=f"BOOKING_{booking.status.value.upper()}",
            )
        except Exception:
            logger.exception("Failed to queue booking status notification booking=%s", booking.id)

    return response


@router.patch("/{booking_id}", response_model=BookingResponse, tags=["bookings"])
def reschedule_booking(
    booking_id: UUID,
    payload: BookingReschedule,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    try:
        booking = booking_service.reschedule_booking(db, booking_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error rescheduling booking=%s: %s", booking_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to reschedule booking.")

    return BookingResponse.model_validate(booking)
