# app/api/v1/endpoints/repairs.py
from __future__ import annotations

import logging
from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.background.tasks import enqueue_task
from app.core.database import get_db, get_session_factory
from app.dependencies.authz import TECHNICIANS, require_roles
from app.models.repair_ticket import RepairStatus
from app.schemas.auth import Actor
from app.schemas.repair import RepairCreate, RepairResponse, RepairUpdate, UsePartRequest
from app.services import repair_service
from app.services.errors import InventoryError
from app.services.notification_service import (
    repair_completed_message,
    repair_created_message,
    send_notification_line,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[RepairResponse], tags=["repairs"])
def list_repairs(
    status_filter: Optional[RepairStatus] = Query(None, alias="status"),
    zone: Optional[str] = Query(None),
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RepairResponse]:
    """
    Technicians and staff see every ticket; other users see their own.
    """
    is_worker = current_user.role in TECHNICIANS
    tickets = repair_service.list_tickets(
        db,
        status=status_filter,
        zone=zone,
        requester_id=None if is_worker else current_user.id,
    )
    return [RepairResponse.model_validate(t) for t in tickets]


@router.post(
    "",
    response_model=RepairResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["repairs"],
)
def create_repair(
    payload: RepairCreate,
    background_tasks: BackgroundTasks,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> RepairResponse:
    try:
        ticket = repair_service.create_ticket(db, payload, current_user)
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error creating repair ticket: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create repair ticket.")

    response = RepairResponse.model_validate(ticket)

    try:
        enqueue_task(
            background_tasks,
            send_notification_line,
            session_factory,
            to=None,
            message=repair_created_message(ticket),
            reason="REPAIR_CREATED",
        )
    except Exception:
        logger.exception("Failed to queue repair notification ticket=%s", ticket.id)

    return response


@router.get("/{ticket_id}", response_model=RepairResponse, tags=["repairs"])
def get_repair(
    ticket_id: UUID,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RepairResponse:
    try:
        ticket = repair_service.get_ticket(db, ticket_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return RepairResponse.model_validate(ticket)


@router.patch("/{ticket_id}", response_model=RepairResponse, tags=["repairs"])
def update_repair(
    ticket_id: UUID,
    payload: RepairUpdate,
    background_tasks: BackgroundTasks,
    current_user: Actor = Depends(require_roles(TECHNICIANS)),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> RepairResponse:
    try:
        ticket = repair_service.update_ticket(db, ticket_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error updating repair ticket=%s: %s", ticket_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update repair ticket.")

    response = RepairResponse.model_validate(ticket)

    if ticket.status == RepairStatus.COMPLETED:
        try:
            enqueue_task(
                background_tasks,
                send_notification_line,
                session_factory,
                to=ticket.requester_id,
                message=repair_completed_message(ticket),
                reason="REPAIR_COMPLETED",
            )
        except Exception:
            logger.exception("Failed to queue repair completion notification ticket=%s", ticket.id)

    return response


@router.post("/{ticket_id}/parts", response_model=RepairResponse, tags=["repairs"])
def use_part(
    ticket_id: UUID,
    payload: UsePartRequest,
    current_user: Actor = Depends(require_roles(TECHNICIANS)),
    db: Session = Depends(get_db),
) -> RepairResponse:
    """
    Withdraw spare parts from stock for this ticket.
    """
    try:
        ticket = repair_service.use_part(db, ticket_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error using part on ticket=%s: %s", ticket_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record part usage.")

    return RepairResponse.model_validate(ticket)
