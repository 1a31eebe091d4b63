# app/services/repair_service.py
import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.database import unit_of_work
from app.models.repair_ticket import RepairStatus, RepairTicket
from app.schemas.auth import Actor, ActorRole
from app.schemas.repair import RepairCreate, RepairUpdate, UsePartRequest
from app.services.activity_service import log_activity
from app.services.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.services.inventory_service import lock_product, requisition_locked
from app.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

FINAL_REPAIR_STATUSES = frozenset({RepairStatus.COMPLETED, RepairStatus.CANCELLED})


def _require_technician(actor: Actor) -> None:
    if actor.role != ActorRole.TECHNICIAN and not actor.is_staff:
        raise PermissionDeniedError("Only technicians can work on repair tickets.")


def _lock_ticket(db: Session, ticket_id: UUID) -> RepairTicket:
    ticket = (
        db.query(RepairTicket)
        .filter(RepairTicket.id == ticket_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not ticket:
        raise NotFoundError("Repair ticket not found.")
    return ticket


def get_ticket(db: Session, ticket_id: UUID) -> RepairTicket:
    ticket = db.query(RepairTicket).filter(RepairTicket.id == ticket_id).first()
    if not ticket:
        raise NotFoundError("Repair ticket not found.")
    return ticket


def list_tickets(
    db: Session,
    *,
    status: RepairStatus | None = None,
    zone: str | None = None,
    requester_id: str | None = None,
) -> list[RepairTicket]:
    query = db.query(RepairTicket)
    if status is not None:
        query = query.filter(RepairTicket.status == status)
    if zone:
        query = query.filter(RepairTicket.zone == zone)
    if requester_id:
        query = query.filter(RepairTicket.requester_id == requester_id)
    return query.order_by(RepairTicket.created_at.desc()).all()


def create_ticket(db: Session, payload: RepairCreate, actor: Actor) -> RepairTicket:
    with unit_of_work(db):
        ticket = RepairTicket(
            requester_id=actor.id,
            requester_name=actor.name,
            position=payload.position,
            phone=payload.phone,
            room=payload.room,
            zone=payload.zone,
            description=payload.description,
            images=list(payload.images),
            status=RepairStatus.PENDING,
            parts_used=[],
        )
        db.add(ticket)

    log_activity(
        db,
        action="repair",
        user_name=actor.name,
        product_name=ticket.room,
        details=ticket.description,
        status=ticket.status.value,
        image_url=ticket.images[0] if ticket.images else None,
        zone=ticket.zone,
    )
    return ticket


def update_ticket(db: Session, ticket_id: UUID, payload: RepairUpdate, actor: Actor) -> RepairTicket:
    """
    Technician status update. Completing a job needs a note and a photo of
    the finished work. Completed and cancelled tickets are final.
    """
    _require_technician(actor)

    with unit_of_work(db):
        ticket = _lock_ticket(db, ticket_id)
        if ticket.status in FINAL_REPAIR_STATUSES:
            raise ConflictError(f"Ticket is already {ticket.status.value}.")

        note = payload.technician_note or ticket.technician_note
        image_url = payload.completion_image_url or ticket.completion_image_url
        if payload.status == RepairStatus.COMPLETED:
            if not note:
                raise ValidationError("A technician note is required to complete a repair.")
            if not image_url:
                raise ValidationError("A completion photo is required to complete a repair.")

        old_status = ticket.status
        ticket.status = payload.status
        ticket.technician_id = actor.id
        ticket.technician_name = actor.name
        ticket.technician_note = note
        ticket.completion_image_url = image_url

    logger.info("Repair ticket %s moved %s -> %s", ticket.id, old_status.value, ticket.status.value)
    log_activity(
        db,
        action="repair",
        user_name=actor.name,
        product_name=ticket.room,
        details=ticket.technician_note,
        status=ticket.status.value,
        image_url=ticket.completion_image_url,
        zone=ticket.zone,
    )
    return ticket


def use_part(db: Session, ticket_id: UUID, payload: UsePartRequest, actor: Actor) -> RepairTicket:
    """
    Take spare parts out of stock for a repair job. The requisition and the
    ticket's parts list are written in the same transaction.
    """
    _require_technician(actor)

    with unit_of_work(db):
        ticket = _lock_ticket(db, ticket_id)
        if ticket.status in FINAL_REPAIR_STATUSES:
            raise ConflictError(f"Ticket is already {ticket.status.value}.")

        product = lock_product(db, payload.product_id)
        requisition_locked(
            db,
            product,
            quantity=payload.quantity,
            actor=actor,
            room=ticket.room,
            position=ActorRole.TECHNICIAN.value,
            reason=f"Repair ticket {ticket.id}",
            signature_url=payload.signature_url,
        )

        ticket.parts_used = [
            *(ticket.parts_used or []),
            {
                "product_id": str(product.id),
                "name": product.name,
                "quantity": payload.quantity,
                "date": utc_now().isoformat(),
                "signature_url": payload.signature_url,
            },
        ]

    log_activity(
        db,
        action="requisition",
        user_name=actor.name,
        product_name=product.name,
        details=f"Qty: {payload.quantity} Reason: repair {ticket.room}",
        zone=ticket.zone,
    )
    return ticket
