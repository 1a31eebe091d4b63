# app/api/v1/endpoints/admin.py
"""
Admin maintenance endpoints: stats recount, inventory repair, room seeding.
These are the manual reconciliation tools for drift left by failed writes.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies.authz import ADMIN_ONLY, require_roles
from app.schemas.auth import Actor
from app.schemas.stats import InventoryRepairReport, InventoryStatsResponse
from app.services.activity_service import log_activity
from app.services.booking_service import seed_rooms
from app.services.inventory_repair_service import repair_inventory
from app.services.stats_service import recalculate_inventory_stats

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/inventory/recount", response_model=InventoryStatsResponse, tags=["admin"])
def recount_inventory_stats(
    current_user: Actor = Depends(require_roles(ADMIN_ONLY)),
    db: Session = Depends(get_db),
) -> InventoryStatsResponse:
    """
    Recompute the dashboard counters from the products table.
    """
    try:
        stats = recalculate_inventory_stats(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("SQLAlchemy error recounting stats: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to recount inventory stats.")

    log_activity(db, action="update", user_name=current_user.name, details="Inventory stats recounted")
    return InventoryStatsResponse.model_validate(stats)


@router.post("/inventory/repair", response_model=InventoryRepairReport, tags=["admin"])
def repair_inventory_state(
    dry_run: bool = Query(True, description="Report fixes without writing them"),
    current_user: Actor = Depends(require_roles(ADMIN_ONLY)),
    db: Session = Depends(get_db),
) -> InventoryRepairReport:
    """
    Rebuild borrowed counts and back-references from the borrow ledger.
    """
    try:
        report = repair_inventory(db, dry_run=dry_run)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("SQLAlchemy error repairing inventory: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to repair inventory.")

    if not dry_run:
        log_activity(
            db,
            action="update",
            user_name=current_user.name,
            details=(
                f"Inventory repaired: {len(report.borrow_count_fixes)} count fixes, "
                f"{len(report.back_reference_fixes)} back-reference fixes"
            ),
        )
    return report


@router.post("/rooms/seed", tags=["admin"])
def seed_room_catalogue(
    current_user: Actor = Depends(require_roles(ADMIN_ONLY)),
    db: Session = Depends(get_db),
) -> dict:
    try:
        created = seed_rooms(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("SQLAlchemy error seeding rooms: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to seed rooms.")
    return {"created": created}
