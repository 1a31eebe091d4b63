# app/api/v1/endpoints/dashboard.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.core.database import get_db
from app.schemas.auth import Actor
from app.schemas.stats import InventoryStatsResponse
from app.services.activity_service import list_recent_activity
from app.services.stats_service import get_stats

router = APIRouter()
logger = logging.getLogger(__name__)


class ActivityEntry(BaseModel):
    id: UUID
    action: str
    product_name: Optional[str] = None
    user_name: Optional[str] = None
    details: Optional[str] = None
    status: Optional[str] = None
    image_url: Optional[str] = None
    zone: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


@router.get("/stats", response_model=InventoryStatsResponse, tags=["dashboard"])
def get_inventory_stats(
    db: Session = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
) -> InventoryStatsResponse:
    """
    Dashboard counters, read from the maintained stats row (no table scan).
    All zeros until the first product is added.
    """
    stats = get_stats(db)
    if not stats:
        return InventoryStatsResponse()
    return InventoryStatsResponse.model_validate(stats)


@router.get("/activity", response_model=list[ActivityEntry], tags=["dashboard"])
def get_recent_activity(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
) -> list[ActivityEntry]:
    return [ActivityEntry.model_validate(a) for a in list_recent_activity(db, limit=limit)]
