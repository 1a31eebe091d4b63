# app/schemas/stats.py
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class InventoryStatsResponse(BaseModel):
    total: int = 0
    available: int = 0
    borrowed: int = 0
    maintenance: int = 0

    model_config = ConfigDict(from_attributes=True)


class BorrowCountFix(BaseModel):
    product_id: UUID
    product_name: str
    kind: str
    old_borrowed_count: int
    new_borrowed_count: int
    quantity: int


class BackReferenceFix(BaseModel):
    product_id: UUID
    product_name: str
    old_active_borrow_id: UUID | None = None
    new_active_borrow_id: UUID | None = None
    old_status: str
    new_status: str


class InventoryRepairReport(BaseModel):
    dry_run: bool
    borrow_count_fixes: list[BorrowCountFix] = Field(default_factory=list)
    back_reference_fixes: list[BackReferenceFix] = Field(default_factory=list)
    stats_recalculated: bool = False
