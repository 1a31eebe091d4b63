# app/services/inventory_repair_service.py
"""
Offline consistency repair for products whose lending state drifted from the
borrow ledger. The ledger (active borrow transactions) is taken as the truth.
"""

import logging
from collections import defaultdict

from sqlalchemy.orm import Session

from app.models.product import Product, ProductStatus
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from app.schemas.stats import BackReferenceFix, BorrowCountFix, InventoryRepairReport
from app.services.stats_service import recalculate_inventory_stats

logger = logging.getLogger(__name__)


def _active_borrows_by_product(db: Session) -> dict:
    borrows = (
        db.query(Transaction)
        .filter(
            Transaction.type == TransactionType.BORROW,
            Transaction.status == TransactionStatus.ACTIVE,
        )
        .order_by(Transaction.borrow_date.asc(), Transaction.created_at.asc())
        .all()
    )
    grouped = defaultdict(list)
    for borrow in borrows:
        grouped[borrow.product_id].append(borrow)
    return grouped


def _fix_bulk(product: Product, active: list[Transaction]) -> BorrowCountFix | None:
    expected = min(len(active), product.quantity)
    if product.borrowed_count == expected:
        return None
    return BorrowCountFix(
        product_id=product.id,
        product_name=product.name,
        kind=product.kind.value,
        old_borrowed_count=product.borrowed_count,
        new_borrowed_count=expected,
        quantity=product.quantity,
    )


def _fix_unique(product: Product, active: list[Transaction]) -> BackReferenceFix | None:
    if active:
        active_ids = {borrow.id for borrow in active}
        new_ref = product.active_borrow_id if product.active_borrow_id in active_ids else active[0].id
        new_status = ProductStatus.BORROWED
    else:
        new_ref = None
        new_status = ProductStatus.AVAILABLE if product.status == ProductStatus.BORROWED else product.status

    if new_ref == product.active_borrow_id and new_status == product.status:
        return None
    return BackReferenceFix(
        product_id=product.id,
        product_name=product.name,
        old_active_borrow_id=product.active_borrow_id,
        new_active_borrow_id=new_ref,
        old_status=product.status.value,
        new_status=new_status.value,
    )


def repair_inventory(db: Session, *, dry_run: bool = True) -> InventoryRepairReport:
    """
    Recompute lending state from active borrow transactions:

    - bulk: `borrowed_count` = number of active borrows (capped at quantity)
    - unique: status `borrowed` with a back-reference to the oldest active
      borrow, or back to `available` with no back-reference when none exist

    With `dry_run` nothing is written; otherwise the fixes are committed and
    the stats row is recalculated from the repaired products.
    """
    report = InventoryRepairReport(dry_run=dry_run)
    grouped = _active_borrows_by_product(db)

    products = db.query(Product).filter(Product.is_deleted.is_(False)).all()
    for product in products:
        active = grouped.get(product.id, [])

        if product.is_bulk:
            fix = _fix_bulk(product, active)
            if fix:
                report.borrow_count_fixes.append(fix)
                if not dry_run:
                    product.borrowed_count = fix.new_borrowed_count
                    product.status = (
                        ProductStatus.AVAILABLE
                        if product.quantity - fix.new_borrowed_count > 0
                        else ProductStatus.REQUISITIONED
                    )
        else:
            fix = _fix_unique(product, active)
            if fix:
                report.back_reference_fixes.append(fix)
                if not dry_run:
                    product.active_borrow_id = fix.new_active_borrow_id
                    product.status = ProductStatus(fix.new_status)

    logger.info(
        "Inventory repair (dry_run=%s): %d borrow count fixes, %d back-reference fixes",
        dry_run,
        len(report.borrow_count_fixes),
        len(report.back_reference_fixes),
    )

    if dry_run:
        db.rollback()
        return report

    db.commit()
    recalculate_inventory_stats(db)
    report.stats_recalculated = True
    return report
