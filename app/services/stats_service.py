# app/services/stats_service.py
"""
Availability ledger: the singleton `inventory_stats` row behind the dashboard.

Counters are maintained incrementally by the inventory services. Every change is
a single SQL UPDATE using column arithmetic, executed inside the caller's
transaction; nothing here commits except `recalculate_inventory_stats`.

For bulk products the counters are resource-level, not unit-level: a bulk item
counts as `available` while at least one unit is on the shelf and as `borrowed`
while at least one unit is out. `product_contribution` encodes that rule and
every delta is the difference between two contributions.
"""

import logging
from typing import Mapping

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.inventory_stats import INVENTORY_STATS_ID, STAT_FIELDS, InventoryStats
from app.models.product import Product, ProductKind, ProductStatus

logger = logging.getLogger(__name__)


def _check_field(key: str) -> None:
    if key not in STAT_FIELDS:
        raise ValueError(f"Unknown stats field: {key}")


def get_stats(db: Session) -> InventoryStats | None:
    return db.query(InventoryStats).filter(InventoryStats.id == INVENTORY_STATS_ID).first()


def apply_stats_delta(db: Session, deltas: Mapping[str, int]) -> None:
    """
    Apply several counter changes in one UPDATE statement.

    - Keys that are not stats fields (e.g. "requisitioned") are ignored.
    - Negative results are clamped at 0 when `stats_clamp_at_zero` is set.
    - Missing row: created lazily with the positive deltas (other fields 0);
      a purely negative delta on a missing row is logged and dropped.
    """
    changes = {key: int(value) for key, value in deltas.items() if key in STAT_FIELDS and value}
    if not changes:
        return

    clamp = get_settings().stats_clamp_at_zero
    values = {}
    for key, delta in changes.items():
        column = getattr(InventoryStats, key)
        if delta < 0 and clamp:
            values[key] = case((column + delta < 0, 0), else_=column + delta)
        else:
            values[key] = column + delta

    result = db.execute(
        update(InventoryStats)
        .where(InventoryStats.id == INVENTORY_STATS_ID)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        return

    positives = {key: delta for key, delta in changes.items() if delta > 0}
    if not positives:
        logger.warning("inventory_stats row missing; dropped decrement %s", changes)
        return

    row = {field: 0 for field in STAT_FIELDS}
    row.update(positives)
    db.add(InventoryStats(id=INVENTORY_STATS_ID, **row))
    db.flush()
    logger.info("inventory_stats row created lazily with %s", positives)


def increment_stat(db: Session, key: str) -> None:
    """Atomic +1 on one counter; creates the row on first use."""
    _check_field(key)
    apply_stats_delta(db, {key: 1})


def decrement_stat(db: Session, key: str) -> None:
    """Atomic -1 on one counter; no-op (logged) when the row does not exist."""
    _check_field(key)
    apply_stats_delta(db, {key: -1})


def reconcile_status_change(
    db: Session,
    old_status: ProductStatus | str,
    new_status: ProductStatus | str,
) -> None:
    """
    Move one unique item from `old_status` to `new_status` in a single update.
    Statuses without a counter (requisitioned) only contribute their tracked side.
    """
    old_key = getattr(old_status, "value", old_status)
    new_key = getattr(new_status, "value", new_status)
    if old_key == new_key:
        return
    apply_stats_delta(db, {old_key: -1, new_key: 1})


def product_contribution(
    kind: ProductKind,
    status: ProductStatus,
    quantity: int,
    borrowed_count: int,
) -> dict[str, int]:
    """
    What a single live product adds to each counter.
    """
    contribution = {field: 0 for field in STAT_FIELDS}
    contribution["total"] = 1

    if kind == ProductKind.BULK:
        if (quantity or 0) - (borrowed_count or 0) > 0:
            contribution["available"] = 1
        if (borrowed_count or 0) > 0:
            contribution["borrowed"] = 1
    elif status.value in contribution:
        contribution[status.value] = 1

    return contribution


def contribution_of(product: Product) -> dict[str, int]:
    return product_contribution(
        product.kind,
        product.status,
        product.quantity,
        product.borrowed_count,
    )


def contribution_delta(before: Mapping[str, int], after: Mapping[str, int]) -> dict[str, int]:
    return {field: after.get(field, 0) - before.get(field, 0) for field in STAT_FIELDS}


def bulk_borrow_delta(quantity: int, borrowed_before: int) -> dict[str, int]:
    """
    Stats change for lending one unit of a bulk item.

    `available` drops only when the last unit goes out; `borrowed` rises only
    on the first unit out.
    """
    before = product_contribution(ProductKind.BULK, ProductStatus.AVAILABLE, quantity, borrowed_before)
    after = product_contribution(ProductKind.BULK, ProductStatus.AVAILABLE, quantity, borrowed_before + 1)
    return contribution_delta(before, after)


def bulk_return_delta(quantity: int, borrowed_before: int) -> dict[str, int]:
    """Mirror of `bulk_borrow_delta` for one unit coming back."""
    before = product_contribution(ProductKind.BULK, ProductStatus.AVAILABLE, quantity, borrowed_before)
    after = product_contribution(ProductKind.BULK, ProductStatus.AVAILABLE, quantity, borrowed_before - 1)
    return contribution_delta(before, after)


def recalculate_inventory_stats(db: Session) -> InventoryStats:
    """
    Recompute every counter from the products table.
    Use this for initial setup or to fix drift left by failed writes.
    """
    totals = {field: 0 for field in STAT_FIELDS}

    products = db.query(Product).filter(Product.is_deleted.is_(False)).all()
    for product in products:
        for field, value in contribution_of(product).items():
            totals[field] += value

    stats = get_stats(db)
    if not stats:
        stats = InventoryStats(id=INVENTORY_STATS_ID)
        db.add(stats)

    stats.total = totals["total"]
    stats.available = totals["available"]
    stats.borrowed = totals["borrowed"]
    stats.maintenance = totals["maintenance"]

    db.commit()
    db.refresh(stats)
    logger.info("inventory_stats recalculated from %d products: %s", len(products), totals)
    return stats
