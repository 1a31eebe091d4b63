# app/services/inventory_service.py
"""
Inventory policy: lending, returns, requisitions and stock corrections.

Every mutating operation is one unit of work: the product row is re-read with
SELECT ... FOR UPDATE, preconditions are checked, and only then the product
write, the ledger entry and the stats delta are flushed and committed together.
Two clients racing for the last unit are serialized on the product row; the
loser sees the committed state and gets a ConflictError.
"""

import logging
import uuid
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import unit_of_work
from app.models.product import Product, ProductKind, ProductStatus
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from app.schemas.auth import Actor
from app.schemas.product import ProductCreate, ProductUpdate, StockAdjustMode
from app.schemas.transaction import BorrowRequest, RequisitionRequest, ReturnRequest
from app.services.activity_service import log_activity
from app.services.errors import ConflictError, NotFoundError, ValidationError
from app.services.stats_service import (
    apply_stats_delta,
    bulk_borrow_delta,
    bulk_return_delta,
    contribution_delta,
    contribution_of,
    reconcile_status_change,
)
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.id_generators import generate_stock_id

logger = logging.getLogger(__name__)

STOCK_ID_ATTEMPTS = 3


# -------------------------
# Reads
# -------------------------
def _live_products(db: Session):
    return db.query(Product).filter(Product.is_deleted.is_(False))


def get_product(db: Session, product_id: UUID) -> Product:
    product = _live_products(db).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found.")
    return product


def get_product_by_stock_id(db: Session, stock_id: str) -> Product:
    product = _live_products(db).filter(Product.stock_id == stock_id.strip().upper()).first()
    if not product:
        raise NotFoundError("Product not found.")
    return product


def lock_product(db: Session, product_id: UUID) -> Product:
    """
    Load a live product under a row lock, discarding any stale copy held
    in the identity map. Must be called inside a unit of work.
    """
    product = (
        _live_products(db)
        .filter(Product.id == product_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not product:
        raise NotFoundError("Product not found.")
    return product


def list_products(
    db: Session,
    *,
    search: str | None = None,
    kind: ProductKind | None = None,
    status: ProductStatus | None = None,
    category: str | None = None,
    limit: int = 100,
) -> list[Product]:
    query = _live_products(db)

    if kind is not None:
        query = query.filter(Product.kind == kind)
    if status is not None:
        query = query.filter(Product.status == status)
    if category:
        query = query.filter(Product.category == category)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Product.name.ilike(term),
                Product.stock_id.ilike(term),
                Product.brand.ilike(term),
                Product.serial_number.ilike(term),
            )
        )

    return query.order_by(Product.stock_id.asc()).limit(limit).all()


def list_active_borrows(db: Session, product_id: UUID) -> list[Transaction]:
    """Open borrows for one product, oldest first."""
    return (
        db.query(Transaction)
        .filter(
            Transaction.product_id == product_id,
            Transaction.type == TransactionType.BORROW,
            Transaction.status == TransactionStatus.ACTIVE,
        )
        .order_by(Transaction.borrow_date.asc(), Transaction.created_at.asc())
        .all()
    )


def list_product_transactions(db: Session, product_id: UUID, *, limit: int = 100) -> list[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.product_id == product_id)
        .order_by(Transaction.created_at.desc())
        .limit(limit)
        .all()
    )


def list_actor_borrows(db: Session, actor_id: str, *, limit: int = 100) -> list[Transaction]:
    """Borrow history of one user, newest first (returned loans included)."""
    return (
        db.query(Transaction)
        .filter(
            Transaction.actor_id == actor_id,
            Transaction.type == TransactionType.BORROW,
        )
        .order_by(Transaction.borrow_date.desc())
        .limit(limit)
        .all()
    )


# -------------------------
# Helpers
# -------------------------
def _derive_bulk_status(quantity: int, borrowed_count: int) -> ProductStatus:
    if quantity - borrowed_count > 0:
        return ProductStatus.AVAILABLE
    return ProductStatus.REQUISITIONED


def _require_text(value: str | None, message: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(message)
    return cleaned


def _find_active_borrow(db: Session, product_id: UUID, transaction_id: UUID) -> Transaction | None:
    return (
        db.query(Transaction)
        .filter(
            Transaction.id == transaction_id,
            Transaction.product_id == product_id,
            Transaction.type == TransactionType.BORROW,
            Transaction.status == TransactionStatus.ACTIVE,
        )
        .first()
    )


def _select_bulk_borrow(db: Session, product: Product, transaction_id: UUID | None) -> Transaction:
    if transaction_id is None:
        raise ValidationError("Select which borrow is being returned.")
    if product.borrowed_count < 1:
        raise ConflictError("No units of this item are on loan.")

    borrow = _find_active_borrow(db, product.id, transaction_id)
    if not borrow:
        raise NotFoundError("No active borrow with that id for this item.")
    return borrow


def _select_unique_borrow(db: Session, product: Product, transaction_id: UUID | None) -> Transaction | None:
    """
    Resolve the borrow being closed for a unique item.

    Uses the product's back-reference; rows written before the back-reference
    existed fall back to the oldest active borrow for the product.
    """
    if transaction_id is not None:
        borrow = _find_active_borrow(db, product.id, transaction_id)
        if not borrow:
            raise NotFoundError("No active borrow with that id for this item.")
        return borrow

    if product.active_borrow_id is not None:
        borrow = _find_active_borrow(db, product.id, product.active_borrow_id)
        if borrow:
            return borrow
        logger.warning(
            "Stale active_borrow_id=%s on product=%s; falling back to ledger lookup",
            product.active_borrow_id,
            product.id,
        )

    active = list_active_borrows(db, product.id)
    return active[0] if active else None


# -------------------------
# Create / edit / delete
# -------------------------
def create_product(db: Session, payload: ProductCreate, actor: Actor) -> Product:
    """
    Add an item and allocate its asset tag. A concurrent insert that grabs the
    same tag fails the unique constraint; the allocation is retried.
    """
    fields = payload.model_dump(exclude={"kind", "quantity"})

    for attempt in range(1, STOCK_ID_ATTEMPTS + 1):
        try:
            with unit_of_work(db):
                product = Product(
                    **fields,
                    stock_id=generate_stock_id(db, payload.category),
                    kind=payload.kind,
                    quantity=payload.quantity if payload.kind == ProductKind.BULK else 1,
                    borrowed_count=0,
                )
                if product.is_bulk:
                    product.status = _derive_bulk_status(product.quantity, 0)
                else:
                    product.status = ProductStatus.AVAILABLE
                db.add(product)
                db.flush()
                apply_stats_delta(db, contribution_of(product))
            break
        except IntegrityError:
            logger.warning("stock_id collision on attempt %d for category=%s", attempt, payload.category)
            if attempt == STOCK_ID_ATTEMPTS:
                raise ConflictError("Could not allocate a stock id, please retry.") from None

    log_activity(
        db,
        action="create",
        product_name=product.name,
        user_name=actor.name,
        details=f"Added {product.stock_id}",
        image_url=product.image_url,
    )
    return product


def update_product_details(db: Session, product_id: UUID, payload: ProductUpdate, actor: Actor) -> Product:
    changes = payload.model_dump(exclude_unset=True)

    with unit_of_work(db):
        product = lock_product(db, product_id)
        for field, value in changes.items():
            if field == "name" and value is None:
                continue
            setattr(product, field, value)

    if changes:
        log_activity(
            db,
            action="update",
            product_name=product.name,
            user_name=actor.name,
            details=f"Updated {', '.join(sorted(changes))}",
            image_url=product.image_url,
        )
    return product


def delete_product(db: Session, product_id: UUID, actor: Actor) -> None:
    """
    Soft delete. The item's current contribution is removed from the stats.
    """
    with unit_of_work(db):
        product = lock_product(db, product_id)
        if product.borrowed_count > 0 or product.status == ProductStatus.BORROWED:
            raise ConflictError("Item has units on loan; return them before deleting.")

        contribution = contribution_of(product)
        product.is_deleted = True
        product.deleted_at = utc_now()
        apply_stats_delta(db, {field: -value for field, value in contribution.items()})

    log_activity(
        db,
        action="delete",
        product_name=product.name,
        user_name=actor.name,
        details=f"Deleted {product.stock_id}",
    )


# -------------------------
# Borrow / return
# -------------------------
def borrow_product(db: Session, product_id: UUID, payload: BorrowRequest, actor: Actor) -> Transaction:
    """
    Lend one unit. Creates the `active` borrow entry; unique items also get a
    back-reference to it.
    """
    signature_url = _require_text(payload.signature_url, "A signature is required to borrow an item.")

    with unit_of_work(db):
        product = lock_product(db, product_id)

        if product.is_bulk:
            if product.available_units < 1:
                raise ConflictError("No units left to borrow.")
        elif product.status != ProductStatus.AVAILABLE:
            raise ConflictError(f"Item is not available (status: {product.status.value}).")

        borrow = Transaction(
            id=uuid.uuid4(),
            type=TransactionType.BORROW,
            status=TransactionStatus.ACTIVE,
            product_id=product.id,
            product_name=product.name,
            quantity=1,
            actor_id=actor.id,
            actor_name=actor.name,
            room=payload.room,
            phone=payload.phone,
            signature_url=signature_url,
            borrow_date=utc_now(),
            return_date=as_utc(payload.return_date),
        )
        db.add(borrow)

        if product.is_bulk:
            apply_stats_delta(db, bulk_borrow_delta(product.quantity, product.borrowed_count))
            product.borrowed_count += 1
        else:
            product.status = ProductStatus.BORROWED
            product.active_borrow_id = borrow.id
            reconcile_status_change(db, ProductStatus.AVAILABLE, ProductStatus.BORROWED)

    log_activity(
        db,
        action="borrow",
        product_name=product.name,
        user_name=actor.name,
        image_url=product.image_url,
    )
    return borrow


def complete_return(db: Session, product_id: UUID, payload: ReturnRequest, actor: Actor) -> Transaction:
    """
    Close one borrow and append the audit `return` record.

    - unique: the borrow is found through the back-reference, which is cleared.
    - bulk: the caller names the borrow (`transaction_id`).

    Signature and returner name are required; nothing is written without them.
    Returns the audit record.
    """
    signature_url = _require_text(payload.signature_url, "A signature is required to return an item.")
    returner_name = _require_text(payload.returner_name, "The returner's name is required.")

    with unit_of_work(db):
        product = lock_product(db, product_id)

        if product.is_bulk:
            borrow = _select_bulk_borrow(db, product, payload.transaction_id)
        else:
            if product.status != ProductStatus.BORROWED:
                raise ConflictError("Item is not currently borrowed.")
            borrow = _select_unique_borrow(db, product, payload.transaction_id)

        now = utc_now()
        if borrow is not None:
            borrow.status = TransactionStatus.COMPLETED
            borrow.returned_at = now
            borrow.returner_name = returner_name
            borrow.return_receiver_id = actor.id
            borrow.return_receiver_name = actor.name
            borrow.return_notes = payload.notes
            borrow.return_signature_url = signature_url
        else:
            logger.warning("Return of product=%s closed no ledger entry: no active borrow found", product.id)

        record = Transaction(
            type=TransactionType.RETURN,
            status=TransactionStatus.COMPLETED,
            product_id=product.id,
            product_name=product.name,
            quantity=1,
            actor_id=actor.id,
            actor_name=actor.name,
            returner_name=returner_name,
            return_notes=payload.notes,
            signature_url=signature_url,
            timestamp=now,
            borrow_transaction_id=borrow.id if borrow is not None else None,
        )
        db.add(record)

        if product.is_bulk:
            apply_stats_delta(db, bulk_return_delta(product.quantity, product.borrowed_count))
            product.borrowed_count -= 1
        else:
            product.status = ProductStatus.AVAILABLE
            product.active_borrow_id = None
            reconcile_status_change(db, ProductStatus.BORROWED, ProductStatus.AVAILABLE)

    log_activity(
        db,
        action="return",
        product_name=product.name,
        user_name=returner_name,
        details=payload.notes,
        image_url=product.image_url,
    )
    return record


# -------------------------
# Requisition / stock
# -------------------------
def requisition_locked(
    db: Session,
    product: Product,
    *,
    quantity: int,
    actor: Actor,
    room: str | None = None,
    position: str | None = None,
    reason: str | None = None,
    signature_url: str | None = None,
) -> Transaction:
    """
    Permanently take `quantity` units out of stock.
    The caller holds the product lock and owns the transaction.
    """
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")

    if product.is_bulk:
        if quantity > product.available_units:
            raise ConflictError(f"Insufficient stock. Max available: {product.available_units}")
        before = contribution_of(product)
        product.quantity -= quantity
        product.status = _derive_bulk_status(product.quantity, product.borrowed_count)
        apply_stats_delta(db, contribution_delta(before, contribution_of(product)))
    else:
        if quantity != 1:
            raise ValidationError("A unique item can only be requisitioned as a single unit.")
        if product.status != ProductStatus.AVAILABLE:
            raise ConflictError(f"Item is not available (status: {product.status.value}).")
        product.status = ProductStatus.REQUISITIONED
        reconcile_status_change(db, ProductStatus.AVAILABLE, ProductStatus.REQUISITIONED)

    record = Transaction(
        type=TransactionType.REQUISITION,
        status=TransactionStatus.COMPLETED,
        product_id=product.id,
        product_name=product.name,
        quantity=quantity,
        actor_id=actor.id,
        actor_name=actor.name,
        room=room,
        position=position,
        reason=reason,
        signature_url=signature_url,
        timestamp=utc_now(),
    )
    db.add(record)
    return record


def requisition_product(db: Session, product_id: UUID, payload: RequisitionRequest, actor: Actor) -> Transaction:
    signature_url = _require_text(payload.signature_url, "A signature is required for a requisition.")

    with unit_of_work(db):
        product = lock_product(db, product_id)
        record = requisition_locked(
            db,
            product,
            quantity=payload.quantity,
            actor=actor,
            room=payload.room,
            position=payload.position,
            reason=payload.reason,
            signature_url=signature_url,
        )

    log_activity(
        db,
        action="requisition",
        product_name=product.name,
        user_name=actor.name,
        details=f"Qty: {payload.quantity} Reason: {payload.reason}",
        image_url=product.image_url,
    )
    return record


def adjust_stock(
    db: Session,
    product_id: UUID,
    mode: StockAdjustMode,
    delta: int | None,
    actor: Actor,
) -> int:
    """
    Correct the stock of a bulk item and return the new quantity.

    - set: `delta` is the new total.
    - add: `delta` is added; negative values record loss or removal.

    No change requested (`delta` missing or 0) means no write at all, so the
    status and stats are left untouched.
    """
    if not delta:
        return get_product(db, product_id).quantity

    with unit_of_work(db):
        product = lock_product(db, product_id)
        if not product.is_bulk:
            raise ValidationError("Stock can only be adjusted on bulk items.")

        if mode == StockAdjustMode.SET:
            new_quantity = delta
        else:
            new_quantity = product.quantity + delta

        if new_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative.")
        if new_quantity < product.borrowed_count:
            raise ValidationError(
                f"Stock quantity cannot be lower than the {product.borrowed_count} units on loan."
            )

        before = contribution_of(product)
        product.quantity = new_quantity
        product.status = _derive_bulk_status(new_quantity, product.borrowed_count)
        apply_stats_delta(db, contribution_delta(before, contribution_of(product)))

    log_activity(
        db,
        action="update",
        product_name=product.name,
        user_name=actor.name,
        details=f"Stock {mode.value} {delta} -> {new_quantity}",
    )
    return new_quantity


def set_product_status(db: Session, product_id: UUID, new_status: ProductStatus, actor: Actor) -> Product:
    """
    Manual status edit for unique items (maintenance, write-off, back to shelf).
    Lending state only changes through borrow / return.
    """
    if new_status == ProductStatus.BORROWED:
        raise ValidationError("Use the borrow flow to lend an item.")

    with unit_of_work(db):
        product = lock_product(db, product_id)
        if product.is_bulk:
            raise ValidationError("The status of a bulk item follows its stock.")
        if product.status == ProductStatus.BORROWED:
            raise ConflictError("Item is on loan; return it first.")

        old_status = product.status
        if old_status != new_status:
            product.status = new_status
            reconcile_status_change(db, old_status, new_status)

    if old_status != new_status:
        log_activity(
            db,
            action="update",
            product_name=product.name,
            user_name=actor.name,
            details=f"Status {old_status.value} -> {new_status.value}",
            status=new_status.value,
        )
    return product
