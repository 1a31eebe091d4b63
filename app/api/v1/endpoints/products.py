# app/api/v1/endpoints/products.py
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.core.database import get_db
from app.dependencies.authz import ADMIN_ONLY, STAFF_ONLY, require_roles
from app.models.product import ProductKind, ProductStatus
from app.schemas.auth import Actor
from app.schemas.product import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StatusUpdateRequest,
    StockAdjustRequest,
    StockAdjustResponse,
)
from app.schemas.transaction import (
    BorrowRequest,
    RequisitionRequest,
    ReturnRequest,
    TransactionResponse,
)
from app.services import inventory_service
from app.services.errors import InventoryError

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_or_404(db: Session, product_id: UUID):
    try:
        return inventory_service.get_product(db, product_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", response_model=list[ProductResponse], tags=["products"])
def list_products(
    search: Optional[str] = Query(None, description="Search by name, stock id, brand or serial number"),
    kind: Optional[ProductKind] = Query(None),
    status_filter: Optional[ProductStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ProductResponse]:
    products = inventory_service.list_products(
        db,
        search=search,
        kind=kind,
        status=status_filter,
        category=category,
        limit=limit,
    )
    return [ProductResponse.model_validate(p) for p in products]


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["products"],
)
def create_product(
    payload: ProductCreate,
    current_user: Actor = Depends(require_roles(STAFF_ONLY)),
    db: Session = Depends(get_db),
) -> ProductResponse:
    try:
        product = inventory_service.create_product(db, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error creating product: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create product.")

    return ProductResponse.model_validate(product)


@router.get("/by-stock-id/{stock_id}", response_model=ProductResponse, tags=["products"])
def get_product_by_stock_id(
    stock_id: str,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProductResponse:
    """
    Look up an item by the asset tag printed on its QR label.
    """
    try:
        product = inventory_service.get_product_by_stock_id(db, stock_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ProductResponse.model_validate(product)


@router.get("/{product_id}", response_model=ProductResponse, tags=["products"])
def get_product(
    product_id: UUID,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProductResponse:
    return ProductResponse.model_validate(_get_or_404(db, product_id))


@router.patch("/{product_id}", response_model=ProductResponse, tags=["products"])
def update_product(
    product_id: UUID,
    payload: ProductUpdate,
    current_user: Actor = Depends(require_roles(STAFF_ONLY)),
    db: Session = Depends(get_db),
) -> ProductResponse:
    try:
        product = inventory_service.update_product_details(db, product_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error updating product=%s: %s", product_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update product.")

    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["products"])
def delete_product(
    product_id: UUID,
    current_user: Actor = Depends(require_roles(ADMIN_ONLY)),
    db: Session = Depends(get_db),
) -> Response:
    try:
        inventory_service.delete_product(db, product_id, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error deleting product=%s: %s", product_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete product.")

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{product_id}/stock", response_model=StockAdjustResponse, tags=["products"])
def adjust_stock(
    product_id: UUID,
    payload: StockAdjustRequest,
    current_user: Actor = Depends(require_roles(ADMIN_ONLY)),
    db: Session = Depends(get_db),
) -> StockAdjustResponse:
    """
    Correct the stock of a bulk item (`set` a new total or `add` a signed delta).
    """
    try:
        inventory_service.adjust_stock(db, product_id, payload.mode, payload.delta, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error adjusting stock product=%s: %s", product_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to adjust stock.")

    product = _get_or_404(db, product_id)
    return StockAdjustResponse(
        product_id=product.id,
        quantity=product.quantity,
        borrowed_count=product.borrowed_count,
        status=product.status,
    )


@router.post("/{product_id}/status", response_model=ProductResponse, tags=["products"])
def update_status(
    product_id: UUID,
    payload: StatusUpdateRequest,
    current_user: Actor = Depends(require_roles(ADMIN_ONLY)),
    db: Session = Depends(get_db),
) -> ProductResponse:
    try:
        product = inventory_service.set_product_status(db, product_id, payload.status, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error updating status product=%s: %s", product_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update status.")

    return ProductResponse.model_validate(product)


@router.get(
    "/{product_id}/active-borrows",
    response_model=list[TransactionResponse],
    tags=["products"],
)
def list_active_borrows(
    product_id: UUID,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TransactionResponse]:
    """
    Open borrows of an item, oldest first. Returning a bulk item requires
    picking one of these.
    """
    _get_or_404(db, product_id)
    borrows = inventory_service.list_active_borrows(db, product_id)
    return [TransactionResponse.model_validate(t) for t in borrows]


@router.get(
    "/{product_id}/transactions",
    response_model=list[TransactionResponse],
    tags=["products"],
)
def list_product_transactions(
    product_id: UUID,
    limit: int = Query(100, ge=1, le=500),
    current_user: Actor = Depends(require_roles(STAFF_ONLY)),
    db: Session = Depends(get_db),
) -> list[TransactionResponse]:
    _get_or_404(db, product_id)
    records = inventory_service.list_product_transactions(db, product_id, limit=limit)
    return [TransactionResponse.model_validate(t) for t in records]


@router.post(
    "/{product_id}/borrow",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["products"],
)
def borrow_product(
    product_id: UUID,
    payload: BorrowRequest,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TransactionResponse:
    try:
        borrow = inventory_service.borrow_product(db, product_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error borrowing product=%s: %s", product_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to borrow item.")

    return TransactionResponse.model_validate(borrow)


@router.post(
    "/{product_id}/return",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["products"],
)
def return_product(
    product_id: UUID,
    payload: ReturnRequest,
    current_user: Actor = Depends(require_roles(STAFF_ONLY)),
    db: Session = Depends(get_db),
) -> TransactionResponse:
    """
    Receive a returned item. The acting staff member is stamped as receiver;
    the returner signs.
    """
    try:
        record = inventory_service.complete_return(db, product_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error returning product=%s: %s", product_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to return item.")

    return TransactionResponse.model_validate(record)


@router.post(
    "/{product_id}/requisition",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["products"],
)
def requisition_product(
    product_id: UUID,
    payload: RequisitionRequest,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TransactionResponse:
    try:
        record = inventory_service.requisition_product(db, product_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error requisitioning product=%s: %s", product_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to requisition item.")

    return TransactionResponse.model_validate(record)
