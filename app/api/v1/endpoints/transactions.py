# app/api/v1/endpoints/transactions.py
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.core.database import get_db
from app.models.transaction import Transaction
from app.schemas.auth import Actor
from app.schemas.transaction import TransactionResponse
from app.services.inventory_service import list_actor_borrows

router = APIRouter()


@router.get("/me", response_model=list[TransactionResponse], tags=["transactions"])
def my_borrow_history(
    limit: int = Query(100, ge=1, le=500),
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TransactionResponse]:
    """
    Borrow history of the current user, newest first.
    """
    borrows = list_actor_borrows(db, current_user.id, limit=limit)
    return [TransactionResponse.model_validate(t) for t in borrows]


@router.get("/{transaction_id}", response_model=TransactionResponse, tags=["transactions"])
def get_transaction(
    transaction_id: UUID,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TransactionResponse:
    record = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Transaction not found.")
    if record.actor_id != current_user.id and not current_user.is_staff:
        raise HTTPException(status_code=403, detail="Not allowed to view this transaction.")
    return TransactionResponse.model_validate(record)
