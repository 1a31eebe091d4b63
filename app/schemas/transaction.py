# app/schemas/transaction.py
from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from app.models.transaction import TransactionStatus, TransactionType

RequiredStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]


class BorrowRequest(BaseModel):
    room: RequiredStr
    phone: RequiredStr
    return_date: datetime = Field(description="Expected return date")
    signature_url: str = Field(description="URL of the uploaded signature image")

    model_config = ConfigDict(extra="forbid")


class ReturnRequest(BaseModel):
    """
    For bulk items `transaction_id` is required: several borrowers may hold units
    at once and the returner must pick which borrow is being closed.

    Signature and returner name are checked by the service so that a missing
    value is reported as a validation error before anything is written.
    """

    returner_name: str = ""
    signature_url: str = ""
    notes: str | None = None
    transaction_id: UUID | None = None

    model_config = ConfigDict(extra="forbid")


class RequisitionRequest(BaseModel):
    room: RequiredStr
    position: RequiredStr = "ครู"
    reason: RequiredStr
    quantity: int = Field(default=1, ge=1)
    signature_url: str = ""

    model_config = ConfigDict(extra="forbid")


class TransactionResponse(BaseModel):
    id: UUID
    type: TransactionType
    status: TransactionStatus
    product_id: UUID
    product_name: str | None = None
    quantity: int

    actor_id: str | None = None
    actor_name: str | None = None
    room: str | None = None
    phone: str | None = None
    position: str | None = None
    reason: str | None = None
    signature_url: str | None = None

    borrow_date: datetime | None = None
    return_date: datetime | None = None
    returned_at: datetime | None = None
    returner_name: str | None = None
    return_receiver_name: str | None = None
    return_notes: str | None = None
    return_signature_url: str | None = None

    timestamp: datetime | None = None
    borrow_transaction_id: UUID | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
