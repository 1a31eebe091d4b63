# app/models/transaction.py
import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class TransactionType(str, PyEnum):
    BORROW = "borrow"
    RETURN = "return"
    REQUISITION = "requisition"


class TransactionStatus(str, PyEnum):
    ACTIVE = "active"
    COMPLETED = "completed"


TRANSACTION_TYPE_ENUM = Enum(
    TransactionType,
    name="transaction_type_enum",
    native_enum=False,
    values_callable=lambda e: [m.value for m in e],
)

TRANSACTION_STATUS_ENUM = Enum(
    TransactionStatus,
    name="transaction_status_enum",
    native_enum=False,
    values_callable=lambda e: [m.value for m in e],
)


class Transaction(Base):
    """
    Append-only ledger entry.

    A borrow starts `active` and becomes `completed` when that unit comes back;
    the return itself is recorded as a separate `return` row. Rows are never deleted.
    """

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    type: Mapped[TransactionType] = mapped_column(TRANSACTION_TYPE_ENUM, nullable=False, index=True)
    status: Mapped[TransactionStatus] = mapped_column(
        TRANSACTION_STATUS_ENUM,
        nullable=False,
        index=True,
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))

    # Signer identity (borrower, requester or receiving staff, depending on type)
    actor_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    actor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    room: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    signature_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Borrow
    borrow_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    return_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Expected return date given by the borrower.",
    )

    # Return metadata, stamped on the borrow row when it is closed
    returned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    returner_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    return_receiver_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    return_receiver_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    return_notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    return_signature_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    repair_note: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Return / requisition records
    timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    borrow_transaction_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        doc="Return records: the borrow row this return closed, if any.",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
