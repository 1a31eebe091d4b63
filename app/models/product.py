# app/models/product.py
import uuid
from datetime import date, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Float,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ProductKind(str, PyEnum):
    UNIQUE = "unique"
    BULK = "bulk"


class ProductStatus(str, PyEnum):
    AVAILABLE = "available"
    BORROWED = "borrowed"
    MAINTENANCE = "maintenance"
    REQUISITIONED = "requisitioned"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


PRODUCT_KIND_ENUM = Enum(
    ProductKind,
    name="product_kind_enum",
    native_enum=False,
    values_callable=_enum_values,
)

PRODUCT_STATUS_ENUM = Enum(
    ProductStatus,
    name="product_status_enum",
    native_enum=False,
    values_callable=_enum_values,
)


class Product(Base):
    """
    An inventory resource.

    - unique: one physical unit; `status` is the only availability signal.
    - bulk: tracked by count; available units = quantity - borrowed_count.
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("borrowed_count >= 0", name="ck_products_borrowed_non_negative"),
        CheckConstraint("borrowed_count <= quantity", name="ck_products_borrowed_le_quantity"),
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    stock_id: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        index=True,
        doc="Human-facing asset tag, e.g. COM-001 (printed on the QR label).",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    serial_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    warranty_info: Mapped[str | None] = mapped_column(String(255), nullable=True)
    purchase_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    kind: Mapped[ProductKind] = mapped_column(
        PRODUCT_KIND_ENUM,
        nullable=False,
        default=ProductKind.UNIQUE,
    )
    status: Mapped[ProductStatus] = mapped_column(
        PRODUCT_STATUS_ENUM,
        nullable=False,
        default=ProductStatus.AVAILABLE,
    )
    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        server_default=text("1"),
    )
    borrowed_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    active_borrow_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        doc="Unique items only: the open borrow transaction, cleared on return.",
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
    )

    @property
    def is_bulk(self) -> bool:
        return self.kind == ProductKind.BULK

    @property
    def available_units(self) -> int:
        if self.is_bulk:
            return (self.quantity or 0) - (self.borrowed_count or 0)
        return 1 if self.status == ProductStatus.AVAILABLE else 0
