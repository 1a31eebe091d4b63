# schemas/product.py
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

from app.models.product import ProductKind, ProductStatus

NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]

OptStr100 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=100),
    ]
    | None
)

OptStr255 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=255),
    ]
    | None
)

_OPTIONAL_TEXT_FIELDS = (
    "brand",
    "category",
    "location",
    "serial_number",
    "description",
    "warranty_info",
    "image_url",
)


class ProductBase(BaseModel):
    """
    Shared descriptive fields.

    - Optional strings accept None and are limited in length when present.
    - Empty strings from UI are normalized to None.
    """

    name: NameStr
    brand: OptStr100 = None
    category: OptStr100 = None
    location: OptStr255 = None
    serial_number: OptStr100 = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    warranty_info: OptStr255 = None
    purchase_date: date | None = None
    image_url: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(*_OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProductCreate(ProductBase):
    """Used when adding a new item to the inventory."""

    kind: ProductKind = ProductKind.UNIQUE
    quantity: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def validate_kind_rules(self) -> "ProductCreate":
        if self.kind == ProductKind.UNIQUE and self.quantity != 1:
            raise ValueError("A unique item always has quantity 1")
        return self


class ProductUpdate(BaseModel):
    """
    PATCH of descriptive fields. Stock and status have their own endpoints.
    """

    name: NameStr | None = None
    brand: OptStr100 = None
    category: OptStr100 = None
    location: OptStr255 = None
    serial_number: OptStr100 = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    warranty_info: OptStr255 = None
    purchase_date: date | None = None
    image_url: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(*_OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class StockAdjustMode(str, Enum):
    SET = "set"
    ADD = "add"


class StockAdjustRequest(BaseModel):
    """
    mode=set: `delta` is the new total.
    mode=add: `delta` is added to the current total (negative removes units).
    """

    mode: StockAdjustMode = StockAdjustMode.ADD
    delta: int | None = None

    model_config = ConfigDict(extra="forbid")


class StockAdjustResponse(BaseModel):
    product_id: UUID
    quantity: int
    borrowed_count: int
    status: ProductStatus


class StatusUpdateRequest(BaseModel):
    status: ProductStatus

    model_config = ConfigDict(extra="forbid")


class ProductResponse(ProductBase):
    id: UUID
    stock_id: str
    kind: ProductKind
    status: ProductStatus
    quantity: int
    borrowed_count: int
    available_units: int
    active_borrow_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, extra="forbid")
