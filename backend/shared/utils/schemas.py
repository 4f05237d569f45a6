"""
Shared Pydantic schemas used across the application.

Request types forbid unknown fields: a client cannot slip in a price,
a total or a stock quantity the ledger computes itself.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.config.constants import Limits
from shared.utils.validators import validate_image_url


# =============================================================================
# Common Types
# =============================================================================

TableStatus = Literal["AVAILABLE", "OCCUPIED", "RESERVED"]
OrderStatus = Literal["OPEN", "PAID"]
ItemStatus = Literal["PENDING", "PREPARING", "READY", "DELIVERED"]
PaymentMethod = Literal["CASH", "CARD", "TRANSFER"]


class StrictInput(BaseModel):
    """Base for request bodies."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ErrorResponse(BaseModel):
    """Body of every rejected request."""

    detail: str


# =============================================================================
# Table Schemas
# =============================================================================


class TableCreate(StrictInput):
    """
    New table. Tables are created free or reserved, never occupied.
    Without a number the next free numeric label is used.
    """

    number: str | None = Field(default=None, min_length=1, max_length=20)
    capacity: int = Field(default=4, ge=1, le=50)
    zone: str | None = Field(default=None, max_length=50)
    status: Literal["AVAILABLE", "RESERVED"] = "AVAILABLE"


class TableUpdate(StrictInput):
    """Editable table fields. Setting OCCUPIED opens the table."""

    number: str | None = Field(default=None, min_length=1, max_length=20)
    capacity: int | None = Field(default=None, ge=1, le=50)
    zone: str | None = Field(default=None, max_length=50)
    status: TableStatus | None = None


class TableOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: str
    capacity: int
    zone: str | None = None
    status: TableStatus
    is_active: bool
    created_at: datetime


# =============================================================================
# Order Schemas
# =============================================================================


class OrderItemInput(StrictInput):
    """A product line to add. Price and name come from the product."""

    product_id: int = Field(ge=1)
    qty: int = Field(default=1, ge=1, le=Limits.MAX_ITEM_QTY)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class AddItemsRequest(StrictInput):
    items: list[OrderItemInput] = Field(min_length=1, max_length=Limits.MAX_ITEMS_PER_CALL)


class CreateOrderRequest(StrictInput):
    table_id: int = Field(ge=1)


class UpdateItemStatusRequest(StrictInput):
    status: ItemStatus


class CloseOrderRequest(StrictInput):
    payment_method: PaymentMethod


class OrderItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    name: str
    qty: int
    unit_price_cents: int
    subtotal_cents: int
    status: ItemStatus
    position: int
    notes: str | None = None
    sent_at: datetime | None = None


class OrderOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    table_id: int
    status: OrderStatus
    total_cents: int
    payment_method: PaymentMethod | None = None
    items: list[OrderItemOutput] = []
    created_at: datetime
    closed_at: datetime | None = None
    closed_by_id: int | None = None


class KitchenTicketOutput(BaseModel):
    """Order as seen by the kitchen: only items being prepared or ready."""

    model_config = ConfigDict(from_attributes=True)

    order_id: int
    table_id: int
    table_number: str
    items: list[OrderItemOutput]


# =============================================================================
# Catalog Schemas
# =============================================================================


class CategoryCreate(StrictInput):
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    order: int | None = Field(default=None, ge=0)


class CategoryUpdate(StrictInput):
    name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    order: int | None = Field(default=None, ge=0)


class CategoryOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    order: int
    is_active: bool


class ProductCreate(StrictInput):
    """
    New product. stock_quantity is the initial stock; it is recorded in the
    audit log as "Stock inicial" and ignored when stock_enabled is False.
    """

    category_id: int = Field(ge=1)
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    price_cents: int = Field(ge=0)
    sku: str | None = Field(default=None, max_length=64)
    description: str | None = Field(default=None, max_length=500)
    image: str | None = None
    stock_enabled: bool = False
    stock_quantity: int = Field(default=0, ge=0)
    stock_min: int = Field(default=Limits.DEFAULT_STOCK_MIN, ge=0)

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: str | None) -> str | None:
        return validate_image_url(value)


class ProductUpdate(StrictInput):
    """Editable product fields. Stock moves only through stock adjustments."""

    category_id: int | None = Field(default=None, ge=1)
    name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    price_cents: int | None = Field(default=None, ge=0)
    sku: str | None = Field(default=None, max_length=64)
    description: str | None = Field(default=None, max_length=500)
    image: str | None = None
    stock_enabled: bool | None = None
    stock_min: int | None = Field(default=None, ge=0)

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: str | None) -> str | None:
        return validate_image_url(value)


class ProductOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    sku: str | None = None
    name: str
    description: str | None = None
    image: str | None = None
    price_cents: int
    stock_enabled: bool
    stock_quantity: int
    stock_min: int
    is_low_stock: bool
    is_out_of_stock: bool
    is_active: bool


# =============================================================================
# Stock Schemas
# =============================================================================


class StockAdjustRequest(StrictInput):
    delta: int
    # Blank reasons and zero deltas are rejected by the stock ledger itself
    reason: str = Field(max_length=Limits.MAX_REASON_LENGTH)


class AuditLogOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_user_id: int | None = None
    action: str
    entity_type: str
    entity_id: int
    before: dict
    after: dict
    delta: int
    reason: str
    created_at: datetime


class StockAdjustOutput(BaseModel):
    product: ProductOutput
    audit_log: AuditLogOutput


class StockAlertsOutput(BaseModel):
    low_stock: list[ProductOutput]
    out_of_stock: list[ProductOutput]


# =============================================================================
# Tenant / Query Schemas
# =============================================================================


class TenantOutput(BaseModel):
    id: int
    name: str
    slug: str
    plan: str
    limits: dict[str, int]
    usage: dict[str, int]


class QueryFilter(BaseModel):
    """
    Filters of the generic query. Fields that do not apply to an entity
    type are ignored.
    """

    model_config = ConfigDict(extra="forbid")

    status: str | None = None
    table_id: int | None = None
    category_id: int | None = None
    product_id: int | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    date_field: Literal["created_at", "closed_at"] = "created_at"
    search: str | None = None
    include_inactive: bool = False
    limit: int = Field(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)

    @field_validator("date_from", "date_to")
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        # Timestamps are stored in UTC; naive values are taken as UTC already
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        return value
