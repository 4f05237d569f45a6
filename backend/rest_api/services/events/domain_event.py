"""
Domain Event definitions.
Immutable value objects for the events a committed ledger mutation emits.

The set of events is closed: every mutation stages exactly one of the
variants below. Subscribers receive them in commit order per tenant.

Wire form (to_dict):
    {"type": "order.updated", "tenant_id": 1, "payload": {...}, "ts": 1712345678901}
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar


class EventType(str, Enum):
    """Event type enumeration for type safety."""

    TABLE_UPDATED = "table.updated"
    ORDER_UPDATED = "order.updated"
    ORDER_CLOSED = "order.closed"
    STOCK_ADJUSTED = "stock.adjusted"
    CATALOG_UPDATED = "catalog.updated"


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Envelope fields that are not part of the payload
_ENVELOPE = frozenset({"tenant_id", "ts"})


@dataclass(frozen=True, slots=True, kw_only=True)
class DomainEvent(ABC):
    """
    Base of every ledger event.

    Attributes:
        tenant_id: Tenant that committed the mutation
        ts: When the event was staged
    """

    event_type: ClassVar[EventType]
    aggregate_type: ClassVar[str]

    tenant_id: int
    ts: datetime = field(default_factory=_now)

    @property
    def type(self) -> str:
        return self.event_type.value

    @property
    @abstractmethod
    def aggregate_id(self) -> int:
        """Id of the entity the event is about."""

    def payload(self) -> dict[str, Any]:
        """Variant fields as plain JSON-compatible values."""
        data: dict[str, Any] = {}
        for f in fields(self):
            if f.name in _ENVELOPE:
                continue
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = [dict(v) if isinstance(v, dict) else v for v in value]
            data[f.name] = value
        return data

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": self.type,
            "tenant_id": self.tenant_id,
            "payload": self.payload(),
            "ts": int(self.ts.timestamp() * 1000),
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())


@dataclass(frozen=True, slots=True, kw_only=True)
class TableUpdated(DomainEvent):
    """
    A table was created, edited, opened or removed.

    order_id is set when the change bound a new order to the table.
    """

    event_type: ClassVar[EventType] = EventType.TABLE_UPDATED
    aggregate_type: ClassVar[str] = "table"

    table_id: int
    number: str
    status: str
    action: str = "updated"  # created | updated | opened | removed
    order_id: int | None = None

    @property
    def aggregate_id(self) -> int:
        return self.table_id


@dataclass(frozen=True, slots=True, kw_only=True)
class OrderUpdated(DomainEvent):
    """
    Items of an open order changed.

    items is the full item list after the change. stock lists the products
    whose stock moved with it, as {"product_id", "stock"} snapshots.
    """

    event_type: ClassVar[EventType] = EventType.ORDER_UPDATED
    aggregate_type: ClassVar[str] = "order"

    order_id: int
    table_id: int
    change: str  # items_added | item_removed | sent_to_kitchen | item_status | delivered
    total_cents: int
    items: tuple[dict[str, Any], ...] = ()
    stock: tuple[dict[str, Any], ...] = ()

    @property
    def aggregate_id(self) -> int:
        return self.order_id


@dataclass(frozen=True, slots=True, kw_only=True)
class OrderClosed(DomainEvent):
    """An order was paid; its table went back to table_status."""

    event_type: ClassVar[EventType] = EventType.ORDER_CLOSED
    aggregate_type: ClassVar[str] = "order"

    order_id: int
    table_id: int
    total_cents: int
    payment_method: str
    table_status: str

    @property
    def aggregate_id(self) -> int:
        return self.order_id


@dataclass(frozen=True, slots=True, kw_only=True)
class StockAdjusted(DomainEvent):
    """A manual stock adjustment was recorded."""

    event_type: ClassVar[EventType] = EventType.STOCK_ADJUSTED
    aggregate_type: ClassVar[str] = "product"

    product_id: int
    before: int
    after: int
    delta: int
    reason: str
    audit_log_id: int

    @property
    def aggregate_id(self) -> int:
        return self.product_id


@dataclass(frozen=True, slots=True, kw_only=True)
class CatalogUpdated(DomainEvent):
    """A product or category was created, edited or removed."""

    event_type: ClassVar[EventType] = EventType.CATALOG_UPDATED
    aggregate_type: ClassVar[str] = "catalog"

    entity: str  # product | category
    entity_id: int
    action: str  # created | updated | removed

    @property
    def aggregate_id(self) -> int:
        return self.entity_id

