"""
Event Services - Typed domain events and the transactional outbox.

Provides:
- DomainEvent variants staged by ledger mutations
- OUTBOX-PATTERN: outbox rows written in the mutation's transaction
"""

from .domain_event import (
    CatalogUpdated,
    DomainEvent,
    EventType,
    OrderClosed,
    OrderUpdated,
    StockAdjusted,
    TableUpdated,
)

from .outbox_service import (
    mark_published,
    write_domain_event,
    write_outbox_event,
)

__all__ = [
    # Typed event API
    "DomainEvent",
    "EventType",
    "TableUpdated",
    "OrderUpdated",
    "OrderClosed",
    "StockAdjusted",
    "CatalogUpdated",
    # OUTBOX-PATTERN
    "write_outbox_event",
    "write_domain_event",
    "mark_published",
]
