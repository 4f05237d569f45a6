"""
Outbox service for transactional event publishing.

OUTBOX-PATTERN: writes the event row atomically with the ledger mutation.
The unit of work dispatches the event only after the commit succeeded and
then marks the row PUBLISHED.

Usage:
    table = Table(...)
    db.add(table)
    db.flush()
    write_domain_event(db, TableUpdated(tenant_id=..., table_id=table.id, ...))
    safe_commit(db)  # Atomic: both table and outbox event are saved together
"""

import json
from typing import Any

from sqlalchemy.orm import Session

from rest_api.models import OutboxEvent, OutboxStatus, utcnow
from shared.config.logging import get_logger

from .domain_event import DomainEvent

logger = get_logger(__name__)


def write_outbox_event(
    db: Session,
    tenant_id: int,
    event_type: str,
    aggregate_type: str,
    aggregate_id: int,
    payload: dict[str, Any],
) -> OutboxEvent:
    """
    Write an event to the outbox table.

    MUST be called within the same transaction as the ledger mutation.

    Args:
        db: SQLAlchemy session (same session as the mutation)
        tenant_id: Tenant ID for multi-tenant isolation
        event_type: Event type value (e.g., "order.updated")
        aggregate_type: Type of aggregate (e.g., "order", "table", "product")
        aggregate_id: ID of the aggregate
        payload: Wire form of the event (will be JSON serialized)

    Returns:
        The created OutboxEvent instance
    """
    outbox_event = OutboxEvent(
        tenant_id=tenant_id,
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        payload=json.dumps(payload),
        status=OutboxStatus.PENDING,
    )
    db.add(outbox_event)
    # Don't flush/commit - let the caller control the transaction
    logger.debug(
        "Outbox event queued",
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
    )
    return outbox_event


def write_domain_event(db: Session, event: DomainEvent) -> OutboxEvent:
    """Write a typed domain event to the outbox."""
    return write_outbox_event(
        db=db,
        tenant_id=event.tenant_id,
        event_type=event.type,
        aggregate_type=event.aggregate_type,
        aggregate_id=event.aggregate_id,
        payload=event.to_dict(),
    )


def mark_published(outbox_event: OutboxEvent) -> None:
    """Flag an outbox row as dispatched. Caller commits."""
    outbox_event.status = OutboxStatus.PUBLISHED
    outbox_event.processed_at = utcnow()
