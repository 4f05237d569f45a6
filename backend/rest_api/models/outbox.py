"""
Outbox model for transactional event publishing.

Events are inserted in the same transaction as the ledger mutation that
produced them, so an event row exists if and only if the mutation committed.
After commit the unit of work dispatches the event to subscribers and marks
the row PUBLISHED.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Enum as SQLEnum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntPK, utcnow


class OutboxStatus(str, Enum):
    """Status of an outbox event."""
    PENDING = "PENDING"      # Committed, not yet dispatched
    PUBLISHED = "PUBLISHED"  # Dispatched to subscribers


class OutboxEvent(Base):
    """
    Persisted copy of a committed domain event.

    Consumers that reconnect re-query state instead of replaying these rows;
    the table is an audit of what was published, not a redelivery queue.
    """
    __tablename__ = "outbox_event"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    tenant_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    aggregate_type: Mapped[str] = mapped_column(String(50), nullable=False)  # "table", "order", "product"
    aggregate_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # JSON serialized wire form ({type, tenant_id, payload, ts})
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[OutboxStatus] = mapped_column(
        SQLEnum(OutboxStatus, name="outbox_status"),
        default=OutboxStatus.PENDING,
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_outbox_event_tenant_status", "tenant_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<OutboxEvent(id={self.id}, type={self.event_type}, status={self.status.value})>"
