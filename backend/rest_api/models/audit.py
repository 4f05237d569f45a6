"""
Audit Log Model.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Index, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntPK, utcnow


class AuditLog(Base):
    """
    Append-only record of every stock change.

    before/after hold the relevant snapshot ({"stock": n}); the applied delta
    is always after["stock"] - before["stock"]. Rows are never updated or
    deleted; the mapper hooks below reject both.
    """

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )

    # Who made the change (None for system movements without a user)
    actor_user_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), index=True
    )

    # What was changed
    action: Mapped[str] = mapped_column(Text, nullable=False)  # STOCK_ADJUST
    entity_type: Mapped[str] = mapped_column(Text, nullable=False, default="product")
    entity_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    before: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    after: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    __table_args__ = (
        Index("ix_audit_log_tenant_entity", "tenant_id", "entity_type", "entity_id"),
        Index("ix_audit_log_tenant_created", "tenant_id", "created_at"),
    )

    @property
    def delta(self) -> int:
        return self.after["stock"] - self.before["stock"]

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action='{self.action}', entity_id={self.entity_id}, "
            f"before={self.before}, after={self.after})>"
        )


@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target: AuditLog) -> None:
    raise RuntimeError(f"AuditLog {target.id} is append-only and cannot be updated")


@event.listens_for(AuditLog, "before_delete")
def _reject_audit_delete(mapper, connection, target: AuditLog) -> None:
    raise RuntimeError(f"AuditLog {target.id} is append-only and cannot be deleted")
