"""
Base class and AuditMixin for all SQLAlchemy ORM models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    """Timezone-aware current time used for every ledger timestamp."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class AuditMixin:
    """
    Mixin providing soft delete and audit trail fields.

    Fields added:
    - is_active: Soft delete flag (False = deleted, True = active)
    - created_at, updated_at, deleted_at: Audit timestamps
    - created_by_id, updated_by_id, deleted_by_id: User tracking

    Methods:
    - soft_delete(user_id): Mark entity as deleted
    - set_created_by(user_id) / set_updated_by(user_id)
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # No FK to app_user here: system actions have no user
    created_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    updated_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    deleted_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    def soft_delete(self, user_id: int | None) -> None:
        """Perform soft delete with audit trail."""
        self.is_active = False
        self.deleted_at = utcnow()
        self.deleted_by_id = user_id

    def set_created_by(self, user_id: int | None) -> None:
        """Set created_by fields on new entity."""
        self.created_by_id = user_id

    def set_updated_by(self, user_id: int | None) -> None:
        """Set updated_by fields on entity update."""
        self.updated_by_id = user_id
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        id_val = getattr(self, "id", None)
        active = "active" if self.is_active else "deleted"
        return f"<{class_name}(id={id_val}, {active})>"
