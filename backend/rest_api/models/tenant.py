"""
Multi-Tenancy Models: Tenant and User.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import PLAN_LIMITS, PlanLimits, PlanTier

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .table import Table


class Tenant(AuditMixin, Base):
    """
    Represents a restaurant account (top-level tenant).
    All other entities belong to a tenant for complete data isolation.
    Created at signup by an external service; read-only to the ledger.
    """

    __tablename__ = "tenant"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    plan: Mapped[str] = mapped_column(Text, default=PlanTier.BASIC.value, nullable=False)

    # Relationships
    users: Mapped[list["User"]] = relationship(back_populates="tenant")
    tables: Mapped[list["Table"]] = relationship(back_populates="tenant")

    @property
    def limits(self) -> PlanLimits:
        """Resource limits of the tenant's plan."""
        return PLAN_LIMITS[PlanTier(self.plan)]

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name='{self.name}', plan='{self.plan}')>"


class User(AuditMixin, Base):
    """
    Staff member. Only used for actor attribution (audit log, order close).
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[str] = mapped_column(Text, default="WAITER", nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_user_tenant_email"),
    )

    tenant: Mapped["Tenant"] = relationship(back_populates="users")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
