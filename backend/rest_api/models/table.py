"""
Table Model: physical seating unit on the restaurant floor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import TableStatus

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .tenant import Tenant
    from .order import Order


class Table(AuditMixin, Base):
    """
    Physical table on the floor.

    Status is AVAILABLE, OCCUPIED or RESERVED. A table is OCCUPIED exactly
    while one OPEN order references it; TableService and OrderService keep
    both sides in the same transaction.
    Soft deleted (is_active=False) so historical orders keep their table.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    number: Mapped[str] = mapped_column(Text, nullable=False)  # Display label: "5", "T-3"
    capacity: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    zone: Mapped[Optional[str]] = mapped_column(Text)  # "Salón", "Terraza"
    status: Mapped[str] = mapped_column(
        Text, default=TableStatus.AVAILABLE, nullable=False, index=True
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="chk_table_capacity_positive"),
        Index("ix_table_tenant_status", "tenant_id", "status"),
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship(back_populates="tables")
    orders: Mapped[list["Order"]] = relationship(back_populates="table")

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, number='{self.number}', status='{self.status}')>"
