"""
Order Models: Order (comanda), OrderItem.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import ItemStatus, OrderStatus

from .base import AuditMixin, Base, BigIntPK, utcnow

if TYPE_CHECKING:
    from .table import Table


class Order(AuditMixin, Base):
    """
    Running tab for one table occupancy.

    total_cents is maintained by the ledger on every item change and is never
    taken from caller input. Once PAID the order and its items are frozen.
    """

    __tablename__ = "restaurant_order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    table_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant_table.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        Text, default=OrderStatus.OPEN, nullable=False, index=True
    )
    total_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(Text)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)
    closed_by_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=True
    )

    __table_args__ = (
        CheckConstraint("total_cents >= 0", name="chk_order_total_non_negative"),
        Index("ix_order_tenant_status", "tenant_id", "status"),
        # At most one OPEN order per table, enforced by the database as well
        Index(
            "uq_order_open_per_table",
            "table_id",
            unique=True,
            sqlite_where=text("status = 'OPEN'"),
            postgresql_where=text("status = 'OPEN'"),
        ),
    )

    # Relationships
    table: Mapped["Table"] = relationship(back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
    )

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID

    def recompute_total(self) -> int:
        """Recalculate total from the items currently on the order."""
        self.total_cents = sum(item.subtotal_cents for item in self.items)
        return self.total_cents

    def next_position(self) -> int:
        return max((item.position for item in self.items), default=0) + 1

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, table_id={self.table_id}, status='{self.status}', total={self.total_cents})>"


class OrderItem(Base):
    """
    One line of an order with its own kitchen status.

    name and unit_price_cents are snapshots taken when the item was added, so
    later product edits never rewrite history.
    """

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant_order.id"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(Text, default=ItemStatus.PENDING, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    # Whether adding the item took units out of stock
    stock_deducted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("qty > 0", name="chk_order_item_qty_positive"),
        CheckConstraint("unit_price_cents >= 0", name="chk_order_item_price_non_negative"),
        Index("ix_order_item_order_position", "order_id", "position"),
    )

    order: Mapped["Order"] = relationship(back_populates="items")

    @property
    def subtotal_cents(self) -> int:
        return self.unit_price_cents * self.qty

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, product_id={self.product_id}, qty={self.qty}, status='{self.status}')>"
