"""
Catalog Models: Category, Product.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import Limits

from .base import AuditMixin, Base, BigIntPK


class Category(AuditMixin, Base):
    """
    Menu category. Cannot be removed while an active product references it.
    """

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    products: Mapped[list["Product"]] = relationship(back_populates="category")

    __table_args__ = (
        Index("ix_category_tenant_active", "tenant_id", "is_active"),
    )


class Product(AuditMixin, Base):
    """
    Sellable product with optional stock control.

    When stock_enabled is False the product has unlimited virtual stock and
    stock_quantity is ignored. stock_quantity only moves through StockService,
    which writes an AuditLog row for every change.
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    category_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("category.id"), nullable=False, index=True
    )
    sku: Mapped[Optional[str]] = mapped_column(Text)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    image: Mapped[Optional[str]] = mapped_column(Text)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stock_min: Mapped[int] = mapped_column(Integer, default=Limits.DEFAULT_STOCK_MIN, nullable=False)

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_product_price_non_negative"),
        CheckConstraint("stock_quantity >= 0", name="chk_product_stock_non_negative"),
        CheckConstraint("stock_min >= 0", name="chk_product_stock_min_non_negative"),
        Index("ix_product_tenant_active", "tenant_id", "is_active"),
        Index(
            "uq_product_tenant_sku",
            "tenant_id",
            "sku",
            unique=True,
            sqlite_where=text("sku IS NOT NULL AND is_active = 1"),
            postgresql_where=text("sku IS NOT NULL AND is_active"),
        ),
    )

    category: Mapped["Category"] = relationship(back_populates="products")

    @property
    def is_low_stock(self) -> bool:
        return self.stock_enabled and 0 < self.stock_quantity <= self.stock_min

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock_enabled and self.stock_quantity <= 0

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock_quantity})>"
