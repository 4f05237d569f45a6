"""
Query Service - read-only views of the ledger.

Runs on a plain request session, without the tenant slot, and only ever
sees committed state. Never mutates and never rejects a filter: a filter
that matches nothing (for example an unknown status) returns an empty list.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import Select, or_, select
from sqlalchemy.orm import Session, selectinload

from rest_api.models import AuditLog, Category, Order, OrderItem, Product, Table
from rest_api.services.crud.repository import TenantRepository
from shared.config.constants import ItemStatus, OrderStatus
from shared.config.logging import get_logger
from shared.utils.schemas import QueryFilter
from shared.utils.validators import escape_like_pattern, sanitize_search_term

logger = get_logger(__name__)


@dataclass
class KitchenTicket:
    """An open order as the kitchen sees it."""

    order_id: int
    table_id: int
    table_number: str
    items: list[OrderItem] = field(default_factory=list)

    @property
    def first_sent_at(self) -> datetime | None:
        sent = [item.sent_at for item in self.items if item.sent_at is not None]
        return min(sent) if sent else None


@dataclass
class StockAlerts:
    low_stock: list[Product]
    out_of_stock: list[Product]


def _contains(value: str) -> str:
    return f"%{escape_like_pattern(value)}%"


class QueryService:
    """
    Filtered, tenant-scoped reads.

    Usage:
        service = QueryService(db)
        open_orders = service.query("orders", tenant_id, QueryFilter(status="OPEN"))
    """

    def __init__(self, db: Session):
        self._db = db
        self._builders: dict[str, Callable[[int, QueryFilter], Select]] = {
            "tables": self._tables_query,
            "orders": self._orders_query,
            "products": self._products_query,
            "categories": self._categories_query,
            "audit_logs": self._audit_logs_query,
        }

    # =========================================================================
    # Generic query
    # =========================================================================

    def query(
        self,
        entity_type: str,
        tenant_id: int,
        flt: QueryFilter | None = None,
    ) -> Sequence[Any]:
        """
        Entities of one type matching the filter, in the type's fixed order.

        Returns an empty list for an entity type that does not exist.
        """
        builder = self._builders.get(entity_type)
        if builder is None:
            logger.debug("Query for unknown entity type", entity_type=entity_type)
            return []
        flt = flt or QueryFilter()
        stmt = builder(tenant_id, flt).offset(flt.offset).limit(flt.limit)
        return self._db.scalars(stmt).all()

    def _active(self, stmt: Select, model: Any, flt: QueryFilter) -> Select:
        if not flt.include_inactive:
            stmt = stmt.where(model.is_active.is_(True))
        return stmt

    def _date_range(self, stmt: Select, column: Any, flt: QueryFilter) -> Select:
        if flt.date_from is not None:
            stmt = stmt.where(column >= flt.date_from)
        if flt.date_to is not None:
            stmt = stmt.where(column <= flt.date_to)
        return stmt

    def _tables_query(self, tenant_id: int, flt: QueryFilter) -> Select:
        stmt = self._active(select(Table).where(Table.tenant_id == tenant_id), Table, flt)
        if flt.status:
            stmt = stmt.where(Table.status == flt.status)
        term = sanitize_search_term(flt.search)
        if term:
            stmt = stmt.where(
                or_(
                    Table.number.ilike(_contains(term), escape="\\"),
                    Table.zone.ilike(_contains(term), escape="\\"),
                )
            )
        return stmt.order_by(Table.number, Table.id)

    def _orders_query(self, tenant_id: int, flt: QueryFilter) -> Select:
        stmt = select(Order).where(Order.tenant_id == tenant_id).options(selectinload(Order.items))
        if flt.status:
            stmt = stmt.where(Order.status == flt.status)
        if flt.table_id is not None:
            stmt = stmt.where(Order.table_id == flt.table_id)
        column = Order.closed_at if flt.date_field == "closed_at" else Order.created_at
        stmt = self._date_range(stmt, column, flt)
        return stmt.order_by(Order.created_at.desc(), Order.id.desc())

    def _products_query(self, tenant_id: int, flt: QueryFilter) -> Select:
        stmt = self._active(select(Product).where(Product.tenant_id == tenant_id), Product, flt)
        if flt.category_id is not None:
            stmt = stmt.where(Product.category_id == flt.category_id)
        term = sanitize_search_term(flt.search)
        if term:
            stmt = stmt.where(
                or_(
                    Product.name.ilike(_contains(term), escape="\\"),
                    Product.sku.ilike(_contains(term), escape="\\"),
                )
            )
        return stmt.order_by(Product.name, Product.id)

    def _categories_query(self, tenant_id: int, flt: QueryFilter) -> Select:
        stmt = self._active(select(Category).where(Category.tenant_id == tenant_id), Category, flt)
        term = sanitize_search_term(flt.search)
        if term:
            stmt = stmt.where(Category.name.ilike(_contains(term), escape="\\"))
        return stmt.order_by(Category.order, Category.name, Category.id)

    def _audit_logs_query(self, tenant_id: int, flt: QueryFilter) -> Select:
        stmt = select(AuditLog).where(AuditLog.tenant_id == tenant_id)
        if flt.product_id is not None:
            stmt = stmt.where(
                AuditLog.entity_type == "product", AuditLog.entity_id == flt.product_id
            )
        term = sanitize_search_term(flt.search)
        if term:
            stmt = stmt.where(AuditLog.reason.ilike(_contains(term), escape="\\"))
        stmt = self._date_range(stmt, AuditLog.created_at, flt)
        return stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())

    # =========================================================================
    # Single entities
    # =========================================================================

    def get_table(self, table_id: int, tenant_id: int) -> Table:
        return TenantRepository(Table, self._db, "Mesa").require(table_id, tenant_id)

    def get_order(self, order_id: int, tenant_id: int) -> Order:
        return TenantRepository(Order, self._db, "Comanda").require(
            order_id, tenant_id, options=[selectinload(Order.items)]
        )

    def get_product(self, product_id: int, tenant_id: int) -> Product:
        return TenantRepository(Product, self._db, "Producto").require(product_id, tenant_id)

    def get_category(self, category_id: int, tenant_id: int) -> Category:
        return TenantRepository(Category, self._db, "Categoría").require(category_id, tenant_id)

    def get_active_order_for_table(self, table_id: int, tenant_id: int) -> Order | None:
        return self._db.scalar(
            select(Order)
            .where(
                Order.tenant_id == tenant_id,
                Order.table_id == table_id,
                Order.status == OrderStatus.OPEN,
            )
            .options(selectinload(Order.items))
        )

    # =========================================================================
    # Projections
    # =========================================================================

    def kitchen_queue(self, tenant_id: int) -> list[KitchenTicket]:
        """
        OPEN orders with items the kitchen is preparing or has ready.

        Only those items are included; tickets sent earliest come first.
        """
        rows = self._db.execute(
            select(Order, Table.number)
            .join(Table, Table.id == Order.table_id)
            .where(
                Order.tenant_id == tenant_id,
                Order.status == OrderStatus.OPEN,
                Order.items.any(OrderItem.status.in_(ItemStatus.KITCHEN_VISIBLE)),
            )
            .options(selectinload(Order.items))
        ).all()

        tickets = [
            KitchenTicket(
                order_id=order.id,
                table_id=order.table_id,
                table_number=number,
                items=[i for i in order.items if i.status in ItemStatus.KITCHEN_VISIBLE],
            )
            for order, number in rows
        ]
        tickets.sort(key=lambda t: (t.first_sent_at is None, t.first_sent_at or datetime.min, t.order_id))
        return tickets

    def stock_alerts(self, tenant_id: int) -> StockAlerts:
        """Active stock-controlled products that are low or out of stock."""
        products = self._db.scalars(
            select(Product)
            .where(
                Product.tenant_id == tenant_id,
                Product.is_active.is_(True),
                Product.stock_enabled.is_(True),
                Product.stock_quantity <= Product.stock_min,
            )
            .order_by(Product.name, Product.id)
        ).all()
        return StockAlerts(
            low_stock=[p for p in products if p.is_low_stock],
            out_of_stock=[p for p in products if p.is_out_of_stock],
        )
