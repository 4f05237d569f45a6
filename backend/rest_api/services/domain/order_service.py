"""
Order Domain Service.

Handles the lifecycle of an order (comanda): opening it for a table, adding
and removing items, moving items through the kitchen flow and closing it.

Rules enforced here:
- a table has at most one OPEN order, and is OCCUPIED exactly while it has one
- items keep the name and price the product had when they were added
- total_cents always equals the sum of item subtotals
- item status only moves forward one step at a time
- a PAID order never changes again
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from rest_api.models import Order, OrderItem, Product, Table, utcnow
from rest_api.services.base_service import LedgerService
from rest_api.services.events import OrderClosed, OrderUpdated, TableUpdated
from shared.config.constants import ItemStatus, Limits, OrderStatus, PaymentMethod, StockReason
from shared.config.logging import get_logger
from shared.utils.exceptions import (
    ConflictError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    OrderAlreadyPaidError,
    ValidationError,
)

from .stock_service import StockService
from .table_state import TableStateMachine

logger = get_logger(__name__)


class ItemRequest(Protocol):
    """One line requested by add_items (OrderItemInput satisfies it)."""

    product_id: int
    qty: int
    notes: str | None


def item_snapshot(item: OrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "name": item.name,
        "qty": item.qty,
        "unit_price_cents": item.unit_price_cents,
        "status": item.status,
        "position": item.position,
        "notes": item.notes,
    }


class OrderService(LedgerService):
    """
    Domain service for Order operations.

    Every public mutation runs inside the caller's unit of work and commits
    it with exactly one event, or raises and leaves everything unchanged.
    """

    def __init__(self, uow):
        super().__init__(uow)
        self._orders = self.repo(Order, "Comanda")
        self._tables = self.repo(Table, "Mesa")
        self._products = self.repo(Product, "Producto")
        self._stock = StockService(uow)

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_order(self, order_id: int) -> Order:
        return self._orders.require(
            order_id,
            self.tenant_id,
            options=[selectinload(Order.items)],
            for_update=True,
        )

    def get_active_order_for_table(self, table_id: int) -> Order | None:
        """The OPEN order of a table, if any."""
        return self.db.scalar(
            select(Order)
            .where(
                Order.tenant_id == self.tenant_id,
                Order.table_id == table_id,
                Order.status == OrderStatus.OPEN,
            )
            .options(selectinload(Order.items))
        )

    def _get_open_order(self, order_id: int) -> Order:
        order = self.get_order(order_id)
        if order.is_paid:
            raise OrderAlreadyPaidError(order.id, tenant_id=self.tenant_id)
        return order

    def _items_of_product(self, order: Order, product_id: int) -> list[OrderItem]:
        items = [item for item in order.items if item.product_id == product_id]
        if not items:
            raise NotFoundError(
                "Producto en la comanda", product_id, order_id=order.id, tenant_id=self.tenant_id
            )
        return items

    def _order_updated(
        self, order: Order, change: str, products: Iterable[Product] = ()
    ) -> OrderUpdated:
        return OrderUpdated(
            tenant_id=self.tenant_id,
            order_id=order.id,
            table_id=order.table_id,
            change=change,
            total_cents=order.total_cents,
            items=tuple(item_snapshot(item) for item in order.items),
            stock=tuple(
                {"product_id": p.id, "stock": p.stock_quantity}
                for p in products
                if p.stock_enabled
            ),
        )

    # =========================================================================
    # Opening
    # =========================================================================

    def bind_new_order(self, table: Table) -> Order:
        """
        Create the OPEN order of a table and mark it OCCUPIED.

        Does not commit or emit; the caller's event covers both changes.
        """
        TableStateMachine.occupy(table)
        order = Order(
            tenant_id=self.tenant_id,
            table_id=table.id,
            status=OrderStatus.OPEN,
            total_cents=0,
            items=[],
        )
        self.db.add(order)
        self.db.flush()
        return order

    def open_order(self, table_id: int, *, reuse_existing: bool = False) -> Order:
        """
        Open a table: create its OPEN order and mark it OCCUPIED.

        With reuse_existing, an already OPEN order is returned unchanged
        (no event) instead of raising ConflictError.
        """
        table = self._tables.require(table_id, self.tenant_id, for_update=True)
        existing = self.get_active_order_for_table(table.id)
        if existing is not None:
            if reuse_existing:
                return existing
            raise ConflictError(
                f"La mesa {table.number} ya tiene una comanda abierta",
                table_id=table.id,
                order_id=existing.id,
            )

        order = self.bind_new_order(table)
        self.emit(
            TableUpdated(
                tenant_id=self.tenant_id,
                table_id=table.id,
                number=table.number,
                status=table.status,
                action="opened",
                order_id=order.id,
            )
        )

        logger.info("Order opened", tenant_id=self.tenant_id, table_id=table.id, order_id=order.id)
        return order

    def create_order(self, table_id: int) -> Order:
        """Idempotent: the table's OPEN order, opening the table if needed."""
        return self.open_order(table_id, reuse_existing=True)

    # =========================================================================
    # Items
    # =========================================================================

    def add_items(
        self,
        order_id: int,
        items: Sequence[ItemRequest],
        actor_user_id: int | None = None,
    ) -> Order:
        """
        Append PENDING items to an open order.

        Prices and names are taken from the product rows. Stock-enabled
        products are decremented with reason "Venta"; if any of them lacks
        stock nothing is applied.

        Raises:
            ValidationError: Empty request, bad quantity or notes.
            NotFoundError: Unknown or inactive product.
            InsufficientStockError: Not enough stock for some product.
            OrderAlreadyPaidError: Order is closed.
        """
        if not items:
            raise ValidationError("Debe indicar al menos un producto", order_id=order_id)
        if len(items) > Limits.MAX_ITEMS_PER_CALL:
            raise ValidationError(
                f"No se pueden agregar más de {Limits.MAX_ITEMS_PER_CALL} productos a la vez",
                order_id=order_id,
            )
        for item in items:
            if not 1 <= item.qty <= Limits.MAX_ITEM_QTY:
                raise ValidationError(
                    f"Cantidad inválida: {item.qty}", field="qty", product_id=item.product_id
                )
            if item.notes and len(item.notes) > Limits.MAX_NOTES_LENGTH:
                raise ValidationError(
                    f"Las notas no pueden superar {Limits.MAX_NOTES_LENGTH} caracteres",
                    field="notes",
                    product_id=item.product_id,
                )

        order = self._get_open_order(order_id)

        requested: dict[int, int] = defaultdict(int)
        for item in items:
            requested[item.product_id] += item.qty

        products = {
            p.id: p
            for p in self._products.find_by_ids(list(requested), self.tenant_id, for_update=True)
        }
        for product_id in requested:
            if product_id not in products:
                raise NotFoundError("Producto", product_id, tenant_id=self.tenant_id)

        # All-or-nothing: check every product before touching any stock
        for product_id, qty in requested.items():
            product = products[product_id]
            if product.stock_enabled and product.stock_quantity < qty:
                raise InsufficientStockError(
                    product_id,
                    available=product.stock_quantity,
                    requested=qty,
                    tenant_id=self.tenant_id,
                    order_id=order.id,
                )

        actor_user_id = self.require_actor(actor_user_id)
        position = order.next_position()
        for item in items:
            product = products[item.product_id]
            sale_log = self._stock.apply_delta(product, -item.qty, StockReason.SALE, actor_user_id)
            order.items.append(
                OrderItem(
                    tenant_id=self.tenant_id,
                    product_id=product.id,
                    name=product.name,
                    qty=item.qty,
                    unit_price_cents=product.price_cents,
                    status=ItemStatus.PENDING,
                    position=position,
                    notes=item.notes,
                    stock_deducted=sale_log is not None,
                )
            )
            position += 1

        order.recompute_total()
        self.db.flush()
        self.emit(self._order_updated(order, "items_added", products.values()))

        logger.info(
            "Items added to order",
            tenant_id=self.tenant_id,
            order_id=order.id,
            items=len(items),
            total_cents=order.total_cents,
        )
        return order

    def remove_item(
        self,
        order_id: int,
        product_id: int,
        force: bool = False,
        actor_user_id: int | None = None,
    ) -> Order:
        """
        Remove one item of a product from an open order.

        Stock taken out when the item was added is given back with reason
        "Cancelación"; items sold without stock control give nothing back.

        The first PENDING item of the product is removed. Items already sent
        to the kitchen (PREPARING/READY) are only removed with force=True.
        DELIVERED items are never removed.

        Raises:
            NotFoundError: The product is not on the order.
            ValidationError: Only sent items match and force is False.
            ConflictError: Only DELIVERED items match.
        """
        order = self._get_open_order(order_id)
        matches = self._items_of_product(order, product_id)

        target = next((i for i in matches if i.status == ItemStatus.PENDING), None)
        if target is None:
            removable = [i for i in matches if i.status != ItemStatus.DELIVERED]
            if not removable:
                raise ConflictError(
                    "Los productos ya entregados no se pueden eliminar",
                    order_id=order.id,
                    product_id=product_id,
                )
            if not force:
                raise ValidationError(
                    "El producto ya fue enviado a cocina; confirme la eliminación",
                    order_id=order.id,
                    product_id=product_id,
                    status=removable[0].status,
                )
            target = removable[0]

        # Restore stock even if the product was removed from the catalog since
        product = self._products.require(
            product_id, self.tenant_id, include_inactive=True, for_update=True
        )
        actor_user_id = self.require_actor(actor_user_id)
        if target.stock_deducted:
            self._stock.apply_delta(product, target.qty, StockReason.CANCELLATION, actor_user_id)

        order.items.remove(target)
        order.recompute_total()
        self.db.flush()
        self.emit(self._order_updated(order, "item_removed", [product]))

        logger.info(
            "Item removed from order",
            tenant_id=self.tenant_id,
            order_id=order.id,
            product_id=product_id,
            status=target.status,
            forced=force,
        )
        return order

    # =========================================================================
    # Kitchen flow
    # =========================================================================

    def send_to_kitchen(self, order_id: int) -> Order:
        """PENDING -> PREPARING for every pending item. No-op if none."""
        order = self._get_open_order(order_id)
        pending = [item for item in order.items if item.status == ItemStatus.PENDING]
        if not pending:
            return order

        now = utcnow()
        for item in pending:
            item.status = ItemStatus.PREPARING
            item.sent_at = now

        self.emit(self._order_updated(order, "sent_to_kitchen"))
        logger.info(
            "Order sent to kitchen", tenant_id=self.tenant_id, order_id=order.id, items=len(pending)
        )
        return order

    def update_item_status(self, order_id: int, product_id: int, status: str) -> Order:
        """
        Move the first item of a product one step forward to `status`.

        Raises:
            InvalidTransitionError: No item of the product is in the
                predecessor status, or `status` is not a forward step.
        """
        order = self._get_open_order(order_id)
        matches = self._items_of_product(order, product_id)

        if status not in ItemStatus.FLOW:
            raise ValidationError(f"Estado de item inválido: {status}", order_id=order.id)
        predecessor = ItemStatus.predecessor(status)
        target = next((i for i in matches if i.status == predecessor), None)
        if predecessor is None or target is None:
            raise InvalidTransitionError(
                "Item", matches[0].status, status, order_id=order.id, product_id=product_id
            )

        target.status = status
        if status == ItemStatus.PREPARING:
            target.sent_at = utcnow()

        self.emit(self._order_updated(order, "item_status"))
        logger.info(
            "Item status updated",
            tenant_id=self.tenant_id,
            order_id=order.id,
            item_id=target.id,
            status=status,
        )
        return order

    def deliver_ready_items(self, order_id: int) -> Order:
        """READY -> DELIVERED for every ready item. No-op if none."""
        order = self._get_open_order(order_id)
        ready = [item for item in order.items if item.status == ItemStatus.READY]
        if not ready:
            return order

        for item in ready:
            item.status = ItemStatus.DELIVERED

        self.emit(self._order_updated(order, "delivered"))
        logger.info(
            "Ready items delivered", tenant_id=self.tenant_id, order_id=order.id, items=len(ready)
        )
        return order

    # =========================================================================
    # Closing
    # =========================================================================

    def close_order(
        self,
        order_id: int,
        actor_user_id: int | None,
        payment_method: str,
    ) -> Order:
        """
        Record payment and free the table.

        Raises:
            ValidationError: Unknown payment method or order without items.
            OrderAlreadyPaidError: Order was already closed.
        """
        if payment_method not in PaymentMethod.ALL:
            raise ValidationError(
                f"Medio de pago inválido: {payment_method}", order_id=order_id
            )

        order = self._get_open_order(order_id)
        if not order.items:
            raise ValidationError(
                "No se puede cobrar una comanda sin productos", order_id=order.id
            )

        actor_user_id = self.require_actor(actor_user_id)
        table = self._tables.require(
            order.table_id, self.tenant_id, include_inactive=True, for_update=True
        )

        order.status = OrderStatus.PAID
        order.payment_method = payment_method
        order.closed_at = utcnow()
        order.closed_by_id = actor_user_id
        TableStateMachine.release(table)

        self.emit(
            OrderClosed(
                tenant_id=self.tenant_id,
                order_id=order.id,
                table_id=table.id,
                total_cents=order.total_cents,
                payment_method=payment_method,
                table_status=table.status,
            )
        )

        logger.info(
            "Order closed",
            tenant_id=self.tenant_id,
            order_id=order.id,
            table_id=table.id,
            total_cents=order.total_cents,
            payment_method=payment_method,
        )
        return order
