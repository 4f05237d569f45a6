"""
Tests for OrderService: the order lifecycle from opening to payment.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy import select

from rest_api.models import AuditLog, Order
from rest_api.services.domain import CatalogService, OrderService, TableService
from rest_api.services.events import OrderClosed, OrderUpdated, TableUpdated
from shared.utils.exceptions import (
    ConflictError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    OrderAlreadyPaidError,
    ValidationError,
)
from shared.utils.schemas import ProductUpdate


def line(product_id, qty=1, notes=None):
    return SimpleNamespace(product_id=product_id, qty=qty, notes=notes)


@pytest.fixture
def open_order(ledger, seed_user, seed_table):
    with ledger.unit_of_work(1) as uow:
        return TableService(uow).open_table(seed_table.id)


def _call(ledger, method, *args, **kwargs):
    with ledger.unit_of_work(1) as uow:
        return getattr(OrderService(uow), method)(*args, **kwargs)


class TestOpenOrder:
    """Test opening tables and creating orders."""

    def test_open_table_creates_empty_order(self, ledger, events, db_session, seed_table, open_order):
        assert open_order.status == "OPEN"
        assert open_order.items == []
        assert open_order.total_cents == 0

        db_session.refresh(seed_table)
        assert seed_table.status == "OCCUPIED"

        assert len(events) == 1
        assert isinstance(events[0], TableUpdated)
        assert events[0].action == "opened"
        assert events[0].order_id == open_order.id

    def test_open_table_twice_conflicts(self, ledger, events, seed_table, open_order):
        with pytest.raises(ConflictError):
            with ledger.unit_of_work(1) as uow:
                TableService(uow).open_table(seed_table.id)
        assert len(events) == 1

    def test_create_order_is_idempotent(self, ledger, events, seed_table):
        first = _call(ledger, "create_order", seed_table.id)
        second = _call(ledger, "create_order", seed_table.id)

        assert first.id == second.id
        assert len(events) == 1

    def test_reserved_table_can_be_opened(self, ledger, db_session, seed_table):
        seed_table.status = "RESERVED"
        db_session.commit()

        order = _call(ledger, "create_order", seed_table.id)

        db_session.refresh(seed_table)
        assert seed_table.status == "OCCUPIED"
        assert order.table_id == seed_table.id

    def test_unknown_table(self, ledger, seed_tenant):
        with pytest.raises(NotFoundError):
            _call(ledger, "create_order", 404)


class TestAddItems:
    """Test adding items and the stock they consume."""

    def test_items_snapshot_product_and_consume_stock(
        self, ledger, events, db_session, seed_user, stocked_product, open_order
    ):
        order = _call(
            ledger, "add_items", open_order.id, [line(stocked_product.id, 2)], actor_user_id=seed_user.id
        )

        assert len(order.items) == 1
        item = order.items[0]
        assert item.status == "PENDING"
        assert item.name == "Milanesa"
        assert item.unit_price_cents == 1000
        assert item.position == 1
        assert order.total_cents == 2000

        db_session.refresh(stocked_product)
        assert stocked_product.stock_quantity == 8

        log = db_session.scalar(select(AuditLog).where(AuditLog.entity_id == stocked_product.id))
        assert log.reason == "Venta"
        assert (log.before, log.after) == ({"stock": 10}, {"stock": 8})

        event = events[-1]
        assert isinstance(event, OrderUpdated)
        assert event.change == "items_added"
        assert event.total_cents == 2000
        assert event.stock == ({"product_id": stocked_product.id, "stock": 8},)

    def test_unlimited_product_keeps_no_stock(self, ledger, db_session, unlimited_product, open_order):
        order = _call(ledger, "add_items", open_order.id, [line(unlimited_product.id, 99)])

        assert order.total_cents == 99 * 500
        assert db_session.scalars(select(AuditLog)).all() == []

    def test_positions_continue_after_existing_items(self, ledger, stocked_product, unlimited_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])
        order = _call(
            ledger, "add_items", open_order.id, [line(unlimited_product.id), line(stocked_product.id)]
        )

        assert [i.position for i in order.items] == [1, 2, 3]
        assert order.total_cents == 1000 + 500 + 1000

    def test_insufficient_stock_applies_nothing(
        self, ledger, events, db_session, stocked_product, unlimited_product, open_order
    ):
        # 6 + 6 of the same product exceed the 10 in stock
        with pytest.raises(InsufficientStockError):
            _call(
                ledger,
                "add_items",
                open_order.id,
                [line(unlimited_product.id), line(stocked_product.id, 6), line(stocked_product.id, 6)],
            )

        db_session.refresh(stocked_product)
        assert stocked_product.stock_quantity == 10
        order = db_session.get(Order, open_order.id)
        db_session.refresh(order)
        assert order.items == []
        assert db_session.scalars(select(AuditLog)).all() == []
        assert len(events) == 1  # only the opening

    def test_unknown_product(self, ledger, open_order):
        with pytest.raises(NotFoundError):
            _call(ledger, "add_items", open_order.id, [line(999)])

    def test_inactive_product_cannot_be_ordered(self, ledger, db_session, stocked_product, open_order):
        stocked_product.soft_delete(None)
        db_session.commit()

        with pytest.raises(NotFoundError):
            _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])

    def test_empty_request(self, ledger, open_order):
        with pytest.raises(ValidationError):
            _call(ledger, "add_items", open_order.id, [])

    @pytest.mark.parametrize("qty", [0, -1, 100])
    def test_quantity_out_of_range(self, ledger, stocked_product, open_order, qty):
        with pytest.raises(ValidationError):
            _call(ledger, "add_items", open_order.id, [line(stocked_product.id, qty)])

    def test_notes_too_long(self, ledger, unlimited_product, open_order):
        with pytest.raises(ValidationError):
            _call(ledger, "add_items", open_order.id, [line(unlimited_product.id, notes="x" * 201)])

    def test_price_change_does_not_rewrite_items(self, ledger, seed_user, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id, 2)])
        with ledger.unit_of_work(1) as uow:
            CatalogService(uow).update_product(
                stocked_product.id, ProductUpdate(price_cents=9999, name="Milanesa XL"), seed_user.id
            )

        order = _call(ledger, "get_order", open_order.id)
        assert order.items[0].unit_price_cents == 1000
        assert order.items[0].name == "Milanesa"
        assert order.total_cents == 2000


class TestRemoveItem:
    """Test removing items and restoring stock."""

    def test_pending_item_restores_stock(self, ledger, events, db_session, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id, 3)])
        order = _call(ledger, "remove_item", open_order.id, stocked_product.id)

        assert order.items == []
        assert order.total_cents == 0
        db_session.refresh(stocked_product)
        assert stocked_product.stock_quantity == 10

        reasons = db_session.scalars(select(AuditLog.reason).order_by(AuditLog.id)).all()
        assert reasons == ["Venta", "Cancelación"]
        assert events[-1].change == "item_removed"

    def test_item_sold_without_stock_control_restores_nothing(
        self, ledger, db_session, seed_user, unlimited_product, open_order
    ):
        _call(ledger, "add_items", open_order.id, [line(unlimited_product.id, 4)])
        with ledger.unit_of_work(1) as uow:
            CatalogService(uow).update_product(
                unlimited_product.id, ProductUpdate(stock_enabled=True), seed_user.id
            )

        order = _call(ledger, "remove_item", open_order.id, unlimited_product.id)

        assert order.items == []
        db_session.refresh(unlimited_product)
        assert unlimited_product.stock_enabled is True
        assert unlimited_product.stock_quantity == 0
        assert db_session.scalars(select(AuditLog)).all() == []

    def test_sent_item_requires_force(self, ledger, db_session, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id, 2)])
        _call(ledger, "send_to_kitchen", open_order.id)

        with pytest.raises(ValidationError):
            _call(ledger, "remove_item", open_order.id, stocked_product.id)

        order = _call(ledger, "remove_item", open_order.id, stocked_product.id, force=True)
        assert order.items == []
        db_session.refresh(stocked_product)
        assert stocked_product.stock_quantity == 10

    def test_pending_item_is_removed_before_sent_one(self, ledger, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id, 1)])
        _call(ledger, "send_to_kitchen", open_order.id)
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id, 2)])

        order = _call(ledger, "remove_item", open_order.id, stocked_product.id)

        assert [(i.qty, i.status) for i in order.items] == [(1, "PREPARING")]

    def test_delivered_item_cannot_be_removed(self, ledger, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])
        _call(ledger, "send_to_kitchen", open_order.id)
        _call(ledger, "update_item_status", open_order.id, stocked_product.id, "READY")
        _call(ledger, "deliver_ready_items", open_order.id)

        with pytest.raises(ConflictError):
            _call(ledger, "remove_item", open_order.id, stocked_product.id, force=True)

    def test_product_not_on_order(self, ledger, stocked_product, open_order):
        with pytest.raises(NotFoundError):
            _call(ledger, "remove_item", open_order.id, stocked_product.id)


class TestKitchenFlow:
    """Test item status transitions."""

    def test_full_flow(self, ledger, events, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id, 2)])

        order = _call(ledger, "send_to_kitchen", open_order.id)
        assert order.items[0].status == "PREPARING"
        assert order.items[0].sent_at is not None

        order = _call(ledger, "update_item_status", open_order.id, stocked_product.id, "READY")
        assert order.items[0].status == "READY"

        order = _call(ledger, "deliver_ready_items", open_order.id)
        assert order.items[0].status == "DELIVERED"

        assert [e.change for e in events[1:]] == [
            "items_added",
            "sent_to_kitchen",
            "item_status",
            "delivered",
        ]

    def test_send_without_pending_items_is_a_noop(self, ledger, events, open_order):
        _call(ledger, "send_to_kitchen", open_order.id)
        _call(ledger, "deliver_ready_items", open_order.id)
        assert len(events) == 1

    def test_skipping_a_step_is_rejected(self, ledger, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])

        with pytest.raises(InvalidTransitionError):
            _call(ledger, "update_item_status", open_order.id, stocked_product.id, "READY")

    def test_moving_back_is_rejected(self, ledger, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])
        _call(ledger, "send_to_kitchen", open_order.id)

        with pytest.raises(InvalidTransitionError):
            _call(ledger, "update_item_status", open_order.id, stocked_product.id, "PENDING")

    def test_unknown_status(self, ledger, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])

        with pytest.raises(ValidationError):
            _call(ledger, "update_item_status", open_order.id, stocked_product.id, "BURNT")

    def test_pending_to_preparing_sets_sent_at(self, ledger, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])
        order = _call(ledger, "update_item_status", open_order.id, stocked_product.id, "PREPARING")
        assert order.items[0].sent_at is not None


class TestCloseOrder:
    """Test payment and table release."""

    def test_close_frees_table(self, ledger, events, db_session, seed_user, seed_table, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id, 2)])

        order = _call(ledger, "close_order", open_order.id, seed_user.id, "CASH")

        assert order.status == "PAID"
        assert order.payment_method == "CASH"
        assert order.closed_at is not None
        assert order.closed_by_id == seed_user.id
        db_session.refresh(seed_table)
        assert seed_table.status == "AVAILABLE"

        assert isinstance(events[-1], OrderClosed)
        assert events[-1].table_status == "AVAILABLE"
        assert events[-1].total_cents == 2000

    def test_paid_order_is_frozen(self, ledger, seed_user, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])
        _call(ledger, "close_order", open_order.id, seed_user.id, "CARD")

        with pytest.raises(OrderAlreadyPaidError):
            _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])
        with pytest.raises(ConflictError):
            _call(ledger, "close_order", open_order.id, seed_user.id, "CARD")

    def test_table_can_be_reopened_after_close(self, ledger, seed_user, seed_table, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])
        _call(ledger, "close_order", open_order.id, seed_user.id, "TRANSFER")

        new_order = _call(ledger, "create_order", seed_table.id)
        assert new_order.id != open_order.id
        assert new_order.status == "OPEN"

    def test_empty_order_cannot_be_paid(self, ledger, seed_user, open_order):
        with pytest.raises(ValidationError):
            _call(ledger, "close_order", open_order.id, seed_user.id, "CASH")

    def test_unknown_payment_method(self, ledger, seed_user, stocked_product, open_order):
        _call(ledger, "add_items", open_order.id, [line(stocked_product.id)])
        with pytest.raises(ValidationError):
            _call(ledger, "close_order", open_order.id, seed_user.id, "BITCOIN")
