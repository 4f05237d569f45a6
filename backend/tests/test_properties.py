"""
Property-based tests with Hypothesis.

Invariants of the ledger that must hold for any input, checked on the
domain objects and services without a database.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from hypothesis import given, settings, strategies as st

from rest_api.models import Order, OrderItem, Table
from rest_api.services.domain import OrderService, StockService, TableStateMachine
from rest_api.services.events import OrderUpdated
from shared.config.constants import ItemStatus, OrderStatus, TableStatus
from shared.utils.exceptions import InsufficientStockError, InvalidTransitionError
from shared.utils.validators import escape_like_pattern


def _stock_service():
    uow = MagicMock()
    uow.tenant_id = 1
    return StockService(uow)


class TestStockProperties:
    """Stock never goes negative and every movement is audited exactly."""

    @given(
        initial=st.integers(min_value=0, max_value=1000),
        deltas=st.lists(st.integers(min_value=-200, max_value=200), max_size=30),
    )
    @settings(max_examples=100)
    def test_stock_never_negative(self, initial, deltas):
        service = _stock_service()
        product = SimpleNamespace(id=1, stock_enabled=True, stock_quantity=initial)
        accepted = 0

        for delta in deltas:
            before = product.stock_quantity
            try:
                log = service.apply_delta(product, delta, "Ajuste")
            except InsufficientStockError:
                assert before + delta < 0
                assert product.stock_quantity == before
                continue
            if delta == 0:
                assert log is None
                continue
            accepted += delta
            assert log.after["stock"] - log.before["stock"] == delta
            assert log.before["stock"] == before
            assert product.stock_quantity >= 0

        assert product.stock_quantity == initial + accepted

    @given(delta=st.integers(min_value=-1000, max_value=1000))
    def test_products_without_stock_control_never_move(self, delta):
        product = SimpleNamespace(id=1, stock_enabled=False, stock_quantity=0)
        assert _stock_service().apply_delta(product, delta, "Venta") is None
        assert product.stock_quantity == 0


class TestOrderProperties:
    """Order totals and positions."""

    @given(
        lines=st.lists(
            st.tuples(st.integers(min_value=1, max_value=99), st.integers(min_value=0, max_value=100_000)),
            max_size=20,
        )
    )
    @settings(max_examples=50)
    def test_total_is_sum_of_subtotals(self, lines):
        order = Order(tenant_id=1, table_id=1, total_cents=0, items=[])
        for qty, price in lines:
            order.items.append(
                OrderItem(
                    tenant_id=1,
                    product_id=1,
                    name="P",
                    qty=qty,
                    unit_price_cents=price,
                    position=order.next_position(),
                )
            )

        assert order.recompute_total() == sum(qty * price for qty, price in lines)
        assert [i.position for i in order.items] == list(range(1, len(lines) + 1))

    @given(targets=st.lists(st.sampled_from(ItemStatus.FLOW), max_size=12))
    @settings(max_examples=100)
    def test_item_status_only_moves_one_step_forward(self, targets):
        item = OrderItem(
            id=1,
            tenant_id=1,
            product_id=7,
            name="P",
            qty=1,
            unit_price_cents=100,
            status=ItemStatus.PENDING,
            position=1,
        )
        order = Order(id=1, tenant_id=1, table_id=1, status=OrderStatus.OPEN, total_cents=100, items=[item])
        uow = MagicMock()
        uow.tenant_id = 1
        service = OrderService(uow)
        service.get_order = MagicMock(return_value=order)
        applied = 0

        for target in targets:
            current = item.status
            if ItemStatus.FLOW.index(target) == ItemStatus.FLOW.index(current) + 1:
                service.update_item_status(order.id, item.product_id, target)
                applied += 1
                assert item.status == target
            else:
                with pytest.raises(InvalidTransitionError):
                    service.update_item_status(order.id, item.product_id, target)
                assert item.status == current

        assert uow.stage.call_count == applied
        assert uow.commit.call_count == applied


class TestTableProperties:
    """Only closing an order frees an occupied table."""

    @given(target=st.sampled_from([TableStatus.AVAILABLE, TableStatus.RESERVED]))
    def test_occupied_table_cannot_be_freed_by_edit(self, target):
        table = Table(id=1, tenant_id=1, number="1", status=TableStatus.OCCUPIED)
        with pytest.raises(InvalidTransitionError):
            TableStateMachine.check_manual(table, target)
        assert table.status == TableStatus.OCCUPIED


class TestEncodingProperties:
    """Search escaping and event serialization."""

    @given(st.text(max_size=50))
    def test_escaped_pattern_has_no_bare_wildcards(self, value):
        escaped = escape_like_pattern(value)
        i = 0
        while i < len(escaped):
            if escaped[i] == "\\":
                assert escaped[i + 1] in "\\%_"
                i += 2
                continue
            assert escaped[i] not in "%_"
            i += 1

    @given(
        total=st.integers(min_value=0, max_value=10**9),
        notes=st.one_of(st.none(), st.text(max_size=200)),
    )
    def test_event_json_matches_dict(self, total, notes):
        event = OrderUpdated(
            tenant_id=1,
            order_id=1,
            table_id=1,
            change="items_added",
            total_cents=total,
            items=({"product_id": 1, "qty": 1, "notes": notes},),
        )
        assert json.loads(event.to_json()) == event.to_dict()
