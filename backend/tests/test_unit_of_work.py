"""
Tests for the unit of work: atomicity, single-event commits and ordering.
"""

import threading
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select

from rest_api.models import OutboxEvent, OutboxStatus, Table
from rest_api.services import Ledger
from rest_api.services.domain import StockService, TableService
from rest_api.services.events import TableUpdated
from shared.infrastructure.events import EventPublisher
from shared.utils.schemas import TableCreate


def _event(tenant_id=1):
    return TableUpdated(tenant_id=tenant_id, table_id=1, number="1", status="AVAILABLE", action="created")


@pytest.fixture
def mock_ledger():
    """Ledger over a mocked session, for lifecycle checks without a database."""
    session = MagicMock()
    factory = MagicMock(return_value=session)
    return Ledger(session_factory=factory, publisher=EventPublisher()), session


class TestLifecycle:
    """Test the unit of work protocol."""

    def test_commit_requires_a_staged_event(self, mock_ledger):
        ledger, session = mock_ledger
        with pytest.raises(RuntimeError):
            with ledger.unit_of_work(1) as uow:
                uow.commit()
        session.commit.assert_not_called()
        session.rollback.assert_called_once()

    def test_only_one_event_per_mutation(self, mock_ledger):
        ledger, _ = mock_ledger
        with pytest.raises(RuntimeError):
            with ledger.unit_of_work(1) as uow:
                uow.stage(_event())
                uow.stage(_event())

    def test_event_must_belong_to_the_tenant(self, mock_ledger):
        ledger, _ = mock_ledger
        with pytest.raises(ValueError):
            with ledger.unit_of_work(1) as uow:
                uow.stage(_event(tenant_id=2))

    def test_commit_publishes_after_commit(self, mock_ledger):
        ledger, session = mock_ledger
        received = []
        ledger.subscribe(1, lambda e: received.append(session.commit.call_count))

        event = _event()
        with ledger.unit_of_work(1) as uow:
            uow.stage(event)
            assert uow.commit() == 1
            assert uow.committed
            assert uow.event is event

        # The subscriber ran after the mutation's commit, before the outbox update
        assert received == [1]
        assert session.commit.call_count == 2
        session.rollback.assert_not_called()
        session.close.assert_called_once()

    def test_slot_is_released_on_error(self, mock_ledger):
        ledger, session = mock_ledger
        with pytest.raises(KeyError):
            with ledger.unit_of_work(1):
                raise KeyError("boom")

        assert ledger.locks.slot_for(1).waiting == 0
        session.rollback.assert_called_once()
        session.close.assert_called_once()

    def test_session_is_unavailable_outside_the_block(self, mock_ledger):
        ledger, _ = mock_ledger
        uow = ledger.unit_of_work(1)
        with pytest.raises(RuntimeError):
            uow.session


class TestAtomicity:
    """Test all-or-nothing behaviour against the database."""

    def test_error_after_flush_leaves_no_trace(self, ledger, events, db_session, seed_tenant):
        with pytest.raises(RuntimeError):
            with ledger.unit_of_work(1) as uow:
                uow.session.add(Table(tenant_id=1, number="99"))
                uow.session.flush()
                raise RuntimeError("crash before commit")

        assert db_session.scalars(select(Table)).all() == []
        assert db_session.scalars(select(OutboxEvent)).all() == []
        assert events == []

    def test_outbox_row_is_marked_published(self, ledger, db_session, seed_user):
        with ledger.unit_of_work(1) as uow:
            TableService(uow).create_table(TableCreate(number="1"))

        row = db_session.scalar(select(OutboxEvent))
        assert row.status == OutboxStatus.PUBLISHED
        assert row.processed_at is not None
        assert row.event_type == "table.updated"

    def test_failing_subscriber_does_not_undo_the_mutation(self, ledger, db_session, seed_user):
        def broken(event):
            raise RuntimeError("client went away")

        ledger.subscribe(1, broken)
        with ledger.unit_of_work(1) as uow:
            TableService(uow).create_table(TableCreate(number="1"))

        assert len(db_session.scalars(select(Table)).all()) == 1


class TestSerialization:
    """Test that a tenant's mutations are linearized."""

    def test_concurrent_adjustments_are_serialized(self, ledger, events, db_session, seed_user, stocked_product):
        product_id = stocked_product.id
        errors = []

        def restock():
            try:
                with ledger.unit_of_work(1) as uow:
                    StockService(uow).adjust_stock(product_id, 1, 1, "Reposición")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=restock) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        db_session.refresh(stocked_product)
        assert stocked_product.stock_quantity == 20
        # Subscribers see the tenant's events in commit order
        assert [e.after for e in events] == list(range(11, 21))
