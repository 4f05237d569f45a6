"""
Unit of work for ledger mutations.

A mutating ledger call runs inside exactly one unit of work:

    1. hold the tenant slot (FIFO per tenant)
    2. validate and mutate through the session
    3. stage the single domain event (outbox row, same transaction)
    4. commit
    5. dispatch the event to subscribers, mark the outbox row PUBLISHED
    6. release the slot

Anything raised before commit rolls the whole transaction back, so a
rejected call leaves no trace and emits nothing. Dispatch happens while the
slot is still held, which is what makes subscribers see a tenant's events
in commit order.

Usage:
    ledger = Ledger()
    with ledger.unit_of_work(tenant_id) as uow:
        order = OrderService(uow).add_items(order_id, items)
"""

from __future__ import annotations

from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.models import OutboxEvent
from rest_api.services.events import DomainEvent, mark_published, write_domain_event
from shared.config.logging import ledger_logger as logger
from shared.infrastructure.db import SessionLocal, safe_commit
from shared.infrastructure.events import EventHandler, EventPublisher, Subscription
from shared.infrastructure.tenant_locks import TenantLockRegistry, TenantSlot

SessionFactory = Callable[..., Session]


class UnitOfWork:
    """
    One serialized, all-or-nothing ledger mutation for a tenant.

    Services call stage() once with the event describing the change and
    then commit(). Leaving the block without commit() rolls back.
    """

    def __init__(
        self,
        tenant_id: int,
        session_factory: SessionFactory,
        publisher: EventPublisher,
        locks: TenantLockRegistry,
    ):
        self.tenant_id = tenant_id
        self._session_factory = session_factory
        self._publisher = publisher
        self._locks = locks
        self._slot: TenantSlot | None = None
        self._session: Session | None = None
        self._event: DomainEvent | None = None
        self._outbox: OutboxEvent | None = None
        self._committed = False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work is not active")
        return self._session

    @property
    def event(self) -> DomainEvent | None:
        """The staged (or published) event, if any."""
        return self._event

    @property
    def committed(self) -> bool:
        return self._committed

    def __enter__(self) -> UnitOfWork:
        slot = self._locks.slot_for(self.tenant_id)
        slot.acquire()
        try:
            # Loaded state stays readable after commit for building responses
            self._session = self._session_factory(expire_on_commit=False)
        except Exception:
            slot.release()
            raise
        self._slot = slot
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if self._session is not None:
                if not self._committed:
                    if exc_type is None:
                        # A call that returns without committing changed nothing;
                        # detach its results so they stay readable
                        if self._session.new or self._session.dirty or self._session.deleted:
                            logger.warning(
                                "Unit of work exited with uncommitted changes, discarding",
                                tenant_id=self.tenant_id,
                            )
                        self._session.expunge_all()
                    self._session.rollback()
                self._session.close()
        finally:
            self._session = None
            if self._slot is not None:
                self._slot.release()
                self._slot = None
        return False

    def stage(self, event: DomainEvent) -> None:
        """Record the event for this mutation in the outbox."""
        if self._committed:
            raise RuntimeError("Unit of work already committed")
        if self._event is not None:
            raise RuntimeError("A ledger mutation emits exactly one event")
        if event.tenant_id != self.tenant_id:
            raise ValueError(
                f"Event for tenant {event.tenant_id} staged in unit of work of tenant {self.tenant_id}"
            )
        self._outbox = write_domain_event(self.session, event)
        self._event = event

    def commit(self) -> int:
        """
        Commit the mutation and dispatch its event.

        Returns:
            Number of subscribers that received the event.
        """
        if self._committed:
            raise RuntimeError("Unit of work already committed")
        if self._event is None or self._outbox is None:
            raise RuntimeError("Cannot commit a ledger mutation without a staged event")

        safe_commit(self.session)
        self._committed = True

        delivered = self._publisher.publish(self._event)

        mark_published(self._outbox)
        try:
            safe_commit(self.session)
        except SQLAlchemyError:
            # The mutation itself is already durable
            logger.error(
                "Failed to mark outbox event as published",
                outbox_event_id=self._outbox.id,
                event_type=self._event.type,
                exc_info=True,
            )

        logger.debug(
            "Ledger mutation committed",
            tenant_id=self.tenant_id,
            event_type=self._event.type,
            aggregate_id=self._event.aggregate_id,
            subscribers=delivered,
        )
        return delivered


class Ledger:
    """
    Entry point of the ledger: owns the session factory, the tenant slots
    and the event publisher shared by every unit of work.
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        publisher: EventPublisher | None = None,
        locks: TenantLockRegistry | None = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.publisher = publisher or EventPublisher()
        self.locks = locks or TenantLockRegistry()

    def unit_of_work(self, tenant_id: int) -> UnitOfWork:
        return UnitOfWork(tenant_id, self.session_factory, self.publisher, self.locks)

    def subscribe(self, tenant_id: int, handler: EventHandler) -> Subscription:
        """Receive every event the tenant commits from now on."""
        return self.publisher.subscribe(tenant_id, handler)

    def unsubscribe(self, subscription: Subscription) -> None:
        self.publisher.unsubscribe(subscription)
