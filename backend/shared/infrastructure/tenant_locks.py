"""
Per-tenant mutual exclusion for ledger mutations.

Every mutating ledger call runs while holding its tenant's slot, so calls
against the same tenant execute one at a time in arrival order. Tenants never
share a slot, so different tenants proceed in parallel.

The slot is the only place a ledger call may block.

LOCK ORDERING:
==============
_registry_lock only guards the dict of slots and is never held while waiting
for a tenant slot. A thread holding a tenant slot must not request the same
slot again: slots are not reentrant and a nested request raises instead of
deadlocking.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from shared.config.logging import get_logger

logger = get_logger(__name__)


class TenantSlot:
    """
    FIFO lock: waiters are admitted strictly in the order they arrived.

    Uses a ticket counter on top of a Condition, since threading.Lock makes
    no ordering promise.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._next_ticket = 0
        self._now_serving = 0
        self._owner: int | None = None

    @property
    def waiting(self) -> int:
        """Number of callers holding or waiting for the slot."""
        with self._cond:
            return self._next_ticket - self._now_serving

    def acquire(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                raise RuntimeError("Tenant slot is not reentrant")
            ticket = self._next_ticket
            self._next_ticket += 1
            while self._now_serving != ticket:
                self._cond.wait()
            self._owner = me

    def release(self) -> None:
        with self._cond:
            if self._owner != threading.get_ident():
                raise RuntimeError("Tenant slot released by a thread that does not hold it")
            self._owner = None
            self._now_serving += 1
            self._cond.notify_all()


class TenantLockRegistry:
    """
    Lazily creates one TenantSlot per tenant id.

    Usage:
        locks = TenantLockRegistry()
        with locks.hold(tenant_id):
            ...  # linearized with every other mutation of this tenant
    """

    def __init__(self) -> None:
        self._slots: dict[int, TenantSlot] = {}
        self._registry_lock = threading.Lock()

    @property
    def tenant_count(self) -> int:
        """Number of tenants that have a slot."""
        return len(self._slots)

    def slot_for(self, tenant_id: int) -> TenantSlot:
        """Get or create the slot for a tenant."""
        slot = self._slots.get(tenant_id)
        if slot is not None:
            return slot
        with self._registry_lock:
            slot = self._slots.get(tenant_id)
            if slot is None:
                slot = TenantSlot()
                self._slots[tenant_id] = slot
                logger.debug("Tenant slot created", tenant_id=tenant_id)
            return slot

    @contextmanager
    def hold(self, tenant_id: int) -> Iterator[None]:
        """Hold the tenant's slot for the duration of the block."""
        slot = self.slot_for(tenant_id)
        slot.acquire()
        try:
            yield
        finally:
            slot.release()
