"""
In-process publish/subscribe for tenant events.

Subscribers register interest in exactly one tenant and receive every event
that tenant commits, in commit order. Delivery to remote clients (sockets,
polling) is done by subscribers such as RedisEventRelay; the bus itself
keeps no history, so reconnecting clients must re-query.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from shared.config.logging import get_logger

logger = get_logger(__name__)


class PublishableEvent(Protocol):
    """What the bus needs from an event."""

    tenant_id: int

    @property
    def type(self) -> str: ...

    def to_dict(self) -> dict[str, Any]: ...


EventHandler = Callable[[PublishableEvent], None]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by subscribe(); pass it to unsubscribe()."""

    id: int
    tenant_id: int


class EventPublisher:
    """
    Tenant-scoped publish/subscribe.

    publish() is called by the unit of work only after the mutation committed.
    A failing handler is logged and skipped; it never affects other handlers
    or the ledger call that produced the event.
    """

    def __init__(self) -> None:
        self._handlers: dict[int, dict[int, EventHandler]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, tenant_id: int, handler: EventHandler) -> Subscription:
        subscription = Subscription(id=next(self._ids), tenant_id=tenant_id)
        with self._lock:
            self._handlers.setdefault(tenant_id, {})[subscription.id] = handler
        logger.debug("Subscriber registered", tenant_id=tenant_id, subscription_id=subscription.id)
        return subscription

    def subscribe_all(self, handler: EventHandler) -> Subscription:
        """Register a handler for every tenant (used by relays)."""
        return self.subscribe(_ALL_TENANTS, handler)

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            handlers = self._handlers.get(subscription.tenant_id)
            if handlers is not None:
                handlers.pop(subscription.id, None)
                if not handlers:
                    del self._handlers[subscription.tenant_id]

    def subscriber_count(self, tenant_id: int) -> int:
        with self._lock:
            return len(self._handlers.get(tenant_id, {}))

    def publish(self, event: PublishableEvent) -> int:
        """
        Dispatch one event to the tenant's subscribers.

        Returns:
            Number of handlers that processed the event without raising.
        """
        with self._lock:
            handlers = list(self._handlers.get(event.tenant_id, {}).values())
            handlers += list(self._handlers.get(_ALL_TENANTS, {}).values())

        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.error(
                    "Event handler failed",
                    event_type=event.type,
                    tenant_id=event.tenant_id,
                    exc_info=True,
                )
        return delivered


# Tenant ids are positive; 0 is reserved for all-tenant subscribers
_ALL_TENANTS = 0
