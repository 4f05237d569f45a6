"""
Event infrastructure: in-process tenant bus and Redis relay.
"""

from shared.infrastructure.events.bus import (
    EventHandler,
    EventPublisher,
    PublishableEvent,
    Subscription,
)
from shared.infrastructure.events.redis_relay import (
    RedisEventRelay,
    create_redis_client,
    tenant_channel,
)

__all__ = [
    "EventHandler",
    "EventPublisher",
    "PublishableEvent",
    "Subscription",
    "RedisEventRelay",
    "create_redis_client",
    "tenant_channel",
]
