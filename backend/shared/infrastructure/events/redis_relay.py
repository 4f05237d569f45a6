"""
Relay of committed tenant events to Redis pub/sub.

The WebSocket/polling gateway subscribes to `{prefix}:{tenant_id}:events`
and pushes `{type, payload, ts}` to connected clients. Delivery is
at-most-once: the relay does not retry, and clients re-query after
reconnecting.
"""

from __future__ import annotations

import json

import redis

from shared.config.logging import get_logger
from shared.config.settings import settings

from .bus import EventPublisher, PublishableEvent, Subscription

logger = get_logger(__name__)


def tenant_channel(tenant_id: int, prefix: str | None = None) -> str:
    """Redis channel that carries one tenant's events."""
    return f"{prefix or settings.redis_event_channel_prefix}:{tenant_id}:events"


def create_redis_client(url: str | None = None) -> redis.Redis:
    """Synchronous Redis client used by the relay."""
    return redis.Redis.from_url(
        url or settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
    )


class RedisEventRelay:
    """
    Forwards every event published on the bus to the tenant's Redis channel.

    Usage:
        relay = RedisEventRelay(create_redis_client())
        relay.attach(publisher)
        ...
        relay.detach()
    """

    def __init__(self, client: redis.Redis, prefix: str | None = None):
        self._client = client
        self._prefix = prefix
        self._subscription: Subscription | None = None
        self._publisher: EventPublisher | None = None

    def attach(self, publisher: EventPublisher) -> None:
        if self._subscription is not None:
            return
        self._publisher = publisher
        self._subscription = publisher.subscribe_all(self.forward)
        logger.info("Redis event relay attached")

    def detach(self) -> None:
        if self._publisher is not None and self._subscription is not None:
            self._publisher.unsubscribe(self._subscription)
        self._subscription = None
        self._publisher = None

    def forward(self, event: PublishableEvent) -> None:
        channel = tenant_channel(event.tenant_id, self._prefix)
        message = event.to_dict()
        # Clients receive {type, payload, ts}; tenant routing is the channel
        message.pop("tenant_id", None)
        try:
            receivers = self._client.publish(channel, json.dumps(message, default=str))
        except redis.RedisError as e:
            logger.error(
                "Redis relay publish failed",
                channel=channel,
                event_type=event.type,
                error=str(e),
            )
            return
        logger.debug("Event relayed", channel=channel, event_type=event.type, receivers=receivers)
