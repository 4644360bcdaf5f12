"""
Channelgate Subscription Broker

Hands out one independent Redis pub/sub subscription per client.
Every ``PubSub`` object checks out its own connection, so closing or losing
one subscription never disturbs another.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

from channelgate.config import ChannelgateConfig
from channelgate.errors import SubscriptionFailed

LOG = logging.getLogger(__name__)


@dataclass(eq=False)
class Subscription:
    """A dedicated subscription to a single channel."""

    channel: str
    pubsub: "PubSub"
    closed: bool = field(default=False, init=False)

    async def listen(self, callback: Callable[[bytes], None]) -> None:
        """
        Deliver every published payload to ``callback`` in bus order.

        Returns when the subscription ends. Payloads are passed through
        untouched.
        """
        async for message in self.pubsub.listen():
            if message["type"] != "message":
                continue

            data = message["data"]
            if isinstance(data, str):
                data = data.encode("utf-8")
            callback(data)

    async def close(self) -> None:
        """Unsubscribe and release the connection. Safe to call repeatedly."""
        if self.closed:
            return
        self.closed = True

        try:
            await self.pubsub.aclose()
        except RedisError:
            LOG.warning("Error closing subscription to %s", self.channel, exc_info=True)
        else:
            LOG.debug("Closed subscription to %s", self.channel)


@dataclass
class SubscriptionBroker:
    """
    Opens dedicated subscriptions against the template Redis client.

    Usage:
        broker = SubscriptionBroker(redis)
        subscription = await broker.open_subscription("orders:42")
        await subscription.listen(print)
    """

    redis: "Redis"
    config: ChannelgateConfig = field(default_factory=ChannelgateConfig)

    async def open_subscription(self, channel: str) -> Subscription:
        """
        Subscribe to ``channel`` on a fresh connection.

        Waits for the server to confirm the subscription. No retry is made.

        Raises:
            SubscriptionFailed: If the bus is unreachable, rejects the channel,
                or does not confirm in time
        """
        pubsub = self.redis.pubsub()
        subscription = Subscription(channel=channel, pubsub=pubsub)

        try:
            await pubsub.subscribe(channel)
            confirmation = await pubsub.get_message(
                timeout=self.config.subscribe_timeout_seconds,
            )
        except RedisError as exc:
            LOG.error("Error subscribing to channel %s: %s", channel, exc)
            await subscription.close()
            raise SubscriptionFailed(channel) from exc

        if confirmation is None or confirmation["type"] != "subscribe":
            LOG.error("Subscription to channel %s was not confirmed", channel)
            await subscription.close()
            raise SubscriptionFailed(channel)

        LOG.debug("Subscribed to channel %s", channel)
        return subscription
