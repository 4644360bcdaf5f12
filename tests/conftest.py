"""Shared fixtures: in-memory stand-ins for the redis.asyncio client and PubSub."""

import asyncio
from collections import defaultdict

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from channelgate.app import create_app
from channelgate.authorizer import KeyValueAuthorizer
from channelgate.broker import SubscriptionBroker
from channelgate.config import ChannelgateConfig
from channelgate.gateway import StreamGateway


class FakeBus:
    """Fan-out of published payloads to every attached FakePubSub."""

    def __init__(self) -> None:
        self.subscribers: dict[str, set["FakePubSub"]] = defaultdict(set)
        self.pubsubs: list["FakePubSub"] = []
        self.fail_subscribe = False
        self.confirm_subscribe = True

    def numsub(self, channel: str) -> int:
        return len(self.subscribers[channel])

    def publish(self, channel: str, payload: bytes) -> int:
        receivers = list(self.subscribers[channel])
        for pubsub in receivers:
            pubsub.inbox.put_nowait(
                {"type": "message", "pattern": None, "channel": channel.encode(), "data": payload}
            )
        return len(receivers)

    def disconnect(self, channel: str) -> None:
        """End every subscription to ``channel`` as a dropped connection would."""
        for pubsub in list(self.subscribers[channel]):
            pubsub.inbox.put_nowait(None)


class FakePubSub:
    def __init__(self, bus: FakeBus) -> None:
        self.bus = bus
        self.channels: set[str] = set()
        self.inbox: asyncio.Queue[dict | None] = asyncio.Queue()
        self.close_calls = 0
        bus.pubsubs.append(self)

    async def subscribe(self, *channels: str) -> None:
        if self.bus.fail_subscribe:
            raise RedisConnectionError("Error connecting to bus")
        for channel in channels:
            self.channels.add(channel)
            self.bus.subscribers[channel].add(self)
            if self.bus.confirm_subscribe:
                self.inbox.put_nowait(
                    {"type": "subscribe", "pattern": None, "channel": channel.encode(), "data": 1}
                )

    async def get_message(self, ignore_subscribe_messages: bool = False, timeout: float = 0.0):
        try:
            return await asyncio.wait_for(self.inbox.get(), timeout)
        except TimeoutError:
            return None

    async def listen(self):
        while True:
            message = await self.inbox.get()
            if message is None:
                return
            yield message

    async def aclose(self) -> None:
        self.close_calls += 1
        for channel in self.channels:
            self.bus.subscribers[channel].discard(self)
        self.channels.clear()
        self.inbox.put_nowait(None)


class FakeRedis:
    def __init__(self, bus: FakeBus | None = None) -> None:
        self.bus = bus or FakeBus()
        self.store: dict[str, bytes] = {}
        self.down = False
        self.get_calls = 0
        self.closed = False

    async def get(self, key: str) -> bytes | None:
        self.get_calls += 1
        if self.down:
            raise RedisConnectionError("Connection refused")
        return self.store.get(key)

    async def ping(self) -> bool:
        if self.down:
            raise RedisConnectionError("Connection refused")
        return True

    def pubsub(self) -> FakePubSub:
        return FakePubSub(self.bus)

    async def aclose(self) -> None:
        self.closed = True


async def wait_for_subscribers(bus: FakeBus, channel: str, count: int = 1) -> None:
    for _ in range(200):
        if bus.numsub(channel) == count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"{channel} has {bus.numsub(channel)} subscriber(s), expected {count}")


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def redis(bus) -> FakeRedis:
    return FakeRedis(bus)


@pytest.fixture
def config() -> ChannelgateConfig:
    return ChannelgateConfig(
        heartbeat_interval_seconds=30.0,
        subscribe_timeout_seconds=0.2,
        max_pending_frames=100,
    )


@pytest.fixture
def issue_token(redis, config):
    """Write a token record the way the external issuer does."""

    def issue(token_type: str, token: str, channel: str) -> None:
        redis.store[config.token_key(token_type, token)] = channel.encode("utf-8")

    return issue


@pytest.fixture
def authorizer(redis, config) -> KeyValueAuthorizer:
    return KeyValueAuthorizer(redis, config)


@pytest.fixture
def broker(redis, config) -> SubscriptionBroker:
    return SubscriptionBroker(redis, config)


@pytest.fixture
def gateway(authorizer, broker, config) -> StreamGateway:
    return StreamGateway(authorizer, broker, config)


@pytest.fixture
def app(redis, config):
    return create_app(config, redis=redis, subscriber_redis=redis)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
