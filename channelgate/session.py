"""
Channelgate Stream Session

Per-connection state machine: authorize, subscribe, relay, tear down.

Message relay and heartbeat both push frames onto one bounded queue;
``frames()`` is the only consumer, so the output stream has a single writer
and frames leave in the order they were produced.
"""

import asyncio
import contextlib
import logging
import uuid
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import cast

from redis.exceptions import RedisError

from channelgate.authorizer import KeyValueAuthorizer
from channelgate.broker import Subscription, SubscriptionBroker
from channelgate.config import ChannelgateConfig
from channelgate.errors import SessionClosed, SlowConsumer, SubscriptionFailed, TransportError
from channelgate.models import TokenCredentials
from channelgate.sse import KEEPALIVE_FRAME, data_frame

LOG = logging.getLogger(__name__)


class SessionState(StrEnum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    SUBSCRIBED = "subscribed"
    RELAYING = "relaying"
    TERMINATED = "terminated"


@dataclass(eq=False)
class StreamSession:
    """
    State for one streaming client connection.

    Usage:
        session = StreamSession(authorizer, broker)
        await session.authorize(credentials)
        await session.subscribe()
        async for frame in session.frames():
            ...
        await session.close()
    """

    authorizer: KeyValueAuthorizer
    broker: SubscriptionBroker
    config: ChannelgateConfig = field(default_factory=ChannelgateConfig)
    on_close: Callable[["StreamSession"], None] | None = field(default=None, kw_only=True)

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex, init=False)
    state: SessionState = field(default=SessionState.PENDING, init=False)
    token_type: str | None = field(default=None, init=False)
    channel: str | None = field(default=None, init=False)
    subscription: Subscription | None = field(default=None, init=False)
    queue: asyncio.Queue[bytes | None] = field(init=False)
    aborted: bool = field(default=False, init=False)
    relay_task: asyncio.Task[None] | None = field(default=None, init=False)
    heartbeat_task: asyncio.Task[None] | None = field(default=None, init=False)
    teardown: asyncio.Task[None] | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.queue = asyncio.Queue(maxsize=self.config.max_pending_frames)

    @property
    def terminated(self) -> bool:
        return self.state is SessionState.TERMINATED

    async def authorize(self, credentials: TokenCredentials) -> str:
        """
        Resolve the credentials to a channel.

        Raises:
            AuthorizationFailed: The session is closed before this propagates
            SessionClosed: If the session was closed during the lookup
        """
        self.expect(SessionState.PENDING)
        self.token_type = credentials.token_type

        try:
            channel = await self.authorizer.resolve(credentials.token_type, credentials.token)
        except BaseException:
            await self.close()
            raise

        if self.terminated:
            raise SessionClosed()

        self.channel = channel
        self.state = SessionState.AUTHORIZED
        LOG.info("Client authorized! Flow: %s -> Channel: %s", self.token_type, self.channel)
        return self.channel

    async def subscribe(self) -> None:
        """
        Open the session's dedicated subscription.

        Raises:
            SubscriptionFailed: The session is closed before this propagates,
                or was closed while the subscribe was in flight
        """
        self.expect(SessionState.AUTHORIZED)
        channel = cast(str, self.channel)

        try:
            subscription = await self.broker.open_subscription(channel)
        except BaseException:
            await self.close()
            raise

        if self.terminated:
            await subscription.close()
            raise SubscriptionFailed(channel)

        self.subscription = subscription
        self.state = SessionState.SUBSCRIBED

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield encoded frames until the session ends. The single writer."""
        if self.state is not SessionState.SUBSCRIBED:
            LOG.debug("Session %s cannot relay from state %s", self.session_id, self.state)
            return

        self.state = SessionState.RELAYING
        self.relay_task = asyncio.create_task(self.relay())
        self.heartbeat_task = asyncio.create_task(self.heartbeat())

        try:
            while True:
                frame = await self.queue.get()
                if frame is None or self.aborted:
                    break
                yield frame
        finally:
            await self.close()

    def enqueue(self, frame: bytes) -> None:
        """
        Queue a frame for the writer.

        Raises:
            SlowConsumer: If the client has too many frames pending
        """
        if self.aborted:
            return
        try:
            self.queue.put_nowait(frame)
        except asyncio.QueueFull:
            LOG.warning(
                "Session %s exceeded %d pending frames, dropping client",
                self.session_id,
                self.config.max_pending_frames,
            )
            self.abort()
            self.start_teardown()
            raise SlowConsumer(self.session_id, self.config.max_pending_frames) from None

    def on_message(self, payload: bytes) -> None:
        self.enqueue(data_frame(payload))

    async def relay(self) -> None:
        """Move bus messages into the queue until the subscription ends."""
        if self.subscription is None:
            raise RuntimeError(f"Session {self.session_id} has no subscription to relay")

        try:
            await self.subscription.listen(self.on_message)
        except TransportError:
            return
        except RedisError as exc:
            LOG.warning("Subscription to %s failed: %s", self.channel, exc)
        except Exception:
            LOG.exception("Error relaying channel %s", self.channel)
        else:
            LOG.info("Subscription to %s ended", self.channel)

        # Let the writer drain what is already queued, then stop.
        try:
            self.queue.put_nowait(None)
        except asyncio.QueueFull:
            self.abort()

    async def heartbeat(self) -> None:
        """Periodically queue a keep-alive comment."""
        while True:
            await asyncio.sleep(self.config.heartbeat_interval_seconds)
            try:
                self.enqueue(KEEPALIVE_FRAME)
            except SlowConsumer:
                return

    def abort(self) -> None:
        """Stop the writer without draining pending frames."""
        self.aborted = True
        with contextlib.suppress(asyncio.QueueFull):
            self.queue.put_nowait(None)

    async def close(self) -> None:
        """
        Terminate the session and release its resources.

        Every caller awaits the same teardown, so repeated or concurrent calls
        release the subscription exactly once. The teardown is shielded from
        cancellation of the caller.
        """
        await asyncio.shield(self.start_teardown())

    def start_teardown(self) -> asyncio.Task[None]:
        """Start terminating the session without waiting for it."""
        if self.teardown is None:
            self.teardown = asyncio.create_task(self.terminate())
        return self.teardown

    async def terminate(self) -> None:
        previous = self.state
        self.state = SessionState.TERMINATED
        self.abort()

        tasks = [task for task in (self.heartbeat_task, self.relay_task) if task is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if self.subscription is not None:
            await self.subscription.close()

        if self.on_close is not None:
            self.on_close(self)

        if previous in (SessionState.SUBSCRIBED, SessionState.RELAYING):
            LOG.info("Client left flow %s (Channel: %s)", self.token_type, self.channel)
        else:
            LOG.debug("Session %s closed from state %s", self.session_id, previous)

    def expect(self, state: SessionState) -> None:
        if self.state is not state:
            raise RuntimeError(f"Session {self.session_id} is {self.state}, expected {state}")
