"""
Channelgate Gateway

Owns the shared authorizer and broker and keeps track of active sessions.
Sessions never look at each other; the set of active sessions only exists
for introspection and shutdown.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from channelgate.authorizer import KeyValueAuthorizer
from channelgate.broker import SubscriptionBroker
from channelgate.config import ChannelgateConfig
from channelgate.models import TokenCredentials
from channelgate.session import StreamSession

LOG = logging.getLogger(__name__)


@dataclass
class StreamGateway:
    """
    Entry point for opening streaming sessions.

    Usage:
        gateway = StreamGateway(authorizer, broker)
        session = await gateway.open_session(credentials)
    """

    authorizer: KeyValueAuthorizer
    broker: SubscriptionBroker
    config: ChannelgateConfig = field(default_factory=ChannelgateConfig)
    active_sessions_set: set[StreamSession] = field(default_factory=set, init=False)

    @property
    def active_sessions(self) -> list[StreamSession]:
        """List of sessions that have not been closed yet."""
        return list(self.active_sessions_set)

    def new_session(self) -> StreamSession:
        session = StreamSession(
            self.authorizer,
            self.broker,
            self.config,
            on_close=self.active_sessions_set.discard,
        )
        self.active_sessions_set.add(session)
        return session

    async def open_session(self, credentials: TokenCredentials) -> StreamSession:
        """
        Authorize the credentials and subscribe a new session to its channel.

        Raises:
            AuthorizationFailed: If the token does not resolve
            SubscriptionFailed: If the channel subscription cannot be opened
            SessionClosed: If the gateway closed the session while it was being opened
        """
        session = self.new_session()
        await session.authorize(credentials)
        await session.subscribe()
        return session

    async def shutdown(self) -> None:
        """Close every active session."""
        sessions = self.active_sessions
        LOG.info("Shutting down channelgate, closing %d session(s)", len(sessions))
        await asyncio.gather(*(session.close() for session in sessions))
