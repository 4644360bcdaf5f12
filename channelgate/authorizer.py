"""
Channelgate Authorizer

Resolves a (token type, token) pair to the channel it grants access to.
Token records are written with a TTL by an external issuer; the gateway
only ever reads them.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

if TYPE_CHECKING:
    from redis.asyncio import Redis

from channelgate.config import ChannelgateConfig
from channelgate.errors import AuthorizationFailed

LOG = logging.getLogger(__name__)


def redact(token: str) -> str:
    """Return a log-safe form of a token."""
    return f"{token[:4]}***" if len(token) > 8 else "***"


@dataclass
class KeyValueAuthorizer:
    """
    Looks up token records in Redis.

    Results are never cached: a record may expire between two requests.

    Usage:
        authorizer = KeyValueAuthorizer(redis)
        channel = await authorizer.resolve("chats", "XYZ")
    """

    redis: "Redis"
    config: ChannelgateConfig = field(default_factory=ChannelgateConfig)

    async def resolve(self, token_type: str, token: str) -> str:
        """
        Return the channel name stored for the token.

        Raises:
            AuthorizationFailed: If the record is missing, expired, unreadable,
                or the lookup itself failed
        """
        key = self.config.token_key(token_type, token)

        try:
            value = await self.redis.get(key)
        except RedisError:
            LOG.exception("Token lookup failed for type %s", token_type)
            raise AuthorizationFailed() from None

        if value is None:
            LOG.warning("Access denied. Type: %s | Token: %s", token_type, redact(token))
            raise AuthorizationFailed()

        if isinstance(value, bytes):
            try:
                value = value.decode("utf-8")
            except UnicodeDecodeError:
                LOG.warning("Token record for type %s holds a non UTF-8 channel", token_type)
                raise AuthorizationFailed() from None

        return value

    async def ping(self) -> bool:
        """Check that the lookup store answers."""
        try:
            return bool(await self.redis.ping())
        except RedisError:
            LOG.warning("Redis ping failed", exc_info=True)
            return False
