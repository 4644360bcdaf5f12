"""
channelgate - Token-gated SSE Gateway for Redis pub/sub

Clients trade a short-lived token for a Server-Sent-Events stream of the
Redis channel the token maps to.

The gateway does NOT inspect message payloads - it simply frames bytes.
"""

from channelgate.app import create_app
from channelgate.authorizer import KeyValueAuthorizer
from channelgate.broker import Subscription, SubscriptionBroker
from channelgate.config import ChannelgateConfig
from channelgate.errors import (
    AuthorizationFailed,
    ChannelgateError,
    MissingCredentials,
    SessionClosed,
    SlowConsumer,
    SubscriptionFailed,
    TransportError,
)
from channelgate.gateway import StreamGateway
from channelgate.models import TokenCredentials
from channelgate.session import SessionState, StreamSession

__all__ = [
    # App
    "create_app",
    "ChannelgateConfig",
    # Components
    "KeyValueAuthorizer",
    "SubscriptionBroker",
    "Subscription",
    "StreamGateway",
    "StreamSession",
    "SessionState",
    # Models
    "TokenCredentials",
    # Errors
    "ChannelgateError",
    "MissingCredentials",
    "AuthorizationFailed",
    "SubscriptionFailed",
    "SessionClosed",
    "TransportError",
    "SlowConsumer",
]

__version__ = "0.1.0"
