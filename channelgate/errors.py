"""Errors raised by channelgate components."""


class ChannelgateError(Exception):
    """Base class for all channelgate errors."""

    http_status: int = 500
    message: str = "Internal gateway error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingCredentials(ChannelgateError):
    """The request did not carry both a token and a token type."""

    http_status = 401
    message = "Both token and type are required"


class AuthorizationFailed(ChannelgateError):
    """The token is unknown, expired or could not be looked up.

    The message is identical for every cause so callers cannot tell them apart.
    """

    http_status = 403
    message = "Invalid or expired token for this flow"


class SubscriptionFailed(ChannelgateError):
    """A dedicated subscription to the channel could not be established."""

    http_status = 503
    message = "Could not subscribe to the event channel"

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__()


class TransportError(ChannelgateError):
    """The stream to the client can no longer be written."""

    def __init__(self, session_id: str, reason: str) -> None:
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Session {session_id} stream failed: {reason}")


class SlowConsumer(TransportError):
    """The client fell too far behind and its output buffer overflowed."""

    def __init__(self, session_id: str, limit: int) -> None:
        self.limit = limit
        super().__init__(session_id, f"more than {limit} frames pending")


class SessionClosed(ChannelgateError):
    """The session was closed before its stream could start."""

    http_status = 503
    message = "Gateway is closing the connection"
