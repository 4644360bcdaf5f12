"""
Server-Sent-Events framing and the streaming response that carries it.

Payloads are framed, never inspected: ``data: <payload>\\n\\n``.
"""

import logging
from typing import TYPE_CHECKING

from starlette.requests import ClientDisconnect
from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

if TYPE_CHECKING:
    from channelgate.session import StreamSession

LOG = logging.getLogger(__name__)

KEEPALIVE_FRAME = b": keep-alive\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def data_frame(payload: bytes) -> bytes:
    return b"data: " + payload + b"\n\n"


class EventStreamResponse(StreamingResponse):
    """
    Streams a session's frames and always closes the session afterwards,
    whether the stream ended, the client went away or a write failed.
    """

    media_type = "text/event-stream"

    def __init__(self, session: "StreamSession") -> None:
        super().__init__(session.frames(), headers=SSE_HEADERS)
        self.session = session

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except (ClientDisconnect, OSError) as exc:
            LOG.info("Stream for session %s broke: %r", self.session.session_id, exc)
        finally:
            await self.session.close()
