"""
FastAPI Router for the Channelgate SSE Endpoint

Clients connect with ``GET /events?token=...&type=...`` and receive every
message published on the channel their token grants, as Server-Sent Events.
Payloads are relayed byte for byte - the gateway does not inspect content.
"""

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response

from channelgate.gateway import StreamGateway
from channelgate.models import HealthResponse, TokenCredentials
from channelgate.sse import EventStreamResponse

LOG = logging.getLogger(__name__)

router = APIRouter(tags=["channelgate"])


def get_gateway(request: Request) -> StreamGateway:
    return request.app.extra["gateway"]


@router.get("/events")
async def stream_events(
    request: Request,
    token: str | None = Query(default=None),
    token_type: str | None = Query(default=None, alias="type"),
) -> Response:
    """
    Authorize the token and stream the channel it maps to.

    Errors before the stream starts are answered with ``{"error": ...}``
    by the exception handlers; once streaming, failures just close the stream.
    """
    gateway = get_gateway(request)
    credentials = TokenCredentials.from_query(
        token,
        token_type,
        default_token_type=gateway.config.default_token_type,
    )

    LOG.debug("Opening stream for flow %s", credentials.token_type)
    session = await gateway.open_session(credentials)
    return EventStreamResponse(session)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> JSONResponse:
    gateway = get_gateway(request)
    redis_ok = await gateway.authorizer.ping()
    body = HealthResponse(
        status="ok" if redis_ok else "degraded",
        redis=redis_ok,
        sessions=len(gateway.active_sessions_set),
    )
    return JSONResponse(body.model_dump(), status_code=200 if redis_ok else 503)
