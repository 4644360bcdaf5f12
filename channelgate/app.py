"""FastAPI application wiring the channelgate router, Redis clients and error handlers."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis import asyncio as aioredis

from channelgate.authorizer import KeyValueAuthorizer
from channelgate.broker import SubscriptionBroker
from channelgate.config import ChannelgateConfig
from channelgate.errors import ChannelgateError
from channelgate.gateway import StreamGateway
from channelgate.models import ErrorResponse
from channelgate.router import router

LOG = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    gateway: StreamGateway = app.extra["gateway"]
    LOG.info("Channelgate connected to Redis at %s", gateway.config.redis_url)
    try:
        yield
    finally:
        await gateway.shutdown()
        await gateway.authorizer.redis.aclose()
        await gateway.broker.redis.aclose()


async def channelgate_error_handler(request: Request, exc: ChannelgateError) -> JSONResponse:
    if exc.http_status >= 500:
        LOG.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(
        ErrorResponse(error=exc.message).model_dump(),
        status_code=exc.http_status,
    )


def create_app(
    config: ChannelgateConfig | None = None,
    *,
    redis: "aioredis.Redis | None" = None,
    subscriber_redis: "aioredis.Redis | None" = None,
) -> FastAPI:
    """
    Build the gateway app.

    ``redis`` serves token lookups; ``subscriber_redis`` is the template
    client dedicated subscriptions are opened from. Both are created from
    ``config.redis_url`` when not given.
    """
    if config is None:
        config = ChannelgateConfig()
    if redis is None:
        redis = aioredis.from_url(config.redis_url)
    if subscriber_redis is None:
        subscriber_redis = aioredis.from_url(config.redis_url)

    gateway = StreamGateway(
        authorizer=KeyValueAuthorizer(redis, config),
        broker=SubscriptionBroker(subscriber_redis, config),
        config=config,
    )

    app = FastAPI(title="channelgate", lifespan=lifespan, gateway=gateway)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ChannelgateError, channelgate_error_handler)
    app.include_router(router)
    return app
