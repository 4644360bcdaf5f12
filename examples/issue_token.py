"""Issue a token for a channel the way the external workflow engine does, then publish to it."""

import argparse
import asyncio
import secrets

from redis import asyncio as aioredis

from channelgate import ChannelgateConfig


async def run(token_type: str, channel: str, ttl: int, messages: list[str], redis_url: str) -> None:
    redis = aioredis.from_url(redis_url)
    config = ChannelgateConfig(redis_url=redis_url)

    token = secrets.token_urlsafe(16)
    await redis.set(config.token_key(token_type, token), channel, ex=ttl)
    print(f"token: {token}")
    print(f"listen: /events?token={token}&type={token_type}")

    for message in messages:
        input(f"press enter to publish {message!r}")
        receivers = await redis.publish(channel, message)
        print(f"delivered to {receivers} subscriber(s)")

    await redis.aclose()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument("--type", dest="token_type", default="chats")
    parser.add_argument("--channel", required=True)
    parser.add_argument("--ttl", type=int, default=3600)
    parser.add_argument("--redis-url", default="redis://localhost:6379/0")
    parser.add_argument("messages", nargs="*", default=['{"hello": "world"}'])
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(run(args.token_type, args.channel, args.ttl, args.messages, args.redis_url))


if __name__ == "__main__":
    main()
