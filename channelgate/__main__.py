"""Run the gateway: ``python -m channelgate``."""

import argparse
import logging

import uvicorn

from channelgate.app import create_app
from channelgate.config import ChannelgateConfig


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="channelgate")
    parser.add_argument("--host")
    parser.add_argument("--port", type=int)
    parser.add_argument("--redis-url")
    parser.add_argument("--log-level")
    return parser.parse_args()


def build_config(args: argparse.Namespace) -> ChannelgateConfig:
    overrides = {
        "host": args.host,
        "port": args.port,
        "redis_url": args.redis_url,
        "log_level": args.log_level,
    }
    return ChannelgateConfig(**{key: value for key, value in overrides.items() if value is not None})


def main() -> None:
    config = build_config(parse_args())
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
