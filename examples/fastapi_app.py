"""Minimal app serving the channelgate endpoint against a local Redis."""

from channelgate import ChannelgateConfig, create_app

app = create_app(ChannelgateConfig(redis_url="redis://localhost:6379/0"))
