"""Tests for ChannelgateConfig - defaults, token key layout and environment sources."""

import pytest

from channelgate.config import ChannelgateConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("REDIS_URL", "PORT", "CHANNELGATE_REDIS_URL", "CHANNELGATE_PORT"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = ChannelgateConfig()
    assert config.redis_url == "redis://localhost:6379"
    assert config.port == 3000
    assert config.heartbeat_interval_seconds == 30.0
    assert config.default_token_type is None


def test_token_key_matches_issuer_layout():
    config = ChannelgateConfig()
    assert config.token_key("chats", "XYZ") == "token:chats:XYZ"
    assert config.token_key("pipeline", "a:b") == "token:pipeline:a:b"


def test_custom_token_key_pattern():
    config = ChannelgateConfig(token_key_pattern="auth/{token}/{token_type}")
    assert config.token_key("chats", "XYZ") == "auth/XYZ/chats"


def test_plain_environment_variables(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://bus:6380/2")
    monkeypatch.setenv("PORT", "8080")
    config = ChannelgateConfig()
    assert config.redis_url == "redis://bus:6380/2"
    assert config.port == 8080


def test_prefixed_environment_variables_win(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://plain:6379")
    monkeypatch.setenv("CHANNELGATE_REDIS_URL", "redis://prefixed:6379")
    assert ChannelgateConfig().redis_url == "redis://prefixed:6379"


def test_prefixed_settings(monkeypatch):
    monkeypatch.setenv("CHANNELGATE_DEFAULT_TOKEN_TYPE", "chats")
    monkeypatch.setenv("CHANNELGATE_MAX_PENDING_FRAMES", "5")
    config = ChannelgateConfig()
    assert config.default_token_type == "chats"
    assert config.max_pending_frames == 5


def test_fields_accept_their_own_names():
    config = ChannelgateConfig(redis_url="redis://other:6379", port=9000)
    assert config.redis_url == "redis://other:6379"
    assert config.port == 9000
