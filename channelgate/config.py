"""Configuration for channelgate components."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChannelgateConfig(BaseSettings):
    redis_url: str = Field(
        default="redis://localhost:6379",
        validation_alias=AliasChoices("channelgate_redis_url", "redis_url"),
    )
    host: str = "0.0.0.0"
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("channelgate_port", "port"),
    )

    # Must match the key layout written by the token issuer.
    token_key_pattern: str = "token:{token_type}:{token}"
    # Compatibility mode for clients that omit ``type``. Disabled when unset.
    default_token_type: str | None = None

    heartbeat_interval_seconds: float = 30.0
    subscribe_timeout_seconds: float = 5.0
    max_pending_frames: int = 1000

    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="channelgate_", populate_by_name=True)

    def token_key(self, token_type: str, token: str) -> str:
        return self.token_key_pattern.format(token_type=token_type, token=token)
