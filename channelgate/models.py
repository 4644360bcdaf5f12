"""Request and response models for the HTTP surface."""

import logging

from pydantic import BaseModel

from channelgate.errors import MissingCredentials

LOG = logging.getLogger(__name__)


class TokenCredentials(BaseModel):
    token_type: str
    token: str

    @classmethod
    def from_query(
        cls,
        token: str | None,
        token_type: str | None,
        *,
        default_token_type: str | None = None,
    ) -> "TokenCredentials":
        """
        Build credentials from the ``token`` and ``type`` query parameters.

        When ``default_token_type`` is configured, a missing ``type`` falls
        back to it. Otherwise both parameters are required.

        Raises:
            MissingCredentials: If the token or the token type is missing or empty
        """
        if not token_type and default_token_type:
            LOG.debug("No token type given, using default %r", default_token_type)
            token_type = default_token_type

        if not token or not token_type:
            raise MissingCredentials()

        return cls(token_type=token_type, token=token)


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    redis: bool
    sessions: int
