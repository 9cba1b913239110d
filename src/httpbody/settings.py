"""Settings for the httpbody middlewares and demo server."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from httpbody.utilities.logging import LogLevel


class HttpBodySettings(BaseSettings):
    """httpbody settings.

    All settings can be configured via environment variables with the prefix HTTPBODY_.
    For example, HTTPBODY_LOG_MAX_BYTES=1024 will set log_max_bytes=1024.
    """

    model_config = SettingsConfigDict(
        env_prefix="HTTPBODY_",
        env_file=".env",
        extra="ignore",
    )

    # Buffering settings
    spool_max_size: int = Field(default=1_048_576, gt=0)
    """Bytes kept in memory before a buffered body rolls over to a temporary file."""

    chunk_size: int = Field(default=65_536, gt=0)
    """Size of the body chunks replayed to the downstream app."""

    max_body_bytes: int | None = Field(default=None, gt=0)
    """Reject bodies larger than this with 413. None disables the limit."""

    # Body logging settings
    log_max_bytes: int | None = Field(default=4096, ge=0)
    """Maximum number of body bytes written to the log. None logs the whole body."""

    log_methods: list[str] = Field(default_factory=lambda: ["POST", "PUT", "PATCH", "DELETE"])

    log_level: LogLevel = "INFO"
