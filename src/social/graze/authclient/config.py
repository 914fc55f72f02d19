"""
Configuration Module for the Auth Client

This module defines the configuration of the auth client transport, using
Pydantic settings for validation. Values are loaded from environment variables
prefixed with ``AUTHCLIENT_`` and fall back to defaults suitable for
production use.

Key configuration areas include:
- Client identification (the User-Agent echoed on every response)
- HTTP timeouts owned by the shared client session
- Retry policy (attempt ceiling and flat delay)
- Monitoring and error reporting
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the auth client transport.

    Environment variables are mapped to fields with the ``AUTHCLIENT_`` prefix,
    for example ``AUTHCLIENT_RETRY_DELAY_SECONDS=0.5``. The retry defaults keep
    the single retry with a flat one second delay.
    """

    model_config = SettingsConfigDict(env_prefix="authclient_")

    # Environment and debugging settings
    debug: bool = False
    """
    Enable verbose request and response logging through DebugMiddleware.
    Set with AUTHCLIENT_DEBUG=true environment variable.
    """

    logging_config_file: Optional[str] = None
    """
    Path to a JSON logging configuration passed to logging.config.dictConfig.
    Set with AUTHCLIENT_LOGGING_CONFIG_FILE environment variable.
    """

    # Client identification
    user_agent: str = "graze-authclient/1.0"
    """
    User-Agent sent by the shared client session and echoed on every response.
    Set with AUTHCLIENT_USER_AGENT environment variable.
    """

    # HTTP client settings
    http_timeout_total: Optional[float] = Field(default=30.0, gt=0)
    """
    Total time in seconds allowed for one attempt, None disables it.
    Set with AUTHCLIENT_HTTP_TIMEOUT_TOTAL environment variable.
    """

    http_timeout_connect: Optional[float] = Field(default=10.0, gt=0)
    """
    Time in seconds allowed to acquire a connection, None disables it.
    Set with AUTHCLIENT_HTTP_TIMEOUT_CONNECT environment variable.
    """

    # Retry policy
    retry_max_attempts: int = Field(default=2, ge=1, le=5)
    """
    Total number of attempts per logical call, the first attempt included.
    Set with AUTHCLIENT_RETRY_MAX_ATTEMPTS environment variable.
    Default: 2 (one retry)
    """

    retry_delay_seconds: float = Field(default=1.0, ge=0)
    """
    Flat delay in seconds between two attempts.
    Set with AUTHCLIENT_RETRY_DELAY_SECONDS environment variable.
    Default: 1.0
    """

    # Monitoring and error reporting
    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with AUTHCLIENT_SENTRY_DSN environment variable.
    """

    metrics_backend: Literal["noop", "telegraf"] = "noop"
    """
    Metrics backend used by the transport.
    Set with AUTHCLIENT_METRICS_BACKEND environment variable.
    """

    statsd_host: str = "telegraf"
    """
    StatsD/Telegraf host for metrics collection.
    Set with AUTHCLIENT_STATSD_HOST environment variable.
    """

    statsd_port: int = Field(default=8125, gt=0, lt=65536)
    """
    StatsD/Telegraf port for metrics collection.
    Set with AUTHCLIENT_STATSD_PORT environment variable.
    """

    statsd_prefix: str = "authclient"
    """
    Prefix for all StatsD metrics sent by the client.
    Set with AUTHCLIENT_STATSD_PREFIX environment variable.
    """

    @field_validator("user_agent")
    @classmethod
    def validate_user_agent(cls, v: str) -> str:
        """
        Reject blank user agents.

        Args:
            v: The input value to validate

        Returns:
            str: The stripped user agent

        Raises:
            ValueError: If the user agent is empty or only whitespace
        """
        value = v.strip()
        if not value:
            raise ValueError("user_agent must not be empty")
        return value
