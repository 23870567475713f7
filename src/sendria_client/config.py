"""
Client configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Client configuration from environment variables.

    Every setting can be overridden with a ``SENDRIA_``-prefixed environment
    variable, e.g. ``SENDRIA_URL`` or ``SENDRIA_LOG_LEVEL``.
    """

    # Sendria server
    url: str = "http://localhost:1080"
    username: Optional[str] = None
    password: Optional[str] = None

    # HTTP transport
    timeout_seconds: float = 30.0
    max_connections: int = 10
    keepalive_expiry_seconds: float = 90.0
    max_retries: int = 3
    retry_delay_seconds: float = 0.5

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # MIME decomposition
    max_mime_depth: int = 32  # Nested multipart containers beyond this are rejected

    # Test harness / monitor polling
    poll_interval_seconds: float = 2.0
    wait_poll_interval_seconds: float = 0.05

    model_config = {
        "env_prefix": "SENDRIA_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()
