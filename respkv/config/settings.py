"""
RESP-KV Configuration Settings

This module contains all configuration constants for the RESP-KV server.
Values can be overridden through environment variables or CLI flags.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("RESP_KV_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("RESP_KV_PORT", "6379"))

    # Concurrency substrate: "asyncio" or "threaded"
    MODE: str = os.environ.get("RESP_KV_MODE", "asyncio")

    # Send "-ERR ..." for unknown commands instead of staying silent
    STRICT_ERRORS: bool = os.environ.get("RESP_KV_STRICT", "false").lower() == "true"

    # Connection settings
    READ_BUFFER_SIZE: int = 4096
    MAX_BUFFER_SIZE: int = 1024 * 1024  # Unfinished frame bytes kept per connection

    # Logging settings
    DEBUG: bool = os.environ.get("RESP_KV_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("RESP_KV_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
