"""
WireKV configuration settings.

Every value can be overridden from the environment. The environment is read
when a `Settings` is built, not when this module is imported.
A size limit of 0 disables that bound.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache


def _env(name: str, default, cast=str):
    def read():
        raw = os.environ.get(name)
        if raw is None:
            return default
        try:
            return cast(raw)
        except ValueError:
            raise ValueError(f"Invalid value for {name}: {raw!r}") from None

    return field(default_factory=read)


@dataclass
class Settings:
    """Server and client configuration."""

    # Network settings
    HOST: str = _env("WIREKV_HOST", "127.0.0.1")
    PORT: int = _env("WIREKV_PORT", 43210, int)

    # Declared length bounds, checked before a body is read
    MAX_KEY_SIZE: int = _env("WIREKV_MAX_KEY_SIZE", 64 * 1024, int)
    MAX_VALUE_SIZE: int = _env("WIREKV_MAX_VALUE_SIZE", 64 * 1024 * 1024, int)

    # Stream recovery after an unknown command tag
    DRAIN_CHUNK_SIZE: int = 1024
    DRAIN_TIMEOUT: float = _env("WIREKV_DRAIN_TIMEOUT", 0.05, float)

    # Client settings
    RESPONSE_BUFFER_SIZE: int = 1024

    # Logging settings
    LOG_LEVEL: str = _env("WIREKV_LOG_LEVEL", "INFO")


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Process-wide settings, built from the environment on first use"""
    return Settings()
