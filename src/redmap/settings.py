"""Connection and mapping settings for redmap.

``StoreSettings`` collects everything the engine needs to reach the store
(host, port, auth secret, keep-alive, logical database) plus the key prefix
and identifier field used by the mapper.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not on first command
    - **Environment-driven:** ``REDMAP_*`` env vars and ``.env`` files
    - **Sensible defaults:** Works against a local Redis out of the box

Examples:
    >>> from redmap.settings import StoreSettings
    >>> s = StoreSettings(prefix="app", db=2)
    >>> s.redis_url
    'redis://localhost:6379/2'

Tags:
    settings, configuration, pydantic, environment, redmap

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Settings consumed by :class:`~redmap.engine.Engine`.

    Fields
    ──────
    host            : Store hostname
    port            : Store port
    password        : Auth secret (``None`` for no AUTH)
    socket_keepalive: Enable TCP keep-alive on the connection
    db              : Logical database index
    prefix          : Prefix for every storage key
    id_field        : Default identifier attribute for registered models
    log_level       : structlog level used by ``configure_logging``
    """

    model_config = SettingsConfigDict(
        env_prefix="REDMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────
    host: str = Field(default="localhost")
    port: int = Field(default=6379)
    password: SecretStr | None = Field(default=None)
    socket_keepalive: bool = Field(default=True)
    db: int = Field(default=0, ge=0)

    # ── Mapping ──────────────────────────────────────────────────
    prefix: str = Field(default="db", min_length=1)
    id_field: str = Field(default="_id", min_length=1)

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def redis_url(self) -> str:
        """Connection URL without the password (safe to log)."""
        return f"redis://{self.host}:{self.port}/{self.db}"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, StoreSettings] = {}


def get_settings(*, _force_reload: bool = False) -> StoreSettings:
    """Load, validate, and cache a :class:`StoreSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = StoreSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "StoreSettings",
    "get_settings",
    "clear_settings_cache",
]
