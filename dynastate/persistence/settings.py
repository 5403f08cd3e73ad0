"""Adapter configuration loaded from DYNASTATE_* environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DynastateSettings(BaseSettings):
    """Durable state adapter settings.

    All fields are read from environment variables with the ``DYNASTATE_``
    prefix.  For example, ``DYNASTATE_TABLE_NAME=actors`` maps to
    ``table_name``.

    AWS credentials are optional: when ``access_key`` is unset, boto3 resolves
    them through its usual chain (env vars, shared config, instance role).
    """

    model_config = SettingsConfigDict(
        env_prefix="DYNASTATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Backend ---------------------------------------------------------------
    state_store: Literal["dynamodb", "memory"] = "dynamodb"

    table_name: str = "states_store"
    region: str = "us-west-2"

    endpoint_url: str | None = None
    """Override the DynamoDB endpoint (DynamoDB Local, LocalStack)."""

    access_key: str | None = None
    secret_key: SecretStr | None = None

    consistent_read: bool = True
    """Use strongly consistent reads so a read observes the preceding write."""

    # -- Client tuning ---------------------------------------------------------
    connect_timeout: float = Field(default=5.0, gt=0)
    read_timeout: float = Field(default=10.0, gt=0)
    max_attempts: int = Field(default=1, ge=1)
    """Total botocore attempts per call.  ``1`` disables client-side retries;
    retry policy belongs to the caller."""


def get_settings() -> DynastateSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> DynastateSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return DynastateSettings()


from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
