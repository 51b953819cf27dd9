"""Environment settings for the prici middleware.

Static options can be supplied through environment variables with the
``PRICI_`` prefix (e.g. ``PRICI_FIELD_ID``). Options passed in code always
take precedence over these values.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class PriciSettings(BaseSettings):
    """Static middleware options loaded from the environment."""

    model_config = SettingsConfigDict(env_prefix="PRICI_", extra="ignore")

    field_id: str | None = Field(default=None, description="Static field identifier")
    error_message: str | None = Field(default=None, description="Static deny message")
    increment_amount: int | float | None = Field(
        default=None,
        ge=0,
        description="Static increment amount; unset lets the service decide",
    )
    excluded_prefixes: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(),
        description="URL path prefixes that bypass quota enforcement",
    )

    @field_validator("field_id", "error_message", mode="before")
    @classmethod
    def _blank_as_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("excluded_prefixes", mode="before")
    @classmethod
    def _parse_comma_separated(cls, v: Any) -> tuple[str, ...]:
        if isinstance(v, str):
            return tuple(s.strip() for s in v.split(",") if s.strip())
        if isinstance(v, (list, tuple)):
            return tuple(v)
        return ()


@lru_cache(maxsize=1)
def get_prici_settings() -> PriciSettings:
    """Get cached PriciSettings instance.

    Clear cache with ``get_prici_settings.cache_clear()`` for testing.
    """
    return PriciSettings()
