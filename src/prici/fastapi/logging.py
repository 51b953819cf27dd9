"""Structured logging for quota enforcement using structlog.

The middleware logs its decisions and accounting failures through
structlog. Applications that already configure structlog need nothing from
this module beyond, optionally, adding :class:`QuotaContextProcessor` to
their chain. Others can call :func:`configure_logging` once at startup.

Events emitted by the middleware:

- ``prici_middleware_configured`` (info): options summary at startup
- ``quota_check_skipped`` (debug): identity not resolvable, no enforcement
- ``quota_allowed`` (debug) / ``quota_denied`` (warning): gate decision
- ``invalid_field_state`` (error): unusable answer from the quota service
- ``usage_recorded`` (debug) / ``increment_field_failed`` (error): accounting

Usage:
    from prici.fastapi.logging import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
    logger.info("report_generated", report_id=report_id)
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from functools import lru_cache
from typing import Any, Literal

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from prici.fastapi.context import get_current_quota_values

Processor = structlog.types.Processor

# Logger name used by the middleware when none is injected
LOGGER_NAME = "prici.fastapi"

_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class LoggingSettings(BaseSettings):
    """Logging configuration from ``PRICI_LOG_*`` environment variables.

    - PRICI_LOG_LEVEL: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - PRICI_LOG_RENDERER: ``console`` (default) or ``json``
    """

    model_config = SettingsConfigDict(env_prefix="PRICI_LOG_", extra="ignore")

    level: str = Field(default="INFO", description="Minimum log level")
    renderer: Literal["console", "json"] = Field(
        default="console",
        description="Output format of rendered events",
    )

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: Any) -> str:
        level = v.upper() if isinstance(v, str) else str(v)
        if level not in _LEVELS:
            msg = f"level must be one of {sorted(_LEVELS)}"
            raise ValueError(msg)
        return level

    @field_validator("renderer", mode="before")
    @classmethod
    def _normalize_renderer(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @property
    def use_json_logs(self) -> bool:
        return self.renderer == "json"

    @property
    def level_int(self) -> int:
        return logging.getLevelNamesMapping()[self.level]


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached LoggingSettings instance.

    Clear cache with ``get_logging_settings.cache_clear()`` for testing.
    """
    return LoggingSettings()


class QuotaContextProcessor:
    """Structlog processor stamping events with the active quota tag.

    Anything logged while a metered request is being handled, including by
    the application's own handlers, carries the ``account_id`` and
    ``field_id`` the request is charged to. Values already present on the
    event are left alone.

    Example:
        >>> processor = QuotaContextProcessor()
        >>> processor(None, "info", {"event": "report_generated"})
        {'event': 'report_generated'}
    """

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        values = get_current_quota_values()
        if values is not None:
            event_dict.setdefault("account_id", values.account_id)
            event_dict.setdefault("field_id", values.field_id)
        return event_dict


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure structlog for an application using prici.

    Processor chain: context-var merging, quota tag, log level, ISO 8601
    UTC timestamps, exception formatting, then JSON or console rendering.

    Args:
        settings: Optional LoggingSettings. Loaded from environment if omitted.
    """
    if settings is None:
        settings = get_logging_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        QuotaContextProcessor(),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    if settings.use_json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.level_int),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger, bound to ``name`` when given."""
    logger = structlog.get_logger()
    if name is not None:
        logger = logger.bind(logger=name)
    return logger
