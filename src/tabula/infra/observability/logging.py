"""One structlog pipeline for both structlog and stdlib loggers.

Purge code logs through :func:`get_logger`; infrastructure modules keep using
``logging.getLogger(__name__)`` with ``extra={...}``. Both end up in the same
processor chain: request id from contextvars, level, UTC timestamp, secret
redaction, then JSON in production or a console renderer elsewhere.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import Any

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REDACTED_VALUE = "***REDACTED***"

# Exact (case-insensitive) key names; any key containing a _SECRET_FRAGMENTS entry also matches
_SECRET_KEYS = frozenset(
    {"authorization", "bearer", "secret", "api_key", "apikey", "credential"}
)
_SECRET_FRAGMENTS = ("password", "token")

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingSettings(BaseSettings):
    """``LOG_LEVEL`` and ``ENVIRONMENT``, read without a prefix."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> str:
        level = str(v).upper()
        if level not in _LEVELS:
            msg = f"log_level must be one of {list(_LEVELS)}"
            raise ValueError(msg)
        return level

    @property
    def use_json_logs(self) -> bool:
        return self.environment == "production"

    @property
    def log_level_int(self) -> int:
        return logging.getLevelName(self.log_level)


class SensitiveDataProcessor:
    """Replace the value of any secret-looking key with :data:`REDACTED_VALUE`.

    >>> SensitiveDataProcessor()(None, "info", {"auth_token": "abc"})["auth_token"]
    '***REDACTED***'
    """

    def __call__(self, logger: Any, method_name: str, event_dict: Any) -> Any:
        for key in [k for k in event_dict if _looks_secret(k)]:
            event_dict[key] = REDACTED_VALUE
        return event_dict


def _looks_secret(key: str) -> bool:
    lowered = key.lower()
    return lowered in _SECRET_KEYS or any(f in lowered for f in _SECRET_FRAGMENTS)


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings()


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        SensitiveDataProcessor(),
    ]


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install the pipeline; replaces every handler on the root logger.

    Args:
        settings: Level and environment; read from the environment if omitted.
    """
    settings = settings or get_logging_settings()
    if settings.use_json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*_pre_chain(), structlog.processors.format_exc_info, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level_int),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[*_pre_chain(), structlog.stdlib.ExtraAdder()],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level_int)


def get_logger(name: str | None = None) -> Any:
    """A structlog logger, bound to ``logger=name`` when a name is given."""
    logger = structlog.get_logger()
    return logger.bind(logger=name) if name is not None else logger
