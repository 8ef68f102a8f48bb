"""Structured logging for the tracker, built on structlog.

Console rendering in development, one JSON object per line in production.
Services bind the asset they are working on through ``LogContext`` so every
event emitted while a purchase, sale or plan is processed carries the same
``symbol`` and ``asset_id`` without repeating them at each call site.
"""

import logging
import sys
from collections.abc import Mapping
from contextvars import Token
from pathlib import Path
from typing import Any
from uuid import UUID

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from asset_tracker.config import Settings, get_settings


def _add_log_level(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    if method_name == "warn":
        method_name = "warning"
    event_dict["level"] = method_name.upper()
    return event_dict


def _add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment.value
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def get_console_processors() -> list[Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        *_shared_processors(),
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def get_json_processors() -> list[Processor]:
    return [
        _add_log_level,
        _add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        *_shared_processors(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(sort_keys=True),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger from settings.

    Call once at startup, before the first event is logged.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.value)

    if settings.log_format == "json":
        processors = get_json_processors()
    else:
        processors = get_console_processors()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.log_file:
        _add_file_handler(settings.log_file, level)


def _add_file_handler(log_file: Path, level: int) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logging.getLogger().addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually ``get_logger(__name__)``."""
    return structlog.stdlib.get_logger(name)


def asset_context(symbol: str, asset_id: UUID | str | None = None) -> dict[str, str]:
    """Context fields identifying the asset an operation works on."""
    context = {"symbol": symbol}
    if asset_id is not None:
        context["asset_id"] = str(asset_id)
    return context


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind context fields for the duration of a ``with`` block.

    On exit each field goes back to the value it had before, so nested
    blocks (a plan applied inside a sale) restore the outer binding.

        with LogContext(**asset_context("AAPL", asset.id)):
            logger.info("sale_recorded", matched_quantity="20")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._tokens: Mapping[str, Token[Any]] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.fields)
        return self

    def __exit__(self, *args: object) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = {}
