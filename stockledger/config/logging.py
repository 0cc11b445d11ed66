"""
Structured logging for the ledger, built on structlog.

Events are snake_case names with key/value fields. Development renders
coloured console lines; every other environment renders one JSON object
per event. ``ledger_operation`` binds the running operation to all events
logged inside it, including those from stores and the lock table.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

from stockledger.config.settings import get_settings


def add_ledger_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp events with the service name, version and environment."""
    settings = get_settings()
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("version", settings.app_version)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def _renderer(environment: str) -> list[Processor]:
    if environment == "development":
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging() -> None:
    """Route structlog through stdlib logging at the configured level."""
    settings = get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        add_ledger_context,
        *_renderer(settings.environment),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # aiosqlite logs every queued call at DEBUG
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


@contextmanager
def ledger_operation(operation: str, **fields: Any) -> Iterator[None]:
    """
    Bind ``operation`` and ``fields`` to every event logged in the block.

    Usage:
        with ledger_operation("transfer_stock", product_id=7):
            ...
    """
    with structlog.contextvars.bound_contextvars(operation=operation, **fields):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
