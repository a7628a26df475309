"""
Structured logging setup.

Usage in every module:
    from pilot_engine.utils.logging import get_logger
    log = get_logger(__name__)
    log.info("event_name", key="value")

Two renderers:
- development: coloured console output
- production: JSON lines (json_logs=True)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# The engine's config uses "warn"; the stdlib spells it WARNING.
_LEVEL_ALIASES = {"warn": "WARNING"}


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to `name`."""
    return structlog.get_logger(name)


def resolve_level(level: str) -> int:
    """Translate a config log level ("debug", "warn", ...) into a stdlib level."""
    normalized = _LEVEL_ALIASES.get(level.lower(), level.upper())
    return getattr(logging, normalized, logging.INFO)


def setup_logging(*, level: str = "info", json_logs: bool = False) -> None:
    """Configure stdlib handlers and structlog processors. Safe to call repeatedly."""
    log_level = resolve_level(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[handler],
        force=True,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for root_handler in logging.root.handlers:
        root_handler.setFormatter(formatter)


def bind_context(**kwargs: Any) -> None:
    """Bind key/value pairs to every log line emitted from the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
