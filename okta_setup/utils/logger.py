"""Project-wide logging helpers built on structured logging utilities."""

from __future__ import annotations

import logging
from typing import Any

from .logging_config import (
    ConsoleFormatter,
    StructuredJSONFormatter,
    StructuredLoggerAdapter,
    bind_context,
    clear_context,
    configure_logging,
    get_structured_logger,
    logging_context,
)

__all__ = [
    "configure",
    "get_logger",
    "bind_context",
    "clear_context",
    "logging_context",
    "StructuredJSONFormatter",
]


def configure(
    *,
    level: int = logging.INFO,
    json_output: bool = True,
    handlers: list[logging.Handler] | None = None,
) -> None:
    """Configure logging for the application.

    ``json_output=False`` switches to the console formatter used by the CLI.
    """
    formatter = StructuredJSONFormatter() if json_output else ConsoleFormatter()
    configure_logging(level=level, handlers=handlers, formatter=formatter)


def get_logger(name: str, **context: Any) -> StructuredLoggerAdapter:
    """Return a structured logger adapter for the provided name."""
    return get_structured_logger(name, **context)
