"""Logging setup for the CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from cmdgraph.core.errors import CmdGraphError

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(level: str, *, console: Console | None = None) -> None:
    """Route `cmdgraph` loggers to stderr through rich."""

    normalized = level.strip().upper()
    if normalized not in LOG_LEVELS:
        raise CmdGraphError(f"unknown log level: {level} (expected: {'|'.join(LOG_LEVELS)})")

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("cmdgraph")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(normalized)
