"""
Structured logging for StudyTracker.

Library modules log through plain `logging.getLogger(__name__)` and the
service facade through get_logger(). The CLI calls setup_logging() once
so those records and structlog events share one stderr handler. stdout
stays free for the CLI's JSON results.

Environment:
    STUDYTRACKER_LOG_LEVEL   DEBUG, INFO (default), WARNING, ...
    STUDYTRACKER_LOG_FORMAT  "json" for one JSON object per line

Usage:
    from studytracker.logging_config import setup_logging
    setup_logging(level="DEBUG")
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Route stdlib and structlog records through one formatter on stderr.

    Args:
        level: Log level name; unknown names fall back to INFO
        json_output: JSON lines instead of console rendering

    Replaces any handlers already on the root logger, so calling it again
    reconfigures rather than duplicates output. httpx request logging is
    held at WARNING or above.
    """
    if level is None:
        level = os.environ.get("STUDYTRACKER_LOG_LEVEL", "INFO")

    if json_output is None:
        json_output = os.environ.get("STUDYTRACKER_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Records from plain stdlib loggers go through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """structlog logger bound to `name`, rendered by setup_logging's formatter."""
    return structlog.get_logger(name)


__all__ = ["get_logger", "setup_logging"]
