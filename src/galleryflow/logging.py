"""Logging configuration for galleryflow.

Gallery modules log through stdlib loggers with dotted event names
(``gallery.loader.stage.published``) and ``extra`` fields; structlog renders
the same events as JSON for code that binds context.
"""

from __future__ import annotations

import logging

import structlog

# per-request chatter from the transport; gallery events already carry the outcome
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str | int = "INFO") -> int:
    """Configure stdlib logging and structlog at ``level``; returns the numeric level."""
    numeric = _resolve_level(level)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger().setLevel(numeric)
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return numeric


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {level!r}")
    return numeric


__all__ = ["configure_logging"]
