"""Structured logging configuration for nzbscout.

Log lines go to stderr (and optionally a file) so that command output on
stdout stays machine-readable.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from nzbscout.config import LoggingConfig

_SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer(config: LoggingConfig):
    if config.format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _build_handlers(config: LoggingConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if not config.output:
        return handlers

    log_path = Path(config.output)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, mode="a", encoding="utf-8"))
    except OSError as e:
        print(f"Warning: Could not create log file {config.output}: {e}", file=sys.stderr)
    return handlers


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        config: Logging configuration
    """
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, _renderer(config)],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, config.level.upper())
    handlers = _build_handlers(config)
    for handler in handlers:
        handler.setLevel(level)

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    # httpx logs every request URL at INFO, api_key query parameter included
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name (defaults to caller's module name)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)
