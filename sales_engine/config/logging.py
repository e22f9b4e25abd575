"""
Logging Configuration for Sales Engine

structlog events and stdlib records (uvicorn, polars warnings) share one
processor chain and one stdout handler. The renderer and level come from
Settings: DEBUG mode always logs at DEBUG through the console renderer.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from sales_engine.config.settings import Settings, get_settings

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def resolve_level(settings: Settings, override: Optional[str] = None) -> int:
    """Numeric level: explicit override, then DEBUG mode, then LOG_LEVEL."""
    if override:
        name = override
    elif settings.debug:
        name = "DEBUG"
    else:
        name = settings.monitoring.log_level
    return getattr(logging, name.upper(), logging.INFO)


def select_renderer(settings: Settings):
    if settings.debug or settings.monitoring.log_format == "text":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return JSONRenderer()


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    settings: Optional[Settings] = None,
    log_level: Optional[str] = None,
) -> logging.Handler:
    """
    Install the structlog pipeline on the root logger.

    Args:
        settings: Application settings; the cached settings when omitted
        log_level: Level name overriding DEBUG mode and LOG_LEVEL

    Returns:
        The stdout handler now attached to the root and server loggers
    """
    settings = settings or get_settings()
    level = resolve_level(settings, log_level)
    processors = _shared_processors()

    structlog.configure(
        processors=processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=not settings.debug,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        ProcessorFormatter(processor=select_renderer(settings), foreign_pre_chain=processors)
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # uvicorn installs its own handlers on startup
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.propagate = False
        server_logger.setLevel(level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=logging.getLevelName(level),
        debug=settings.debug,
        environment=settings.app_env,
    )
    return handler
