"""
Logging Configuration for the Sales Analytics Service

Structured logging through structlog, rendered as JSON or console output.
Every event carries the service name, version and environment so report
logs can be told apart from other services on the same collector.
"""

import logging
import sys
from typing import Any, Dict, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter
from structlog.types import EventDict, Processor

from sales_analytics.config.settings import Settings, get_settings

# Loggers owned by libraries that install their own handlers
SERVER_LOGGERS = ["uvicorn", "uvicorn.error", "uvicorn.access"]


def service_context(settings: Settings) -> Processor:
    """Processor stamping every event with the service identity"""
    context: Dict[str, Any] = {
        "service": settings.app_name,
        "version": settings.version,
        "environment": settings.app_env,
    }

    def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in context.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_service_context


def _shared_processors(settings: Settings) -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        service_context(settings),
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Configure structured logging for the service.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    """
    settings = get_settings()
    level = log_level or settings.monitoring.log_level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = _shared_processors(settings)

    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.monitoring.log_format == "json":
        renderer = JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    for logger_name in SERVER_LOGGERS:
        server_logger = logging.getLogger(logger_name)
        server_logger.handlers = [handler]
        server_logger.setLevel(numeric_level)
        server_logger.propagate = False

    # SQL statements are only logged when echo is requested
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database.echo else logging.WARNING
    )

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
    )
