"""Structured logging configuration using structlog.

Production emits JSON lines; every other environment gets the coloured
console renderer with call-site information.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from reelsmith.core.config import settings


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp each event with the application name and environment.

    Args:
        logger: Logger instance
        method_name: Name of the logging method
        event_dict: Event dictionary

    Returns:
        Updated event dictionary
    """
    event_dict["app"] = settings.app_name
    event_dict["env"] = settings.app_env
    return event_dict


def build_processors(production: bool, development: bool) -> list[Processor]:
    """Assemble the structlog processor chain for an environment.

    Args:
        production: Render JSON with dict tracebacks
        development: Add filename, function and line number to events

    Returns:
        Ordered processor list
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    if development:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )

    if production:
        processors.extend(
            [
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.dev.ConsoleRenderer(colors=True),
            ]
        )
    return processors


def setup_logging() -> None:
    """Configure stdlib logging and structlog for the process.

    Called once by the CLI and by the Celery worker on startup.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    structlog.configure(
        processors=build_processors(
            production=settings.is_production,
            development=settings.is_development,
        ),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Configured structlog logger

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Step started", content_item_id="abc", step="render")
    """
    return structlog.get_logger(name)
