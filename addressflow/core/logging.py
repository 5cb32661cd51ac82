"""Structured logging for the verification pipeline.

Modules log through ``logging.getLogger(__name__)``; structlog renders those
records (and its own bound loggers) as JSON in production and as key/value
pairs or console lines under test.
"""

import logging
from typing import Any, cast

import structlog
from structlog import dev, processors, stdlib
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor, WrappedLogger

PACKAGE = "addressflow"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def add_component(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag package log entries with their pipeline component.

    ``addressflow.geocoding.cache`` becomes ``component=geocoding``.
    """
    name = event_dict.get("logger") or getattr(cast(Any, logger), "name", None)
    if isinstance(name, str) and name.startswith(f"{PACKAGE}."):
        event_dict.setdefault("component", name.split(".")[1])
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        stdlib.add_logger_name,
        stdlib.add_log_level,
        add_component,
        stdlib.PositionalArgumentsFormatter(),
        processors.TimeStamper(fmt=TIMESTAMP_FORMAT),
        processors.dict_tracebacks,
    ]


def configure_logging(testing: bool = False, level: str = "info") -> None:
    """Configure structured logging.

    Args:
        testing: Render human-readable output instead of JSON
        level: Minimum level name for the ``addressflow`` loggers; unknown
            names fall back to info
    """
    log_level = LOG_LEVELS.get(level.lower(), logging.INFO)
    shared = _shared_processors()

    structlog.configure(
        processors=[
            stdlib.filter_by_level,
            *shared,
            processors.format_exc_info,
            processors.KeyValueRenderer() if testing else processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=stdlib.LoggerFactory(),
        wrapper_class=stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(
        stdlib.ProcessorFormatter(
            processor=dev.ConsoleRenderer() if testing else processors.JSONRenderer(),
            foreign_pre_chain=shared,
        )
    )

    # Third-party libraries stay at INFO whatever the package level is
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.handlers = [handler]

    package_logger = logging.getLogger(PACKAGE)
    package_logger.setLevel(log_level)
    package_logger.propagate = False
    package_logger.handlers = [handler]


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a structured logger, named after the caller's module by default."""
    return cast(BoundLogger, structlog.get_logger(name))


def get_order_logger(order_id: str | None = None) -> BoundLogger:
    """Get a logger with editing-session context.

    Args:
        order_id: Optional order ID to bind to logger

    Returns:
        Configured logger with order context
    """
    logger: BoundLogger = get_logger(f"{PACKAGE}.session")
    if order_id:
        logger = logger.bind(order_id=order_id)
    return logger
