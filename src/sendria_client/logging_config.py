"""
Structured logging configuration using structlog.

Log events are rendered by structlog and emitted through the standard library
``sendria_client`` logger on stderr, so CLI output on stdout stays parseable.
"""

import logging
import sys

import structlog

from .config import settings


def setup_logging(log_level: str = None, log_json: bool = None) -> None:
    """
    Configure structlog for structured logging.

    Sets up processors for:
    - Context variable merging
    - Log level and logger name addition
    - Exception info rendering
    - Timestamp addition
    - JSON or console rendering based on settings

    Args:
        log_level: Override for settings.log_level
        log_json: Override for settings.log_json
    """
    level = logging.getLevelName((log_level or settings.log_level).upper())
    as_json = settings.log_json if log_json is None else log_json

    logging.basicConfig(format="%(message)s", stream=sys.stderr)
    logging.getLogger("sendria_client").setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.processors.JSONRenderer()
                if as_json
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
