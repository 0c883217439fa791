import logging
import sys

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging for CLI use. Logs go to stderr."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(**kwargs: object) -> structlog.BoundLogger:
    """Get a structured logger, optionally bound to extra fields."""
    log = structlog.get_logger()
    if kwargs:
        log = log.bind(**kwargs)
    return log
