"""
PURPOSE: Structured logging configuration and logger factory for the Stonks bot.
Uses structlog for JSON-formatted logs with automatic context binding.
"""

import logging

import structlog


def setup_logging(log_level: str = "INFO") -> None:
    """
    PURPOSE: Configure structlog with JSON output format, including timestamp, level, module, and event.

    Events below log_level are dropped by the filtering bound logger, so debug
    chatter from the dispatch path stays out of production output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to "INFO".
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(module_name: str) -> structlog.BoundLogger:
    """
    PURPOSE: Return a bound logger with module context for structured logging.

    Args:
        module_name: The name of the module requesting the logger (e.g., "__name__").

    Returns:
        structlog.BoundLogger: Logger instance with module context bound.
    """
    return structlog.get_logger().bind(module=module_name)
