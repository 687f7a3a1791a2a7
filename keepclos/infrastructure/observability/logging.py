"""
Structured logging setup for the relationship engine.
Provides JSON-formatted logs with consistent fields for scheduler monitoring.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

from keepclos.config import settings


def setup_logging(log_level: str | None = None) -> None:
    """
    Configure structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to settings.LOG_LEVEL.
    """
    log_level = log_level or settings.LOG_LEVEL

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_engine_context,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def _add_engine_context(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Tag every entry with the emitting component."""
    event_dict.setdefault("component", "keepclos")
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_evaluation_cycle(metrics: dict[str, Any], scheduler: str = "reminders") -> None:
    """Log a completed evaluation cycle with consistent fields."""
    logger = get_logger("scheduler")

    log_data = {key: value for key, value in metrics.items() if key != "errors"}
    log_data["scheduler"] = scheduler

    if metrics.get("contact_errors"):
        logger.warning("Evaluation cycle completed with errors", **log_data)
    else:
        logger.info("Evaluation cycle completed", **log_data)
