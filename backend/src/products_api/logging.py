"""Structured logging configuration.

JSON logs with automatic context binding. Uses structlog with stdlib integration.
Request-scoped context (request_id, trace_id) is automatically included in all
logs via structlog.contextvars.

Records are rendered to JSON on the calling thread and handed to a queue; a
background QueueListener thread writes them to stdout, so request handlers
never wait on log I/O.
"""

import atexit
import logging
import logging.config
import sys
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog.stdlib import BoundLogger

QUEUE_HANDLER_NAME = "queue"


def _add_timestamp(
    _logger: object,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add ISO 8601 UTC timestamp with timezone offset."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


class LoggingSettings(BaseSettings):
    """Logging settings from environment variables."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


def configure_logging(settings: LoggingSettings) -> None:
    """Configure structlog with JSON output to stdout through a log queue.

    Call once at application startup. After this, all loggers created via
    get_logger() will output JSON with automatic context binding.
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # The JSON formatter sits on the queue handler: QueueHandler.prepare()
    # renders the record before enqueueing, the listener only writes the line.
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.processors.JSONRenderer(),
                    "foreign_pre_chain": processors,
                },
                "line": {"format": "%(message)s"},
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "line",
                    "stream": sys.stdout,
                },
                QUEUE_HANDLER_NAME: {
                    "class": "logging.handlers.QueueHandler",
                    "formatter": "json",
                    "handlers": ["stdout"],
                    "respect_handler_level": True,
                },
            },
            "loggers": {
                "": {
                    "handlers": [QUEUE_HANDLER_NAME],
                    "level": settings.log_level,
                    "propagate": True,
                },
            },
        }
    )

    queue_handler = logging.getHandlerByName(QUEUE_HANDLER_NAME)
    listener = getattr(queue_handler, "listener", None)
    if listener is not None:
        listener.start()
        atexit.register(listener.stop)


# Configure once at module import
_settings = LoggingSettings()
configure_logging(_settings)


def get_logger(name: str) -> BoundLogger:
    """Get a structured logger.

    Args:
        name: Logger name, typically __name__

    Returns:
        Logger that outputs JSON with automatic context binding.

    Example:
        logger = get_logger(__name__)
        logger.error("request_failed", failure_kind="not_found")
        # Output: {"event": "request_failed", "failure_kind": "not_found", "level": "error", ...}
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]
