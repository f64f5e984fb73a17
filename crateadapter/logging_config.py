"""Logging configuration for the Crate remote storage adapter.

Everything goes through structlog on top of stdlib logging, so uvicorn,
httpx and the adapter share one output stream and format.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from crateadapter.config import Settings, get_settings, redact_url
from crateadapter.exceptions import CrateAdapterError

SENSITIVE_KEYS = {"password", "secret", "token", "authorization"}

# A bulk INSERT over a wide label union can be very long.
MAX_STATEMENT_LOG_CHARS = 4096

_STATEMENT_KEYS = {"stmt"}

# Chatty at DEBUG: one line per connection and per request.
_NOISY_LOGGERS = ("httpx", "httpcore")


def censor_sensitive_keys(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Remove credentials from log entries.

    Values of keys naming a secret are replaced. URLs keep their host but
    lose any ``user:password@`` part, since the CrateDB URL may carry basic
    auth credentials.
    """
    for key, value in list(event_dict.items()):
        lowered = key.lower()
        if any(sensitive in lowered for sensitive in SENSITIVE_KEYS):
            event_dict[key] = "***REDACTED***"
        elif lowered.endswith("url") and isinstance(value, str):
            event_dict[key] = redact_url(value)

    return event_dict


def truncate_statements(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Shorten SQL statements and request bodies to a loggable size."""
    for key in _STATEMENT_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str) and len(value) > MAX_STATEMENT_LOG_CHARS:
            dropped = len(value) - MAX_STATEMENT_LOG_CHARS
            event_dict[key] = (
                f"{value[:MAX_STATEMENT_LOG_CHARS]}... ({dropped} more chars)"
            )
    return event_dict


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structured logging from the log level and format settings.

    Called by the CLI and again by the app factory, which is what
    configures logging inside uvicorn worker processes. The last call wins.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        censor_sensitive_keys,
        truncate_statements,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger().setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: Exception,
    operation: str,
    **kwargs: Any,
) -> None:
    """Log a failed operation.

    Adapter errors contribute their context under the ``context`` key.
    """
    context: dict[str, Any] = {
        "operation": operation,
        "error_type": type(error).__name__,
        "error_message": str(error),
    }
    if isinstance(error, CrateAdapterError) and error.context:
        context["context"] = error.context
    context.update(kwargs)

    logger.error("operation_failed", **context, exc_info=True)
