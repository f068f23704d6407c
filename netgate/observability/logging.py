"""Structured logging setup for netgate.

Every component logs through structlog with a `component` key bound. The
processor chain built here redacts credentials from URL, proxy, and header
fields before rendering, so request logs are safe to ship as is.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog

from netgate.fetch.redact import redact_headers, redact_url_credentials


URL_FIELDS = ("url", "target", "proxy")
HEADER_FIELDS = ("headers",)


def redact_sensitive_fields(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Strip credentials from well-known event fields.

    Args:
        logger: Wrapped logger (unused).
        method_name: Log method name (unused).
        event_dict: Event being rendered.

    Returns:
        The event with URL userinfo and sensitive header values replaced.
    """
    for key in URL_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = redact_url_credentials(value)
    for key in HEADER_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, dict):
            event_dict[key] = redact_headers(value)
    return event_dict


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for request orchestration.

    Args:
        level: Minimum level, as a number or a name such as "DEBUG".
        output: Output stream (default: stderr).
        json_format: Render JSON lines instead of console output.
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]
    processors.append(
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )


def bind_request_context(**context: str) -> None:
    """Bind caller context (e.g. a command or session id) to subsequent logs.

    Context is stored in contextvars, so each asyncio task sees its own.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context(*keys: str) -> None:
    """Remove bound context; all of it when no keys are given."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()
