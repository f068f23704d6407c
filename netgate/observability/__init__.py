"""Observability module for logging."""

from netgate.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    redact_sensitive_fields,
)


__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "redact_sensitive_fields",
]
