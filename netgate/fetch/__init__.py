"""Network request orchestration layer.

This module provides:
- Per-hostname network settings (proxies, TLS material, enable/disable)
- A global concurrency limit on transport calls
- Deduplication of in-flight GETs and TLS file reads
- Hook-based wrapping of request execution
- Structured, user-facing errors for transport failures
"""

from netgate.fetch.classifier import CustomErrorMessage, classify, pretty_network_error
from netgate.fetch.errors import (
    ErrorCode,
    NetworkDiagnostic,
    NetworkDisabledError,
    NetworkError,
    Reporter,
    ReportError,
    TransportError,
    UnsafeHttpBlockedError,
)
from netgate.fetch.executor import RequestExecutor
from netgate.fetch.file_cache import FileContentCache
from netgate.fetch.hooks import Executor, HookRegistry, WrapNetworkRequest
from netgate.fetch.limiter import ConcurrencyLimiter, LimiterRegistry
from netgate.fetch.memo import AsyncMemo
from netgate.fetch.metrics import NetworkMetrics
from netgate.fetch.models import (
    Body,
    Method,
    NetworkSettings,
    NetworkSettingsRule,
    RequestDescriptor,
    RequestInfo,
    Response,
    ResponseType,
    RetryPolicy,
    TransportFailureKind,
    TransportOptions,
)
from netgate.fetch.pipeline import NetworkClient
from netgate.fetch.redact import redact_headers, redact_url_credentials
from netgate.fetch.resolver import (
    get_network_settings,
    matches_any,
    resolve_network_settings,
)
from netgate.fetch.response_cache import ResponseCache
from netgate.fetch.transport import HttpxTransport, Transport


__all__ = [
    # Pipeline
    "NetworkClient",
    "RequestExecutor",
    # Caches
    "AsyncMemo",
    "FileContentCache",
    "ResponseCache",
    # Resolution
    "get_network_settings",
    "matches_any",
    "resolve_network_settings",
    # Concurrency
    "ConcurrencyLimiter",
    "LimiterRegistry",
    # Hooks
    "Executor",
    "HookRegistry",
    "WrapNetworkRequest",
    # Transport
    "HttpxTransport",
    "Transport",
    # Errors
    "CustomErrorMessage",
    "ErrorCode",
    "NetworkDiagnostic",
    "NetworkDisabledError",
    "NetworkError",
    "ReportError",
    "Reporter",
    "TransportError",
    "UnsafeHttpBlockedError",
    "classify",
    "pretty_network_error",
    # Models
    "Body",
    "Method",
    "NetworkSettings",
    "NetworkSettingsRule",
    "RequestDescriptor",
    "RequestInfo",
    "Response",
    "ResponseType",
    "RetryPolicy",
    "TransportFailureKind",
    "TransportOptions",
    # Metrics
    "NetworkMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
