"""HTTP constants for the request orchestration layer.

Centralizes status ranges, defaults, and user-facing message fragments.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_REQUEST_TIMEOUT = 408
HTTP_STATUS_PAYLOAD_TOO_LARGE = 413
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Status codes that the transport retries for idempotent methods
RETRYABLE_STATUS_CODES = frozenset(
    {
        HTTP_STATUS_REQUEST_TIMEOUT,
        HTTP_STATUS_PAYLOAD_TOO_LARGE,
        HTTP_STATUS_TOO_MANY_REQUESTS,
        500,
        502,
        503,
        504,
        521,
        522,
        524,
    }
)

# Network defaults
DEFAULT_HTTP_TIMEOUT_SECONDS = 60.0
DEFAULT_HTTP_RETRY = 3
DEFAULT_NETWORK_CONCURRENCY = 50
DEFAULT_UNSAFE_HTTP_WHITELIST = ("localhost",)

# Maximum retry delay cap for rate limiting (seconds)
MAX_RETRY_AFTER_SECONDS = 60

# Limiter names
NETWORK_CONCURRENCY_LIMIT = "network_concurrency"

# Setting names surfaced in hints
SETTING_HTTP_TIMEOUT = "http_timeout"
SETTING_HTTP_RETRY = "http_retry"

# Messages
MESSAGE_RESOURCE_UNAVAILABLE = (
    "The remote server failed to provide the requested resource"
)
STATUS_REFERENCE_URL = "https://developer.mozilla.org/en-US/docs/Web/HTTP/Status/{}"

# Log component names
COMPONENT_EXECUTOR = "executor"
COMPONENT_TRANSPORT = "transport"
COMPONENT_PIPELINE = "pipeline"
COMPONENT_FILE_CACHE = "file_cache"
COMPONENT_RESPONSE_CACHE = "response_cache"
COMPONENT_CONFIG = "config"
