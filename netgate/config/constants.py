"""Constants for the configuration module."""

# Supported proxy URL schemes
VALID_PROXY_SCHEMES = ("http://", "https://")

# Environment variable prefix for overrides
ENV_PREFIX = "NETGATE_"

# Validation result values
VALIDATION_PASSED = "PASSED"
VALIDATION_FAILED = "FAILED"
