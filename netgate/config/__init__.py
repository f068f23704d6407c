"""Network configuration: schema, loading, and runtime state."""

from netgate.config.configuration import Configuration
from netgate.config.env import NetworkEnvOverrides, get_env_overrides
from netgate.config.error_hints import format_validation_error, get_error_hint
from netgate.config.loader import (
    ConfigValidationError,
    load_network_config,
    parse_network_config,
)
from netgate.config.schemas import NetworkConfig


__all__ = [
    "ConfigValidationError",
    "Configuration",
    "NetworkConfig",
    "NetworkEnvOverrides",
    "format_validation_error",
    "get_env_overrides",
    "get_error_hint",
    "load_network_config",
    "parse_network_config",
]
