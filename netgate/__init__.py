"""netgate: per-destination network policy, concurrency, and errors for HTTP requests."""

from netgate.config import Configuration, NetworkConfig, load_network_config
from netgate.fetch import Method, NetworkClient, NetworkError


__all__ = [
    "Configuration",
    "Method",
    "NetworkClient",
    "NetworkConfig",
    "NetworkError",
    "load_network_config",
]
