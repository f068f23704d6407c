"""Per-hostname network settings resolution.

Rules are matched by shell-style glob against the hostname only. Longer
patterns are treated as more specific and win; for each field the first
matching rule (in specificity order) that sets it provides the value, and
unset fields fall back to the process-wide defaults.
"""

from collections.abc import Iterable, Sequence
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from netgate.fetch.models import MERGEABLE_FIELDS, NetworkSettings, NetworkSettingsRule


if TYPE_CHECKING:
    from netgate.config.schemas import NetworkConfig


def matches_any(hostname: str, patterns: Iterable[str]) -> bool:
    """Check if a hostname matches any of the glob patterns.

    Args:
        hostname: Hostname to test.
        patterns: Shell-style globs.

    Returns:
        True if at least one pattern matches.
    """
    return any(fnmatchcase(hostname, pattern) for pattern in patterns)


def resolve_network_settings(
    hostname: str,
    rules: Sequence[tuple[str, NetworkSettingsRule]],
    defaults: NetworkSettings,
) -> NetworkSettings:
    """Compute the effective settings for a hostname.

    Args:
        hostname: Hostname of the request target.
        rules: Ordered (glob, partial settings) pairs.
        defaults: Values for fields no matching rule sets.

    Returns:
        Merged settings with every field decided.
    """
    # sorted() is stable, so equal-length patterns keep their table order
    by_specificity = sorted(rules, key=lambda rule: len(rule[0]), reverse=True)
    matching = [rule for pattern, rule in by_specificity if fnmatchcase(hostname, pattern)]

    merged: dict[str, object] = {}
    for key in MERGEABLE_FIELDS:
        for rule in matching:
            value = getattr(rule, key)
            if value is not None:
                merged[key] = value
                break
        else:
            merged[key] = getattr(defaults, key)

    return NetworkSettings(**merged)


def hostname_of(target: str) -> str:
    """Extract the hostname from a request target.

    Args:
        target: Absolute URL.

    Returns:
        Lower-cased hostname.

    Raises:
        ValueError: If the target is not an absolute URL with a host.
    """
    parts = urlsplit(target)
    if not parts.scheme or not parts.hostname:
        msg = f"Invalid URL: {target!r}"
        raise ValueError(msg)
    return parts.hostname


def get_network_settings(target: str, config: "NetworkConfig") -> NetworkSettings:
    """Resolve settings for a URL using a configuration's table and defaults.

    Args:
        target: Absolute URL.
        config: Network configuration.

    Returns:
        Effective settings for the URL's hostname.
    """
    return resolve_network_settings(hostname_of(target), config.rules(), config.defaults())
