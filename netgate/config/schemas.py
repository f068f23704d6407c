"""Schema for network configuration."""

from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from netgate.config.constants import VALID_PROXY_SCHEMES
from netgate.fetch.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_NETWORK_CONCURRENCY,
    DEFAULT_UNSAFE_HTTP_WHITELIST,
)
from netgate.fetch.models import (
    MERGEABLE_FIELDS,
    NetworkSettings,
    NetworkSettingsRule,
    RetryPolicy,
)


def _validate_proxy(value: str | None) -> str | None:
    if value is not None and not value.startswith(VALID_PROXY_SCHEMES):
        msg = f"Proxy URL must start with one of {', '.join(VALID_PROXY_SCHEMES)}"
        raise ValueError(msg)
    return value


class NetworkConfig(BaseModel):
    """Process-wide network configuration.

    `network_settings` maps hostname globs to partial settings; the six
    top-level settings fields are the defaults applied when no rule sets
    them. The mapping keeps its file order, which breaks ties between
    patterns of equal length.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    network_settings: dict[str, NetworkSettingsRule] = Field(default_factory=dict)

    enable_network: bool = True
    http_proxy: str | None = None
    https_proxy: str | None = None
    https_ca_file_path: Path | None = None
    https_cert_file_path: Path | None = None
    https_key_file_path: Path | None = None

    http_timeout: Annotated[float, Field(gt=0, le=3600)] = Field(
        default=DEFAULT_HTTP_TIMEOUT_SECONDS, description="Socket timeout in seconds"
    )
    http_retry: RetryPolicy = Field(default_factory=RetryPolicy)
    enable_strict_ssl: bool = True
    unsafe_http_whitelist: list[str] = Field(
        default_factory=lambda: list(DEFAULT_UNSAFE_HTTP_WHITELIST)
    )
    network_concurrency: Annotated[int, Field(ge=1, le=10000)] = (
        DEFAULT_NETWORK_CONCURRENCY
    )

    @field_validator("network_settings")
    @classmethod
    def validate_patterns(
        cls, v: dict[str, NetworkSettingsRule]
    ) -> dict[str, NetworkSettingsRule]:
        """Reject empty hostname patterns and invalid proxy URLs in rules."""
        for pattern, rule in v.items():
            if not pattern.strip():
                msg = "Hostname pattern must not be empty"
                raise ValueError(msg)
            _validate_proxy(rule.http_proxy)
            _validate_proxy(rule.https_proxy)
        return v

    @field_validator("http_proxy", "https_proxy")
    @classmethod
    def validate_proxy(cls, v: str | None) -> str | None:
        """Ensure proxies are http(s) URLs."""
        return _validate_proxy(v)

    @field_validator("http_retry", mode="before")
    @classmethod
    def coerce_retry_limit(cls, v: Any) -> Any:
        """Accept a bare integer as the retry limit."""
        if isinstance(v, int) and not isinstance(v, bool):
            return {"limit": v}
        return v

    def defaults(self) -> NetworkSettings:
        """Get the process-wide default for every mergeable setting."""
        return NetworkSettings(**{key: getattr(self, key) for key in MERGEABLE_FIELDS})

    def rules(self) -> list[tuple[str, NetworkSettingsRule]]:
        """Get the rule table in configuration order."""
        return list(self.network_settings.items())
