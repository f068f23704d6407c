"""Environment overrides powered by Pydantic BaseSettings."""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from netgate.config.constants import ENV_PREFIX


class NetworkEnvOverrides(BaseSettings):
    """Network settings that may be overridden from the environment.

    Unset variables leave the file configuration untouched.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enable_network: bool | None = None
    http_proxy: str | None = None
    https_proxy: str | None = None
    http_timeout: float | None = Field(default=None, gt=0)
    http_retry: int | None = Field(default=None, ge=0)
    enable_strict_ssl: bool | None = None
    network_concurrency: int | None = Field(default=None, ge=1)

    def as_overrides(self) -> dict[str, Any]:
        """Return only the variables that were set."""
        return self.model_dump(exclude_none=True)


def get_env_overrides() -> NetworkEnvOverrides:
    """Read overrides from the current environment."""
    return NetworkEnvOverrides()
