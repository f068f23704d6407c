"""Network configuration loader with validation."""

import time
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from netgate.config.constants import VALIDATION_FAILED, VALIDATION_PASSED
from netgate.config.env import NetworkEnvOverrides, get_env_overrides
from netgate.config.error_hints import format_validation_error
from netgate.config.schemas import NetworkConfig
from netgate.fetch.constants import COMPONENT_CONFIG


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")

    def format(self) -> str:
        """Render every error with its hint."""
        return "\n".join(
            format_validation_error(err["loc"], err["msg"], err["type"])
            for err in self.errors
        )


def _apply_overrides(data: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(data)
    for key, value in overrides.items():
        if key == "http_retry" and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], "limit": value}
        else:
            merged[key] = value
    return merged


def parse_network_config(
    data: dict[str, Any],
    *,
    source: str = "<memory>",
    env: NetworkEnvOverrides | None = None,
) -> NetworkConfig:
    """Validate raw settings into a NetworkConfig.

    Args:
        data: Parsed settings mapping.
        source: Name used in error messages.
        env: Environment overrides applied on top of `data`.

    Returns:
        Validated configuration.

    Raises:
        ConfigValidationError: If validation fails.
    """
    if env is not None:
        data = _apply_overrides(data, env.as_overrides())

    try:
        return NetworkConfig.model_validate(data)
    except ValidationError as e:
        errors = [
            {
                "loc": ".".join(str(loc) for loc in err["loc"]) or "<root>",
                "msg": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        raise ConfigValidationError(errors, source) from e


def load_network_config(
    path: Path | None = None,
    *,
    use_env: bool = True,
) -> NetworkConfig:
    """Load network settings from a YAML file and the environment.

    Args:
        path: YAML file; when None only defaults and the environment apply.
        use_env: Whether to apply `NETGATE_*` environment overrides.

    Returns:
        Validated configuration.

    Raises:
        ConfigValidationError: If the file is missing, unparseable, or invalid.
    """
    start_time = time.perf_counter()
    source = str(path) if path else "<defaults>"
    log = logger.bind(component=COMPONENT_CONFIG, file_path=source)

    data: dict[str, Any] = {}
    if path is not None:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except FileNotFoundError as e:
            log.error("config_file_missing", result=VALIDATION_FAILED)
            raise ConfigValidationError(
                [{"loc": "<file>", "msg": str(e), "type": "file_not_found"}], source
            ) from e
        except yaml.YAMLError as e:
            log.error("config_yaml_invalid", result=VALIDATION_FAILED)
            raise ConfigValidationError(
                [{"loc": "<file>", "msg": str(e), "type": "yaml_parse_error"}], source
            ) from e

        if not isinstance(data, dict):
            log.error("config_yaml_invalid", result=VALIDATION_FAILED)
            raise ConfigValidationError(
                [{"loc": "<root>", "msg": "Expected a mapping", "type": "dict_type"}],
                source,
            )

    env = get_env_overrides() if use_env else None
    try:
        config = parse_network_config(data, source=source, env=env)
    except ConfigValidationError as e:
        log.error(
            "config_validation_failed",
            result=VALIDATION_FAILED,
            validation_error_count=len(e.errors),
            errors=e.errors,
        )
        raise

    log.info(
        "config_validation_complete",
        result=VALIDATION_PASSED,
        rule_count=len(config.network_settings),
        config_validation_duration_ms=(time.perf_counter() - start_time) * 1000,
    )
    return config
