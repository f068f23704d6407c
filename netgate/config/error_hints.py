"""Remediation hints shown next to configuration validation errors."""

from typing import Final


DEFAULT_HINT: Final = "See the network settings reference for accepted values."

# Pydantic error types that share a hint are grouped
_TYPE_HINT_GROUPS: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("missing",), "Add this setting; it has no default."),
    (("extra_forbidden",), "Unknown setting name. Check for typos or a stale key."),
    (("int_type", "int_parsing", "int_from_float"), "Use a whole number."),
    (("float_type", "float_parsing"), "Use a number, e.g. 30 or 2.5."),
    (("bool_type", "bool_parsing"), "Use true or false."),
    (("string_type",), "Use a quoted string."),
    (("list_type",), "Use a YAML list."),
    (("dict_type", "model_type"), "Use a YAML mapping of keys to values."),
    (("greater_than", "greater_than_equal"), "Value is below the minimum."),
    (("less_than", "less_than_equal"), "Value is above the maximum."),
    (("value_error",), "Value has the wrong format; proxies need an http:// or https:// URL."),
    (("path_type",), "Use a filesystem path to a PEM file."),
    (("file_not_found",), "The configuration file was not found at this path."),
    (("yaml_parse_error",), "The file is not valid YAML. Check indentation and quoting."),
)

ERROR_HINTS: Final[dict[str, str]] = {
    error_type: hint for types, hint in _TYPE_HINT_GROUPS for error_type in types
}

FIELD_HINTS: Final[dict[str, str]] = {
    "network_settings": "Map hostname globs such as '*.example.com' to partial settings.",
    "http_proxy": "Proxy for plain http requests, e.g. 'http://proxy.corp:3128'.",
    "https_proxy": "Proxy for https requests, e.g. 'http://proxy.corp:3128'.",
    "https_ca_file_path": "Path to a PEM bundle of extra certificate authorities.",
    "https_cert_file_path": "Path to a PEM client certificate.",
    "https_key_file_path": "Path to the PEM private key of the client certificate.",
    "http_timeout": "Socket timeout in seconds, greater than 0.",
    "http_retry": "Retries after the first attempt (0-20), or a mapping with 'limit'.",
    "limit": "Retries after the first attempt, from 0 to 20.",
    "unsafe_http_whitelist": "Hostname globs allowed over plain http.",
    "network_concurrency": "Simultaneous requests allowed, at least 1.",
}


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Pick the most specific hint for an error.

    The last segment of a dotted field path wins over the error type, since
    it says what the value means rather than what shape it had.
    """
    if field_name:
        hint = FIELD_HINTS.get(field_name.rsplit(".", 1)[-1])
        if hint is not None:
            return hint
    return ERROR_HINTS.get(error_type, DEFAULT_HINT)


def format_validation_error(
    location: str,
    message: str,
    error_type: str,
    *,
    include_hint: bool = True,
) -> str:
    """Render one validation error, optionally followed by an indented hint.

    Args:
        location: Dotted path of the failing value.
        message: Validator message.
        error_type: Pydantic error type.
        include_hint: Whether to add the hint line.

    Returns:
        One or two lines of text.
    """
    text = f"{location}: {message}"
    if not include_hint:
        return text
    return f"{text}\n    Hint: {get_error_hint(error_type, location)}"
