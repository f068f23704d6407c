"""Data models for the request orchestration layer."""

import random
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from netgate.fetch.constants import (
    DEFAULT_HTTP_RETRY,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    RETRYABLE_STATUS_CODES,
)


# Request payloads accepted by the verbs
Body = dict[str, Any] | list[Any] | str | bytes | None


class Method(str, Enum):
    """HTTP methods supported by the pipeline."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"


class ResponseType(str, Enum):
    """How the transport decodes a response body."""

    JSON = "json"
    BYTES = "bytes"


class NetworkSettings(BaseModel):
    """Effective network policy for a single hostname.

    Every field is concrete once resolved; `None` on a path or proxy
    field means the feature is not in use for that hostname.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enable_network: bool | None = None
    http_proxy: str | None = None
    https_proxy: str | None = None
    https_ca_file_path: Path | None = None
    https_cert_file_path: Path | None = None
    https_key_file_path: Path | None = None


class NetworkSettingsRule(BaseModel):
    """Partial network settings attached to a hostname glob.

    A missing field and an explicit null both mean the rule does not set
    that field.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enable_network: bool | None = None
    http_proxy: str | None = None
    https_proxy: str | None = None
    https_ca_file_path: Path | None = None
    https_cert_file_path: Path | None = None
    https_key_file_path: Path | None = None


# Fields merged by the resolver, in declaration order
MERGEABLE_FIELDS: tuple[str, ...] = tuple(NetworkSettings.model_fields)


class RequestDescriptor(BaseModel):
    """A single logical request as seen by hooks and the executor."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: Annotated[str, Field(min_length=1)]
    body: Any = None
    method: Method = Method.GET
    headers: dict[str, str] = Field(default_factory=dict)
    json_request: bool = False
    json_response: bool = False


class Response(BaseModel):
    """Response handed back to the caller."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    body: Any = b""
    headers: dict[str, str] = Field(default_factory=dict)
    status_code: int = Field(ge=100, le=599)
    status_message: str | None = None

    @property
    def is_success(self) -> bool:
        """Check if the status code is in the 2xx range."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX


class RequestInfo(BaseModel):
    """What the transport knows about the physical request it sent."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: str
    url: str
    redirects: list[str] = Field(default_factory=list)
    retry_count: int = 0
    retry_limit: int = 0


class TransportFailureKind(str, Enum):
    """Tag carried by every transport failure.

    - TIMEOUT: Socket or connect timeout
    - HTTP_STATUS: Server answered with a non-2xx status
    - CONNECTION_ERROR: Could not establish or keep a connection
    - OTHER: Anything else the transport rejected (bad body, protocol error)
    """

    TIMEOUT = "TIMEOUT"
    HTTP_STATUS = "HTTP_STATUS"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    OTHER = "OTHER"


class RetryPolicy(BaseModel):
    """Retry behaviour of the transport.

    `limit` is the number of retries after the first attempt.
    Uses exponential backoff: delay = base_delay_ms * (exponential_base ^ attempt)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    limit: Annotated[int, Field(ge=0, le=20)] = DEFAULT_HTTP_RETRY
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = 1000
    max_delay_ms: Annotated[int, Field(ge=0, le=300000)] = 30000
    exponential_base: Annotated[float, Field(ge=1.0, le=5.0)] = 2.0
    jitter_factor: Annotated[float, Field(ge=0.0, le=1.0)] = 0.1

    def should_retry(
        self,
        kind: TransportFailureKind,
        attempt: int,
        *,
        method: Method = Method.GET,
        status_code: int | None = None,
    ) -> bool:
        """Determine if a failed attempt should be retried.

        Args:
            kind: Classification of the failure.
            attempt: Current attempt number (0-indexed).
            method: Request method; POST is never retried.
            status_code: Response status for HTTP_STATUS failures.

        Returns:
            True if the request should be retried.
        """
        if attempt >= self.limit or method == Method.POST:
            return False

        if kind in (TransportFailureKind.TIMEOUT, TransportFailureKind.CONNECTION_ERROR):
            return True

        if kind == TransportFailureKind.HTTP_STATUS:
            return status_code in RETRYABLE_STATUS_CODES

        return False

    def get_delay_ms(self, attempt: int) -> int:
        """Calculate delay before the next retry attempt.

        Args:
            attempt: Current attempt number (0-indexed).

        Returns:
            Delay in milliseconds.
        """
        delay = self.base_delay_ms * (self.exponential_base**attempt)
        delay = min(delay, self.max_delay_ms)

        jitter = delay * self.jitter_factor * random.random()  # noqa: S311
        return int(delay + jitter)


class TransportOptions(BaseModel):
    """Fully resolved options for one transport call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Method = Method.GET
    headers: dict[str, str] = Field(default_factory=dict)
    content: bytes | str | None = None
    json_payload: Any = None
    response_type: ResponseType = ResponseType.BYTES
    timeout_seconds: Annotated[float, Field(gt=0)] = 60.0
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    verify: bool = True
    certificate_authority: bytes | None = None
    certificate: bytes | None = None
    key: bytes | None = None
    proxy: str | None = None

    @property
    def has_client_tls(self) -> bool:
        """Check if per-request TLS material was supplied."""
        return any(
            value is not None
            for value in (self.certificate_authority, self.certificate, self.key)
        )
