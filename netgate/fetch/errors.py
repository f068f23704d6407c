"""Error taxonomy for the request orchestration layer.

Policy blocks (`NetworkDisabledError`, `UnsafeHttpBlockedError`) are raised
before any transport call. `TransportError` is the raw tagged failure the
transport adapter produces; the classifier turns it into a `NetworkError`
carrying a `NetworkDiagnostic` for display.
"""

from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from netgate.fetch.constants import SETTING_HTTP_RETRY, STATUS_REFERENCE_URL
from netgate.fetch.models import RequestInfo, Response, TransportFailureKind


class ErrorCode(str, Enum):
    """Report codes attached to user-facing errors."""

    NETWORK_ERROR = "NETWORK_ERROR"
    NETWORK_DISABLED = "NETWORK_DISABLED"
    NETWORK_UNSAFE_HTTP = "NETWORK_UNSAFE_HTTP"


class Reporter(Protocol):
    """Sink for user-facing error lines."""

    def report_error(self, code: ErrorCode, text: str) -> None:
        """Display one error line.

        Args:
            code: Report code of the error.
            text: Line to display.
        """
        ...


class ReportError(Exception):
    """An error meant to be shown to the user.

    Attributes:
        code: Report code of the error.
    """

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code

    def extra_lines(self) -> list[str]:
        """Detail lines reported after the headline."""
        return []

    def report_to(self, reporter: Reporter) -> None:
        """Send the headline and detail lines to a reporter."""
        reporter.report_error(self.code, str(self))
        for line in self.extra_lines():
            reporter.report_error(self.code, f"  {line}")


class NetworkDisabledError(ReportError):
    """Request blocked because networking is disabled for its hostname."""

    def __init__(self, url: str) -> None:
        super().__init__(
            ErrorCode.NETWORK_DISABLED,
            f"Request to '{url}' has been blocked because of your configuration settings",
        )
        self.url = url


class UnsafeHttpBlockedError(ReportError):
    """Plain http request to a hostname missing from the whitelist."""

    def __init__(self, hostname: str) -> None:
        super().__init__(
            ErrorCode.NETWORK_UNSAFE_HTTP,
            "Unsafe http requests must be explicitly whitelisted in your "
            f"configuration ({hostname})",
        )
        self.hostname = hostname


class TransportError(Exception):
    """Failure raised by the transport adapter.

    Attributes:
        kind: Tag distinguishing timeouts, status errors, and the rest.
        response: Response received before failing, if any.
        request: Physical request details, if the request was sent.
    """

    def __init__(
        self,
        kind: TransportFailureKind,
        message: str,
        *,
        response: Response | None = None,
        request: RequestInfo | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.response = response
        self.request = request

    @property
    def status_code(self) -> int | None:
        """Response status code, if a response was received."""
        return self.response.status_code if self.response else None


class NetworkDiagnostic(BaseModel):
    """Displayable summary of a classified transport failure."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str = Field(min_length=1)
    kind: TransportFailureKind
    status_code: int | None = None
    status_message: str | None = None
    method: str | None = None
    url: str | None = None
    redirects: list[str] = Field(default_factory=list)
    retry_count: int | None = Field(
        default=None, description="Set only when the retry limit was reached"
    )

    @property
    def status_reference(self) -> str | None:
        """Documentation link for the response status."""
        if self.status_code is None:
            return None
        return STATUS_REFERENCE_URL.format(self.status_code)

    def lines(self) -> list[str]:
        """Render the labelled detail fields.

        Returns:
            One line per available field.
        """
        result: list[str] = []
        if self.status_code is not None:
            code = str(self.status_code)
            if self.status_message:
                code = f"{code} ({self.status_message})"
            result.append(f"Response Code: {code}")
        if self.method is not None:
            result.append(f"Request Method: {self.method}")
        if self.url is not None:
            result.append(f"Request URL: {self.url}")
        if self.redirects:
            result.append(f"Request Redirects: {', '.join(self.redirects)}")
        if self.retry_count is not None:
            result.append(
                f"Request Retry Count: {self.retry_count} "
                f"(can be increased via {SETTING_HTTP_RETRY})"
            )
        return result


class NetworkError(ReportError):
    """Classified transport failure.

    Attributes:
        diagnostic: Fields for display.
        original_error: The transport failure this error wraps.
    """

    def __init__(
        self, diagnostic: NetworkDiagnostic, original_error: TransportError
    ) -> None:
        super().__init__(ErrorCode.NETWORK_ERROR, diagnostic.message)
        self.diagnostic = diagnostic
        self.original_error = original_error

    def extra_lines(self) -> list[str]:
        return self.diagnostic.lines()
