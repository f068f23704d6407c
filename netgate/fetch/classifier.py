"""Classification of transport failures into user-facing network errors."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from netgate.fetch.constants import MESSAGE_RESOURCE_UNAVAILABLE, SETTING_HTTP_TIMEOUT
from netgate.fetch.errors import NetworkDiagnostic, NetworkError, TransportError
from netgate.fetch.models import TransportFailureKind


if TYPE_CHECKING:
    from netgate.config.configuration import Configuration


T = TypeVar("T")

CustomErrorMessage = Callable[[TransportError, "Configuration"], str | None]


def _server_message(error: TransportError) -> str | None:
    body = error.response.body if error.response else None
    if isinstance(body, dict):
        message = body.get("error")
        if message is not None and str(message):
            return str(message)
    return None


def classify(
    error: TransportError,
    configuration: "Configuration",
    custom_error_message: CustomErrorMessage | None = None,
) -> NetworkError:
    """Build the user-facing error for a transport failure.

    The message comes from, in order: the caller's override, the `error`
    field of a JSON error body, a generic text for status failures, and
    finally the transport's own message. Empty strings count as no message
    at every step.

    Args:
        error: Failure raised by the transport.
        configuration: Active configuration, passed to the override.
        custom_error_message: Optional caller override; None or "" means no opinion.

    Returns:
        NetworkError wrapping the failure.
    """
    message = custom_error_message(error, configuration) if custom_error_message else None
    if not message:
        message = _server_message(error)
    if not message:
        if error.kind == TransportFailureKind.HTTP_STATUS or not error.message:
            message = MESSAGE_RESOURCE_UNAVAILABLE
        else:
            message = error.message

    if error.kind == TransportFailureKind.TIMEOUT:
        message += f" (can be increased via {SETTING_HTTP_TIMEOUT})"

    request = error.request
    response = error.response
    diagnostic = NetworkDiagnostic(
        message=message,
        kind=error.kind,
        status_code=response.status_code if response else None,
        status_message=response.status_message if response else None,
        method=request.method if request else None,
        url=request.url if request else None,
        redirects=list(request.redirects) if request else [],
        retry_count=(
            request.retry_count
            if request and request.retry_count == request.retry_limit
            else None
        ),
    )
    return NetworkError(diagnostic, error)


async def pretty_network_error(
    response: Awaitable[T],
    *,
    configuration: "Configuration",
    custom_error_message: CustomErrorMessage | None = None,
) -> T:
    """Await a request, converting transport failures into NetworkError.

    Any other exception propagates unchanged.

    Args:
        response: Pending request.
        configuration: Active configuration.
        custom_error_message: Optional caller override for the message.

    Returns:
        The request's result.

    Raises:
        NetworkError: If the request failed in the transport.
    """
    try:
        return await response
    except TransportError as e:
        raise classify(e, configuration, custom_error_message) from e
