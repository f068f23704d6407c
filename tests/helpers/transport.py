"""In-memory transport double for pipeline and executor tests."""

import asyncio
from collections.abc import Callable

from netgate.fetch.errors import TransportError
from netgate.fetch.models import (
    RequestInfo,
    Response,
    TransportFailureKind,
    TransportOptions,
)


Handler = Callable[[str, TransportOptions], Response]


def ok(body: bytes = b"ok", status_code: int = 200) -> Handler:
    """Handler answering every request with the same body."""

    def handler(url: str, options: TransportOptions) -> Response:
        return Response(body=body, status_code=status_code, status_message="OK")

    return handler


def status_error(
    status_code: int,
    reason: str,
    *,
    body: object = b"",
    retry_count: int = 0,
    retry_limit: int = 3,
) -> TransportError:
    """Build the failure the transport raises for a non-2xx response."""
    return TransportError(
        TransportFailureKind.HTTP_STATUS,
        f"Response code {status_code} ({reason})",
        response=Response(body=body, status_code=status_code, status_message=reason),
        request=RequestInfo(
            method="GET",
            url="https://registry.example.com/pkg",
            retry_count=retry_count,
            retry_limit=retry_limit,
        ),
    )


class FakeTransport:
    """Records calls and answers them with a handler.

    The handler may raise to simulate failures. `delay` keeps calls in
    flight long enough for concurrent callers to overlap.
    """

    def __init__(self, handler: Handler | None = None, delay: float = 0.01) -> None:
        self.handler = handler or ok()
        self.delay = delay
        self.calls: list[tuple[str, TransportOptions]] = []
        self.active = 0
        self.peak = 0
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def send(self, url: str, options: TransportOptions) -> Response:
        self.calls.append((url, options))
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            return self.handler(url, options)
        finally:
            self.active -= 1

    async def aclose(self) -> None:
        self.closed = True
