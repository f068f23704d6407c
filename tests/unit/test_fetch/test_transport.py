"""Unit tests for the httpx transport adapter."""

import json
import ssl
from collections.abc import Callable

import httpx
import pytest

from netgate.fetch.errors import TransportError
from netgate.fetch.metrics import NetworkMetrics
from netgate.fetch.models import (
    Method,
    ResponseType,
    RetryPolicy,
    TransportFailureKind,
    TransportOptions,
)
from netgate.fetch.transport import HttpxTransport, build_ssl_context, parse_retry_after


NO_RETRY = RetryPolicy(limit=0)
FAST_RETRY = RetryPolicy(limit=2, base_delay_ms=0, jitter_factor=0.0)


class RecordingClientFactory:
    """Builds httpx clients backed by a MockTransport and remembers them."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.created: list[tuple[bool | ssl.SSLContext, str | None, httpx.AsyncClient]] = []

    def __call__(
        self, verify: bool | ssl.SSLContext, proxy: str | None
    ) -> httpx.AsyncClient:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler),
            follow_redirects=True,
        )
        self.created.append((verify, proxy, client))
        return client


def make_transport(
    handler: Callable[[httpx.Request], httpx.Response],
) -> tuple[HttpxTransport, RecordingClientFactory]:
    factory = RecordingClientFactory(handler)
    return HttpxTransport(client_factory=factory), factory


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    """Reset metrics before each test."""
    NetworkMetrics.reset()


class TestSuccessfulResponses:
    """Tests for 2xx handling."""

    @pytest.mark.asyncio
    async def test_bytes_response(self) -> None:
        """Test that the raw body, headers, and status are returned."""
        transport, _ = make_transport(
            lambda request: httpx.Response(200, content=b"tarball", headers={"x-id": "1"})
        )

        response = await transport.send(
            "https://registry.test/pkg.tgz", TransportOptions(retry=NO_RETRY)
        )

        assert response.body == b"tarball"
        assert response.status_code == 200
        assert response.status_message == "OK"
        assert response.headers["x-id"] == "1"

    @pytest.mark.asyncio
    async def test_json_response(self) -> None:
        """Test that JSON responses are decoded."""
        transport, _ = make_transport(
            lambda request: httpx.Response(200, json={"name": "pkg", "versions": {}})
        )

        response = await transport.send(
            "https://registry.test/pkg",
            TransportOptions(response_type=ResponseType.JSON, retry=NO_RETRY),
        )

        assert response.body == {"name": "pkg", "versions": {}}

    @pytest.mark.asyncio
    async def test_invalid_json_is_other_failure(self) -> None:
        """Test that an undecodable success body fails as OTHER."""
        transport, _ = make_transport(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(TransportError) as exc_info:
            await transport.send(
                "https://registry.test/pkg",
                TransportOptions(response_type=ResponseType.JSON, retry=NO_RETRY),
            )

        assert exc_info.value.kind == TransportFailureKind.OTHER

    @pytest.mark.asyncio
    async def test_request_body_and_headers(self) -> None:
        """Test that raw content, JSON payloads, and headers reach the server."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201)

        transport, _ = make_transport(handler)

        await transport.send(
            "https://registry.test/a",
            TransportOptions(
                method=Method.PUT,
                content=b"raw",
                headers={"authorization": "Bearer t"},
                retry=NO_RETRY,
            ),
        )
        await transport.send(
            "https://registry.test/b",
            TransportOptions(method=Method.POST, json_payload={"k": "v"}, retry=NO_RETRY),
        )

        assert seen[0].method == "PUT"
        assert seen[0].content == b"raw"
        assert seen[0].headers["authorization"] == "Bearer t"
        assert seen[1].method == "POST"
        assert json.loads(seen[1].content) == {"k": "v"}

    @pytest.mark.asyncio
    async def test_metrics_recorded(self) -> None:
        """Test that completed requests are counted."""
        transport, _ = make_transport(lambda request: httpx.Response(200, content=b"abcd"))

        await transport.send("https://registry.test/", TransportOptions(retry=NO_RETRY))

        metrics = NetworkMetrics.get_instance()
        assert metrics.http_requests_total == {200: 1}
        assert metrics.http_bytes_total == 4


class TestFailures:
    """Tests for failure tagging."""

    @pytest.mark.asyncio
    async def test_status_failure(self) -> None:
        """Test that non-2xx responses fail as HTTP_STATUS with the response attached."""
        transport, _ = make_transport(
            lambda request: httpx.Response(404, json={"error": "not found"})
        )

        with pytest.raises(TransportError) as exc_info:
            await transport.send(
                "https://registry.test/missing",
                TransportOptions(response_type=ResponseType.JSON, retry=NO_RETRY),
            )

        error = exc_info.value
        assert error.kind == TransportFailureKind.HTTP_STATUS
        assert error.message == "Response code 404 (Not Found)"
        assert error.status_code == 404
        assert error.response.body == {"error": "not found"}
        assert error.request.method == "GET"
        assert error.request.url == "https://registry.test/missing"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test that timeouts fail as TIMEOUT."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport, _ = make_transport(handler)

        with pytest.raises(TransportError) as exc_info:
            await transport.send(
                "https://slow.test/", TransportOptions(timeout_seconds=5, retry=NO_RETRY)
            )

        assert exc_info.value.kind == TransportFailureKind.TIMEOUT
        assert "5" in exc_info.value.message
        assert exc_info.value.response is None

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        """Test that connection failures fail as CONNECTION_ERROR."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport, _ = make_transport(handler)

        with pytest.raises(TransportError) as exc_info:
            await transport.send("https://down.test/", TransportOptions(retry=NO_RETRY))

        assert exc_info.value.kind == TransportFailureKind.CONNECTION_ERROR
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_redirects_recorded(self) -> None:
        """Test that the redirect chain is attached to the request info."""
        locations = {
            "/old": "https://registry.test/mid",
            "/mid": "https://registry.test/new",
        }

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path in locations:
                return httpx.Response(302, headers={"location": locations[request.url.path]})
            return httpx.Response(410)

        transport, _ = make_transport(handler)

        with pytest.raises(TransportError) as exc_info:
            await transport.send("https://registry.test/old", TransportOptions(retry=NO_RETRY))

        assert exc_info.value.request.redirects == [
            "https://registry.test/mid",
            "https://registry.test/new",
        ]


class TestRetries:
    """Tests for retry behaviour."""

    @pytest.mark.asyncio
    async def test_retryable_status_exhausts_limit(self) -> None:
        """Test that 503 is retried until the limit and the count is recorded."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(503)

        transport, _ = make_transport(handler)

        with pytest.raises(TransportError) as exc_info:
            await transport.send("https://flaky.test/", TransportOptions(retry=FAST_RETRY))

        assert len(calls) == 3
        assert exc_info.value.request.retry_count == 2
        assert exc_info.value.request.retry_limit == 2
        assert NetworkMetrics.get_instance().http_retry_total == 2

    @pytest.mark.asyncio
    async def test_recovers_after_retry(self) -> None:
        """Test that a later success is returned."""
        responses = iter([httpx.Response(502), httpx.Response(200, content=b"ok")])
        transport, _ = make_transport(lambda request: next(responses))

        response = await transport.send(
            "https://flaky.test/", TransportOptions(retry=FAST_RETRY)
        )

        assert response.body == b"ok"

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self) -> None:
        """Test that a 404 fails immediately."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(404)

        transport, _ = make_transport(handler)

        with pytest.raises(TransportError) as exc_info:
            await transport.send("https://registry.test/", TransportOptions(retry=FAST_RETRY))

        assert len(calls) == 1
        assert exc_info.value.request.retry_count == 0

    @pytest.mark.asyncio
    async def test_post_not_retried(self) -> None:
        """Test that POST requests are sent once."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(503)

        transport, _ = make_transport(handler)

        with pytest.raises(TransportError):
            await transport.send(
                "https://registry.test/",
                TransportOptions(method=Method.POST, content=b"x", retry=FAST_RETRY),
            )

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_retried(self) -> None:
        """Test that timeouts are retried."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            if len(calls) == 1:
                raise httpx.ConnectTimeout("connect timeout", request=request)
            return httpx.Response(200)

        transport, _ = make_transport(handler)

        response = await transport.send("https://slow.test/", TransportOptions(retry=FAST_RETRY))

        assert response.status_code == 200
        assert len(calls) == 2


class TestClientSelection:
    """Tests for shared versus private clients."""

    @pytest.mark.asyncio
    async def test_shared_clients_reused(self) -> None:
        """Test that plain requests reuse the per-scheme shared clients."""
        transport, factory = make_transport(lambda request: httpx.Response(200))

        for _ in range(3):
            await transport.send("https://registry.test/", TransportOptions(retry=NO_RETRY))
        await transport.send("http://localhost/", TransportOptions(retry=NO_RETRY))

        assert len(factory.created) == 2

    @pytest.mark.asyncio
    async def test_proxy_uses_private_client(self) -> None:
        """Test that proxied requests get their own client, closed afterwards."""
        transport, factory = make_transport(lambda request: httpx.Response(200))

        await transport.send(
            "https://registry.test/",
            TransportOptions(proxy="http://proxy.test:3128", retry=NO_RETRY),
        )

        assert len(factory.created) == 3
        verify, proxy, client = factory.created[-1]
        assert proxy == "http://proxy.test:3128"
        assert verify is True
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_verify_override_uses_private_client(self) -> None:
        """Test that a differing verification flag does not touch shared clients."""
        transport, factory = make_transport(lambda request: httpx.Response(200))

        await transport.send(
            "https://self-signed.test/", TransportOptions(verify=False, retry=NO_RETRY)
        )

        verify, proxy, client = factory.created[-1]
        assert verify is False
        assert proxy is None
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_private_client_closed_on_failure(self) -> None:
        """Test that private clients are closed even when the request fails."""
        transport, factory = make_transport(lambda request: httpx.Response(500))

        with pytest.raises(TransportError):
            await transport.send(
                "https://registry.test/",
                TransportOptions(proxy="http://proxy.test:3128", retry=NO_RETRY),
            )

        assert factory.created[-1][2].is_closed

    @pytest.mark.asyncio
    async def test_aclose_closes_shared_clients(self) -> None:
        """Test that closing the transport closes both shared clients."""
        transport, factory = make_transport(lambda request: httpx.Response(200))

        await transport.aclose()

        assert all(client.is_closed for _, _, client in factory.created)


class TestHelpers:
    """Tests for TLS and Retry-After helpers."""

    def test_ssl_context_not_built_without_material(self) -> None:
        """Test that the plain flag is used when no TLS files are configured."""
        assert build_ssl_context(TransportOptions(verify=False)) is False
        assert build_ssl_context(TransportOptions()) is True

    def test_binary_ca_is_loaded_as_der(self) -> None:
        """Test that non-text CA material is handed to ssl as DER, not decoded."""
        options = TransportOptions(certificate_authority=b"\x30\x82\xff\xfe\x00\x01")

        with pytest.raises(ssl.SSLError):
            build_ssl_context(options)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("120", 120),
            ("0", 0),
            (None, None),
            ("", None),
            ("soon", None),
            ("Wed, 21 Oct 2015 07:28:00 GMT", 0),
        ],
    )
    def test_parse_retry_after(self, value: str | None, expected: int | None) -> None:
        """Test Retry-After parsing for seconds and past dates."""
        assert parse_retry_after(value) == expected
