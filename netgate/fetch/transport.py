"""httpx-backed transport adapter.

Turns resolved `TransportOptions` into an httpx call and every failure into
a tagged `TransportError`. Connection reuse goes through two shared
keep-alive clients (one per scheme); requests that need a proxy or their
own TLS material get a short-lived client closed after the call.
"""

import asyncio
import ssl
import tempfile
import time
from collections.abc import Callable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Protocol
from urllib.parse import urlsplit

import httpx
import structlog

from netgate.fetch.constants import (
    COMPONENT_TRANSPORT,
    HTTP_STATUS_TOO_MANY_REQUESTS,
    MAX_RETRY_AFTER_SECONDS,
)
from netgate.fetch.errors import TransportError
from netgate.fetch.metrics import NetworkMetrics
from netgate.fetch.models import (
    RequestInfo,
    Response,
    ResponseType,
    TransportFailureKind,
    TransportOptions,
)
from netgate.fetch.redact import redact_url_credentials


logger = structlog.get_logger()

ClientFactory = Callable[[bool | ssl.SSLContext, str | None], httpx.AsyncClient]


class Transport(Protocol):
    """What the executor needs from an HTTP implementation."""

    async def send(self, url: str, options: TransportOptions) -> Response:
        """Perform a request, raising TransportError on failure."""
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        ...


def default_client_factory(
    verify: bool | ssl.SSLContext, proxy: str | None
) -> httpx.AsyncClient:
    """Build a keep-alive client that follows redirects.

    Environment proxy variables are ignored; proxies come from the
    resolved network settings only.
    """
    return httpx.AsyncClient(
        verify=verify,
        proxy=proxy,
        follow_redirects=True,
        trust_env=False,
        limits=httpx.Limits(keepalive_expiry=30.0),
    )


def build_ssl_context(options: TransportOptions) -> bool | ssl.SSLContext:
    """Build the TLS verification setting for a request.

    CA material may be PEM text or DER bytes.

    Args:
        options: Resolved transport options.

    Returns:
        The plain verification flag when no TLS material was supplied,
        otherwise a context loaded with it.

    Raises:
        ssl.SSLError: If the certificate material cannot be loaded.
    """
    if not options.has_client_tls:
        return options.verify

    if options.certificate_authority is not None:
        cadata: str | bytes
        try:
            cadata = options.certificate_authority.decode("ascii")
        except UnicodeDecodeError:
            cadata = options.certificate_authority
        ctx = ssl.create_default_context(cadata=cadata)
    else:
        ctx = ssl.create_default_context()

    if options.certificate is not None:
        # ssl can only load a certificate chain from disk
        with tempfile.TemporaryDirectory(prefix="netgate-tls-") as tmp:
            cert_path = Path(tmp) / "cert.pem"
            cert_path.write_bytes(options.certificate)
            key_path: Path | None = None
            if options.key is not None:
                key_path = Path(tmp) / "key.pem"
                key_path.write_bytes(options.key)
            ctx.load_cert_chain(cert_path, key_path)

    if not options.verify:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def parse_retry_after(value: str | None) -> int | None:
    """Parse a Retry-After header value.

    Args:
        value: Header value (seconds or HTTP date).

    Returns:
        Seconds to wait, or None if not parseable.
    """
    if not value:
        return None

    try:
        return int(value)
    except ValueError:
        pass

    try:
        dt = parsedate_to_datetime(value)
        delta = dt - datetime.now(UTC)
        return max(0, int(delta.total_seconds()))
    except (ValueError, TypeError):
        pass

    return None


class HttpxTransport:
    """Transport adapter over httpx.AsyncClient.

    Provides:
    - Shared keep-alive clients for the common non-proxied path
    - Per-request proxy and TLS material
    - Retries with exponential backoff and Retry-After support
    - Redirect chain and retry count recorded on failures
    """

    def __init__(
        self,
        *,
        verify: bool = True,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        """Initialize the transport.

        Args:
            verify: TLS verification used by the shared clients.
            client_factory: Builds httpx clients from (verify, proxy).
        """
        self._verify = verify
        self._client_factory = client_factory
        self._agents: dict[str, httpx.AsyncClient] = {
            "http": client_factory(verify, None),
            "https": client_factory(verify, None),
        }
        self._metrics = NetworkMetrics.get_instance()
        self._log = logger.bind(component=COMPONENT_TRANSPORT)

    async def aclose(self) -> None:
        """Close the shared clients."""
        for client in self._agents.values():
            await client.aclose()

    async def send(self, url: str, options: TransportOptions) -> Response:
        """Send a request, retrying according to its retry policy.

        Args:
            url: Absolute request URL.
            options: Resolved transport options.

        Returns:
            The successful response.

        Raises:
            TransportError: If the request ultimately fails.
        """
        scheme = urlsplit(url).scheme
        private = (
            options.proxy is not None
            or options.has_client_tls
            or options.verify != self._verify
            or scheme not in self._agents
        )
        if private:
            verify = await asyncio.to_thread(build_ssl_context, options)
            client = self._client_factory(verify, options.proxy)
        else:
            client = self._agents[scheme]

        log = self._log.bind(
            url=redact_url_credentials(url),
            method=options.method.value,
            proxy=redact_url_credentials(options.proxy),
        )

        try:
            return await self._send_with_retry(client, url, options, log)
        finally:
            if private:
                await client.aclose()

    async def _send_with_retry(
        self,
        client: httpx.AsyncClient,
        url: str,
        options: TransportOptions,
        log: structlog.stdlib.BoundLogger,
    ) -> Response:
        policy = options.retry
        attempt = 0

        while True:
            try:
                return await self._send_once(client, url, options, attempt)
            except TransportError as e:
                if not policy.should_retry(
                    e.kind, attempt, method=options.method, status_code=e.status_code
                ):
                    raise

                delay_ms = policy.get_delay_ms(attempt)
                if e.status_code == HTTP_STATUS_TOO_MANY_REQUESTS and e.response:
                    retry_after = parse_retry_after(e.response.headers.get("retry-after"))
                    if retry_after:
                        delay_ms = min(retry_after, MAX_RETRY_AFTER_SECONDS) * 1000

                self._metrics.record_retry()
                log.debug(
                    "retry_attempt",
                    attempt=attempt + 1,
                    delay_ms=delay_ms,
                    limit=policy.limit,
                    kind=e.kind.value,
                )
                await asyncio.sleep(delay_ms / 1000.0)
                attempt += 1

    async def _send_once(
        self,
        client: httpx.AsyncClient,
        url: str,
        options: TransportOptions,
        attempt: int,
    ) -> Response:
        sent = RequestInfo(
            method=options.method.value,
            url=url,
            retry_count=attempt,
            retry_limit=options.retry.limit,
        )
        body: dict[str, object] = {}
        if options.content is not None:
            body["content"] = options.content
        elif options.json_payload is not None:
            body["json"] = options.json_payload

        start_ns = time.perf_counter_ns()
        try:
            raw = await client.request(
                options.method.value,
                url,
                headers=options.headers,
                timeout=httpx.Timeout(options.timeout_seconds),
                **body,
            )
        except httpx.TimeoutException as e:
            msg = f"Timeout awaiting response for {options.timeout_seconds}s ({type(e).__name__})"
            raise TransportError(TransportFailureKind.TIMEOUT, msg, request=sent) from e
        except (httpx.NetworkError, httpx.ProxyError) as e:
            msg = f"Connection failed: {e}"
            raise TransportError(
                TransportFailureKind.CONNECTION_ERROR, msg, request=sent
            ) from e
        except httpx.HTTPError as e:
            msg = f"Request failed: {e}"
            raise TransportError(TransportFailureKind.OTHER, msg, request=sent) from e
        finally:
            self._metrics.record_duration((time.perf_counter_ns() - start_ns) / 1_000_000)

        self._metrics.record_request(raw.status_code, len(raw.content))

        redirects = [str(r.url) for r in raw.history[1:]]
        if raw.history:
            redirects.append(str(raw.url))
        sent = sent.model_copy(update={"url": str(raw.url), "redirects": redirects})

        response = Response(
            body=raw.content,
            headers=dict(raw.headers),
            status_code=raw.status_code,
            status_message=raw.reason_phrase or None,
        )

        if options.response_type == ResponseType.JSON:
            try:
                response = response.model_copy(update={"body": raw.json()})
            except ValueError as e:
                if response.is_success:
                    msg = f"Invalid JSON in response body: {e}"
                    raise TransportError(
                        TransportFailureKind.OTHER, msg, response=response, request=sent
                    ) from e

        if not response.is_success:
            reason = f" ({response.status_message})" if response.status_message else ""
            msg = f"Response code {response.status_code}{reason}"
            raise TransportError(
                TransportFailureKind.HTTP_STATUS, msg, response=response, request=sent
            )

        return response
