"""Request execution: policy checks, transport options, concurrency gate."""

import time
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import structlog

from netgate.fetch.constants import COMPONENT_EXECUTOR, NETWORK_CONCURRENCY_LIMIT
from netgate.fetch.errors import (
    NetworkDisabledError,
    TransportError,
    UnsafeHttpBlockedError,
)
from netgate.fetch.file_cache import FileContentCache
from netgate.fetch.metrics import NetworkMetrics
from netgate.fetch.models import (
    NetworkSettings,
    RequestDescriptor,
    Response,
    ResponseType,
    TransportOptions,
)
from netgate.fetch.redact import redact_headers, redact_url_credentials
from netgate.fetch.resolver import hostname_of, matches_any, resolve_network_settings
from netgate.fetch.transport import HttpxTransport, Transport


if TYPE_CHECKING:
    from netgate.config.configuration import Configuration


logger = structlog.get_logger()


class RequestExecutor:
    """Runs a single request descriptor against the transport.

    Settings are resolved per request since different hostnames may need
    different proxies or TLS material. Certificate and key contents are
    path-keyed and cached across requests.
    """

    def __init__(
        self,
        configuration: "Configuration",
        *,
        transport: Transport | None = None,
        file_cache: FileContentCache | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            configuration: Network configuration and shared limiters.
            transport: HTTP transport; an httpx transport by default.
            file_cache: Cache for TLS material.
        """
        self._configuration = configuration
        self._transport = transport or HttpxTransport(
            verify=configuration.network.enable_strict_ssl
        )
        self._file_cache = file_cache or FileContentCache()
        self._metrics = NetworkMetrics.get_instance()
        self._log = logger.bind(component=COMPONENT_EXECUTOR)

    @property
    def transport(self) -> Transport:
        """The transport requests are sent through."""
        return self._transport

    async def aclose(self) -> None:
        """Close the transport's pooled connections."""
        await self._transport.aclose()

    async def execute(self, descriptor: RequestDescriptor) -> Response:
        """Execute a request.

        Args:
            descriptor: The request to perform.

        Returns:
            The transport's response.

        Raises:
            ValueError: If the target is not an absolute URL.
            NetworkDisabledError: If networking is disabled for the hostname.
            UnsafeHttpBlockedError: If plain http is not whitelisted for the hostname.
            OSError: If configured TLS material cannot be read.
            TransportError: If the transport call fails.
        """
        network = self._configuration.network
        url = descriptor.target
        hostname = hostname_of(url)
        scheme = urlsplit(url).scheme

        log = self._log.bind(
            url=redact_url_credentials(url),
            method=descriptor.method.value,
            hostname=hostname,
        )

        settings = resolve_network_settings(hostname, network.rules(), network.defaults())
        if settings.enable_network is False:
            error = NetworkDisabledError(url)
            self._metrics.record_blocked(error.code.value)
            log.warning("request_blocked", reason=error.code.value)
            raise error

        if scheme == "http" and not matches_any(hostname, network.unsafe_http_whitelist):
            error = UnsafeHttpBlockedError(hostname)
            self._metrics.record_blocked(error.code.value)
            log.warning("request_blocked", reason=error.code.value)
            raise error

        options = await self._build_options(descriptor, scheme, settings)
        limiter = self._configuration.get_limit(NETWORK_CONCURRENCY_LIMIT)

        log.debug(
            "request_start",
            headers=redact_headers(descriptor.headers),
            proxy=redact_url_credentials(options.proxy),
            active=limiter.active,
        )
        start_ns = time.perf_counter_ns()

        try:
            response = await limiter.run(lambda: self._transport.send(url, options))
        except TransportError as e:
            self._metrics.record_failure(e.kind)
            log.info(
                "request_failed",
                kind=e.kind.value,
                status_code=e.status_code,
                duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 2),
            )
            raise

        log.info(
            "request_complete",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 2),
        )
        return response

    async def _build_options(
        self,
        descriptor: RequestDescriptor,
        scheme: str,
        settings: NetworkSettings,
    ) -> TransportOptions:
        """Build transport options from the request and its resolved settings.

        Args:
            descriptor: The request to perform.
            scheme: URL scheme of the target.
            settings: Effective settings for the target hostname.

        Returns:
            Options for the transport call.
        """
        network = self._configuration.network
        body = descriptor.body

        content: bytes | str | None = None
        json_payload = None
        if body is not None:
            if isinstance(body, bytes) or (
                not descriptor.json_request and isinstance(body, str)
            ):
                content = body
            else:
                json_payload = body

        certificate_authority = (
            await self._file_cache.get(settings.https_ca_file_path)
            if settings.https_ca_file_path
            else None
        )
        certificate = (
            await self._file_cache.get(settings.https_cert_file_path)
            if settings.https_cert_file_path
            else None
        )
        key = (
            await self._file_cache.get(settings.https_key_file_path)
            if settings.https_key_file_path
            else None
        )

        proxy = settings.http_proxy if scheme == "http" else settings.https_proxy

        return TransportOptions(
            method=descriptor.method,
            headers=dict(descriptor.headers),
            content=content,
            json_payload=json_payload,
            response_type=(
                ResponseType.JSON if descriptor.json_response else ResponseType.BYTES
            ),
            timeout_seconds=network.http_timeout,
            retry=network.http_retry,
            verify=network.enable_strict_ssl,
            certificate_authority=certificate_authority,
            certificate=certificate,
            key=key,
            proxy=proxy,
        )
