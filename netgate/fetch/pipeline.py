"""Public request verbs: request, get, put, post, delete."""

import json
from typing import TYPE_CHECKING, Any

import structlog

from netgate.fetch.classifier import CustomErrorMessage, pretty_network_error
from netgate.fetch.constants import COMPONENT_PIPELINE
from netgate.fetch.executor import RequestExecutor
from netgate.fetch.hooks import WrapNetworkRequest, apply_hook
from netgate.fetch.models import Body, Method, RequestDescriptor, Response
from netgate.fetch.redact import redact_url_credentials
from netgate.fetch.response_cache import ResponseCache
from netgate.fetch.transport import Transport


if TYPE_CHECKING:
    from netgate.config.configuration import Configuration


logger = structlog.get_logger()


class NetworkClient:
    """Entry point for application code making network requests.

    Provides:
    - Per-hostname proxy, TLS, and enable/disable policy
    - A global concurrency limit on transport calls
    - Collapsing of concurrent identical GETs onto one transport call
    - Hook-based wrapping of request execution
    - Structured errors for transport failures
    """

    def __init__(
        self,
        configuration: "Configuration",
        *,
        transport: Transport | None = None,
        executor: RequestExecutor | None = None,
        response_cache: ResponseCache | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            configuration: Network configuration, limiters, and hooks.
            transport: HTTP transport used when no executor is given.
            executor: Request executor; built from `transport` by default.
            response_cache: Cache for GET bodies.
        """
        self._configuration = configuration
        self._executor = executor or RequestExecutor(configuration, transport=transport)
        self._cache = response_cache or ResponseCache()
        self._log = logger.bind(component=COMPONENT_PIPELINE)

    @property
    def configuration(self) -> "Configuration":
        """The configuration requests are resolved against."""
        return self._configuration

    @property
    def response_cache(self) -> ResponseCache:
        """Cache shared by `get` calls."""
        return self._cache

    async def __aenter__(self) -> "NetworkClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close pooled connections."""
        await self._executor.aclose()

    async def request(
        self,
        target: str,
        body: Body = None,
        *,
        headers: dict[str, str] | None = None,
        json_request: bool = False,
        json_response: bool = False,
        method: Method = Method.GET,
        wrap_network_request: WrapNetworkRequest | None = None,
    ) -> Response:
        """Perform a request without error classification.

        The real executor is wrapped first by `wrap_network_request`, then by
        every hook registered on the configuration, in order.

        Args:
            target: Absolute URL.
            body: Payload; bytes and (unless `json_request`) str are sent raw.
            headers: Request headers.
            json_request: Encode a str body as JSON.
            json_response: Decode the response body as JSON.
            method: HTTP method.
            wrap_network_request: Per-call hook.

        Returns:
            The response.
        """
        descriptor = RequestDescriptor(
            target=target,
            body=body,
            method=method,
            headers=headers or {},
            json_request=json_request,
            json_response=json_response,
        )

        async def real_request() -> Response:
            return await self._executor.execute(descriptor)

        executor = real_request
        if wrap_network_request is not None:
            executor = await apply_hook(wrap_network_request, executor, descriptor)

        executor = await self._configuration.reduce_hook(executor, descriptor)
        return await executor()

    async def get(
        self,
        target: str,
        *,
        headers: dict[str, str] | None = None,
        json_response: bool = False,
        custom_error_message: CustomErrorMessage | None = None,
        wrap_network_request: WrapNetworkRequest | None = None,
    ) -> Any:
        """GET a resource, sharing the result with identical calls.

        Bodies are cached by target as raw bytes and decoded here, so the
        same URL requested with and without `json_response` shares one
        cache entry. Calls with a wrapping hook bypass the cache since the
        hook may change the result.

        Args:
            target: Absolute URL.
            headers: Request headers.
            json_response: Decode the body as JSON.
            custom_error_message: Override for the failure message.
            wrap_network_request: Per-call hook; disables caching.

        Returns:
            Raw bytes, or the decoded JSON value.
        """

        async def run_request() -> bytes:
            response = await pretty_network_error(
                self.request(
                    target,
                    None,
                    headers=headers,
                    wrap_network_request=wrap_network_request,
                ),
                configuration=self._configuration,
                custom_error_message=custom_error_message,
            )
            return response.body

        if wrap_network_request is not None:
            self._log.debug("cache_bypassed", target=redact_url_credentials(target))
            entry = await run_request()
        else:
            entry = await self._cache.get_or_fetch(target, run_request)

        if json_response:
            return json.loads(entry)
        return entry

    async def put(
        self,
        target: str,
        body: Body,
        *,
        headers: dict[str, str] | None = None,
        json_request: bool = False,
        json_response: bool = False,
        custom_error_message: CustomErrorMessage | None = None,
        wrap_network_request: WrapNetworkRequest | None = None,
    ) -> Any:
        """PUT a payload and return the response body."""
        return await self._send(
            Method.PUT,
            target,
            body,
            headers=headers,
            json_request=json_request,
            json_response=json_response,
            custom_error_message=custom_error_message,
            wrap_network_request=wrap_network_request,
        )

    async def post(
        self,
        target: str,
        body: Body,
        *,
        headers: dict[str, str] | None = None,
        json_request: bool = False,
        json_response: bool = False,
        custom_error_message: CustomErrorMessage | None = None,
        wrap_network_request: WrapNetworkRequest | None = None,
    ) -> Any:
        """POST a payload and return the response body."""
        return await self._send(
            Method.POST,
            target,
            body,
            headers=headers,
            json_request=json_request,
            json_response=json_response,
            custom_error_message=custom_error_message,
            wrap_network_request=wrap_network_request,
        )

    async def delete(
        self,
        target: str,
        *,
        headers: dict[str, str] | None = None,
        json_response: bool = False,
        custom_error_message: CustomErrorMessage | None = None,
        wrap_network_request: WrapNetworkRequest | None = None,
    ) -> Any:
        """DELETE a resource and return the response body."""
        return await self._send(
            Method.DELETE,
            target,
            None,
            headers=headers,
            json_response=json_response,
            custom_error_message=custom_error_message,
            wrap_network_request=wrap_network_request,
        )

    async def _send(
        self,
        method: Method,
        target: str,
        body: Body,
        *,
        headers: dict[str, str] | None = None,
        json_request: bool = False,
        json_response: bool = False,
        custom_error_message: CustomErrorMessage | None = None,
        wrap_network_request: WrapNetworkRequest | None = None,
    ) -> Any:
        response = await pretty_network_error(
            self.request(
                target,
                body,
                headers=headers,
                json_request=json_request,
                json_response=json_response,
                method=method,
                wrap_network_request=wrap_network_request,
            ),
            configuration=self._configuration,
            custom_error_message=custom_error_message,
        )
        return response.body
