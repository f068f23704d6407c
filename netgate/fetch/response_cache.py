"""In-process cache of GET response bodies."""

from collections.abc import Awaitable, Callable

import structlog

from netgate.fetch.constants import COMPONENT_RESPONSE_CACHE
from netgate.fetch.memo import AsyncMemo
from netgate.fetch.metrics import NetworkMetrics
from netgate.fetch.redact import redact_url_credentials


logger = structlog.get_logger()


class ResponseCache:
    """Memoizes successful read results keyed by request target.

    Concurrent callers for the same target share one fetch. The key is the
    target string alone: headers and JSON-vs-raw mode are not part of it,
    so callers must store raw bytes and decode at the call site.
    """

    def __init__(self) -> None:
        self._memo: AsyncMemo[str, bytes] = AsyncMemo()
        self._metrics = NetworkMetrics.get_instance()
        self._log = logger.bind(component=COMPONENT_RESPONSE_CACHE)

    def __contains__(self, target: object) -> bool:
        return target in self._memo

    def __len__(self) -> int:
        return len(self._memo)

    @property
    def fetch_count(self) -> int:
        """Number of underlying fetches started."""
        return self._memo.fetch_count

    async def get_or_fetch(
        self, target: str, fetch: Callable[[], Awaitable[bytes]]
    ) -> bytes:
        """Return the cached body for a target, fetching it if needed.

        Args:
            target: Request target used as the cache key.
            fetch: Produces the body when nothing is cached or in flight.

        Returns:
            Response body bytes.
        """
        if target in self._memo or self._memo.is_pending(target):
            self._metrics.record_cache_hit()
            self._log.debug("cache_hit", target=redact_url_credentials(target))

        return await self._memo.get_or_fetch(target, fetch)
