"""Process-lifetime memoization of async results.

Each key maps to either a pending task or a resolved value. Lookup and
insertion of the pending task happen without an intervening await, so
concurrent callers on one event loop collapse onto a single fetch without a
lock held across it.
"""

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from functools import partial
from typing import Generic, TypeVar


K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class AsyncMemo(Generic[K, V]):
    """Map of key to pending task or resolved value.

    The fetch runs in its own task, not in the task of the caller that
    started it. Cancelling any caller, the first one included, leaves the
    fetch running for everyone else. Successful results are kept forever.
    Failed or cancelled fetches are removed so the next caller fetches
    again; callers already waiting share the outcome.
    """

    def __init__(self) -> None:
        self._entries: dict[K, asyncio.Future[V] | V] = {}
        self._fetch_count = 0

    def __contains__(self, key: object) -> bool:
        return key in self._entries and not isinstance(self._entries[key], asyncio.Future)  # type: ignore[index]

    def __len__(self) -> int:
        return sum(
            1 for entry in self._entries.values() if not isinstance(entry, asyncio.Future)
        )

    @property
    def fetch_count(self) -> int:
        """Number of factory invocations so far."""
        return self._fetch_count

    def is_pending(self, key: K) -> bool:
        """Check if a fetch for the key is in flight."""
        return isinstance(self._entries.get(key), asyncio.Future)

    async def get_or_fetch(self, key: K, factory: Callable[[], Awaitable[V]]) -> V:
        """Return the value for a key, fetching it at most once at a time.

        Args:
            key: Cache key.
            factory: Called to produce the value when none is cached or pending.

        Returns:
            The cached or freshly fetched value.
        """
        if key in self._entries:
            entry = self._entries[key]
            if not isinstance(entry, asyncio.Future):
                return entry
            task = entry
        else:
            task = asyncio.ensure_future(factory())
            self._entries[key] = task
            self._fetch_count += 1
            task.add_done_callback(partial(self._settle, key))

        return await asyncio.shield(task)

    def _settle(self, key: K, task: "asyncio.Future[V]") -> None:
        if self._entries.get(key) is not task:
            return
        # exception() also marks the failure retrieved when nobody is waiting
        if task.cancelled() or task.exception() is not None:
            del self._entries[key]
        else:
            self._entries[key] = task.result()
