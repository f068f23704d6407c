"""Named concurrency limiters."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar


T = TypeVar("T")


class ConcurrencyLimiter:
    """Admits at most `limit` concurrent calls.

    Waiters are woken in arrival order by the underlying semaphore.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            msg = f"Concurrency limit must be at least 1, got {limit}"
            raise ValueError(msg)
        self._limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._active = 0
        self._peak = 0

    @property
    def limit(self) -> int:
        """Maximum number of concurrent calls."""
        return self._limit

    @property
    def active(self) -> int:
        """Calls currently holding a slot."""
        return self._active

    @property
    def peak(self) -> int:
        """Highest number of simultaneously active calls observed."""
        return self._peak

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run a call once a slot is free, releasing it when the call ends.

        Args:
            fn: Call to run.

        Returns:
            The call's result.
        """
        async with self._semaphore:
            self._active += 1
            self._peak = max(self._peak, self._active)
            try:
                return await fn()
            finally:
                self._active -= 1


class LimiterRegistry:
    """Lazily created limiters keyed by name."""

    def __init__(self, limits: dict[str, int]) -> None:
        self._limits = dict(limits)
        self._limiters: dict[str, ConcurrencyLimiter] = {}

    def get(self, name: str) -> ConcurrencyLimiter:
        """Get the limiter for a name.

        Args:
            name: Limit name.

        Returns:
            The shared limiter for that name.

        Raises:
            KeyError: If no limit is configured under that name.
        """
        limiter = self._limiters.get(name)
        if limiter is None:
            limiter = ConcurrencyLimiter(self._limits[name])
            self._limiters[name] = limiter
        return limiter
