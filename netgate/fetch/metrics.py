"""Process-wide counters for network activity."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, ClassVar

from netgate.fetch.models import TransportFailureKind


@dataclass
class NetworkMetrics:
    """Counters shared by the executor, transport, and response cache.

    One instance per process, obtained with `get_instance()`. Keyed
    counters are `Counter`s, so they compare equal to plain dicts.
    """

    http_requests_total: Counter[int] = field(default_factory=Counter)
    http_blocked_total: Counter[str] = field(default_factory=Counter)
    http_failures_total: Counter[str] = field(default_factory=Counter)
    http_cache_hits_total: int = 0
    http_retry_total: int = 0
    http_bytes_total: int = 0
    http_transport_ms_total: float = 0.0
    http_transport_calls: int = 0

    _instance: ClassVar["NetworkMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "NetworkMetrics":
        """Get the shared instance, creating it on first use."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance; components created afterwards get a fresh one."""
        cls._instance = None

    def record_request(self, status_code: int, bytes_received: int) -> None:
        """Count a response that arrived, whatever its status."""
        self.http_requests_total[status_code] += 1
        self.http_bytes_total += bytes_received

    def record_cache_hit(self) -> None:
        """Count a GET answered by a cached or in-flight entry."""
        self.http_cache_hits_total += 1

    def record_retry(self) -> None:
        """Count one retry of a failed transport attempt."""
        self.http_retry_total += 1

    def record_blocked(self, reason: str) -> None:
        """Count a request refused by network policy.

        Args:
            reason: Report code of the refusal.
        """
        self.http_blocked_total[reason] += 1

    def record_failure(self, kind: TransportFailureKind) -> None:
        """Count a transport failure by its kind."""
        self.http_failures_total[kind.value] += 1

    def record_duration(self, duration_ms: float) -> None:
        """Add the wall time of one transport attempt, successful or not."""
        self.http_transport_ms_total += duration_ms
        self.http_transport_calls += 1

    @property
    def avg_duration_ms(self) -> float:
        """Mean wall time per transport attempt."""
        if not self.http_transport_calls:
            return 0.0
        return self.http_transport_ms_total / self.http_transport_calls

    def snapshot(self) -> dict[str, Any]:
        """Copy every counter into plain values, e.g. for a status report."""
        return {
            "http_requests_total": dict(self.http_requests_total),
            "http_blocked_total": dict(self.http_blocked_total),
            "http_failures_total": dict(self.http_failures_total),
            "http_cache_hits_total": self.http_cache_hits_total,
            "http_retry_total": self.http_retry_total,
            "http_bytes_total": self.http_bytes_total,
            "http_transport_calls": self.http_transport_calls,
            "avg_duration_ms": round(self.avg_duration_ms, 2),
        }
