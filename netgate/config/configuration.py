"""Runtime configuration handed to the request pipeline."""

from collections.abc import Iterable

from netgate.config.schemas import NetworkConfig
from netgate.fetch.constants import NETWORK_CONCURRENCY_LIMIT
from netgate.fetch.hooks import Executor, HookRegistry, WrapNetworkRequest
from netgate.fetch.limiter import ConcurrencyLimiter, LimiterRegistry
from netgate.fetch.models import RequestDescriptor


class Configuration:
    """Validated network settings plus the shared runtime state built from them.

    Owns the named concurrency limiters and the `wrap_network_request` hook
    chain. The settings themselves are read-only.
    """

    def __init__(
        self,
        network: NetworkConfig | None = None,
        hooks: Iterable[WrapNetworkRequest] = (),
    ) -> None:
        """Initialize the configuration.

        Args:
            network: Validated network settings; defaults when omitted.
            hooks: Collaborator hooks, in registration order.
        """
        self.network = network or NetworkConfig()
        self.hooks = HookRegistry(hooks)
        self._limits = LimiterRegistry(
            {NETWORK_CONCURRENCY_LIMIT: self.network.network_concurrency}
        )

    def get_limit(self, name: str) -> ConcurrencyLimiter:
        """Get the shared limiter configured under a name."""
        return self._limits.get(name)

    def register_hook(self, hook: WrapNetworkRequest) -> None:
        """Register a collaborator hook after construction."""
        self.hooks.register(hook)

    async def reduce_hook(self, executor: Executor, info: RequestDescriptor) -> Executor:
        """Wrap an executor with every registered hook."""
        return await self.hooks.reduce(executor, info)
