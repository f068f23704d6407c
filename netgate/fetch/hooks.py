"""Hook chain for wrapping request execution.

A hook receives the current executor and the request descriptor and returns
the executor to use instead, either directly or as an awaitable. Hooks are
applied left to right, so the last registered hook wraps all the others.
"""

import inspect
from collections.abc import Awaitable, Callable, Iterable

from netgate.fetch.models import RequestDescriptor, Response


Executor = Callable[[], Awaitable[Response]]
WrapNetworkRequest = Callable[
    [Executor, RequestDescriptor], Executor | Awaitable[Executor]
]


async def apply_hook(
    hook: WrapNetworkRequest, executor: Executor, info: RequestDescriptor
) -> Executor:
    """Apply a single hook, awaiting it if it is asynchronous.

    Args:
        hook: Hook to apply.
        executor: Executor being wrapped.
        info: Request the executor will perform.

    Returns:
        The executor returned by the hook.
    """
    wrapped = hook(executor, info)
    if inspect.isawaitable(wrapped):
        wrapped = await wrapped
    return wrapped


class HookRegistry:
    """Ordered `wrap_network_request` hooks registered by collaborators."""

    def __init__(self, hooks: Iterable[WrapNetworkRequest] = ()) -> None:
        self._hooks: list[WrapNetworkRequest] = list(hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    def register(self, hook: WrapNetworkRequest) -> None:
        """Append a hook to the chain.

        Args:
            hook: Hook to register.
        """
        self._hooks.append(hook)

    async def reduce(self, executor: Executor, info: RequestDescriptor) -> Executor:
        """Thread an executor through every hook in registration order.

        Args:
            executor: Innermost executor.
            info: Request the executor will perform.

        Returns:
            The fully wrapped executor.
        """
        for hook in self._hooks:
            executor = await apply_hook(hook, executor, info)
        return executor
