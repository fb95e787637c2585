# ABOUTME: Opt-in per-task storage for the context of the request being handled
# ABOUTME: Backed by contextvars so concurrent requests on one event loop stay isolated

from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, TypeVar

from cascade.exceptions import ConfigurationException

if TYPE_CHECKING:
    from cascade.models.http.context import Context

T = TypeVar("T")


class ContextStorage:
    """
    Task-local holder of the current request context.

    Each request is handled in its own asyncio task, and tasks copy the
    contextvars context they are created in, so a value set while handling one
    request is never visible to another. Explicit `ctx` passing stays the
    primary way to reach the context; this storage only serves code that
    cannot receive it as an argument.
    """

    def __init__(self, name: str = "cascade.current_context"):
        self._var: ContextVar[Optional["Context"]] = ContextVar(name, default=None)

    def get(self) -> Optional["Context"]:
        """The context of the request handled by the calling task, or None."""
        return self._var.get()

    async def run(self, ctx: "Context", fn: Callable[[], Awaitable[T]]) -> T:
        """
        Await `fn()` with `ctx` as the current context.

        Args:
            ctx: Context to expose while `fn` runs.
            fn: Zero-argument coroutine function.

        Returns:
            Whatever `fn()` returns.
        """
        token = self._var.set(ctx)
        try:
            return await fn()
        finally:
            self._var.reset(token)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self._var.name!r})"


def resolve_storage(option: Any) -> Optional[ContextStorage]:
    """Turn the `async_local_storage` option into a storage instance (or None when disabled)."""
    if isinstance(option, ContextStorage):
        return option
    if option is None or isinstance(option, bool):
        return ContextStorage() if option else None
    raise ConfigurationException(
        "async_local_storage must be a bool or a ContextStorage instance",
        details={"value": repr(option)},
    )
