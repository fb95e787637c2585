# ABOUTME: Abstract middleware pipeline interface for managing middleware chains
# ABOUTME: Defines the contract for registering middleware and obtaining the composed dispatcher

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Tuple

if TYPE_CHECKING:
    from cascade.models.http.context import Context
    from .middleware import Middleware, Next

ComposedMiddleware = Callable[..., Awaitable[Any]]


class AbstractMiddlewarePipeline(ABC):
    """
    Abstract base class for middleware pipeline implementations.

    A pipeline owns an ordered, append-only list of middleware and the
    dispatcher compiled from it.
    """

    @abstractmethod
    def use(self, middleware: "Middleware") -> "AbstractMiddlewarePipeline":
        """
        Append a middleware to the pipeline.

        Args:
            middleware: Callable taking `(ctx, next)`.

        Returns:
            The pipeline itself, for chaining.

        Raises:
            MiddlewareRegistrationError: If `middleware` is not callable.
        """
        pass

    @property
    @abstractmethod
    def middleware(self) -> Tuple["Middleware", ...]:
        """The registered middleware in registration order."""
        pass

    @property
    @abstractmethod
    def compiled(self) -> ComposedMiddleware:
        """
        The dispatcher composed from the current middleware list.

        Implementations may cache it as long as it is rebuilt after the list changes.
        """
        pass

    async def dispatch(self, ctx: "Context", next: Optional["Next"] = None) -> None:
        """Run the pipeline for one context."""
        await self.compiled(ctx, next)

    def __len__(self) -> int:
        return len(self.middleware)
