# ABOUTME: Middleware contracts for the cascading pipeline
# ABOUTME: Defines the callable protocol and an abstract base for class-based middleware

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Protocol

if TYPE_CHECKING:
    from cascade.models.http.context import Context

Next = Callable[[], Awaitable[Any]]


class Middleware(Protocol):
    """
    Anything callable as `middleware(ctx, next)`.

    Plain `async def` functions satisfy this protocol, as do functions taking
    `next` as a keyword-only parameter. Functions accepting only `ctx` are also
    accepted by the composer; they simply never reach downstream middleware.
    """

    def __call__(self, ctx: "Context", next: Next) -> Optional[Awaitable[Any]]: ...


class AbstractMiddleware(ABC):
    """
    Abstract base class for class-based middleware.

    Subclasses implement `process`; code before `await next()` runs on the way
    down the pipeline, code after it runs on the way back up.
    """

    def __init__(self, name: Optional[str] = None):
        """
        Initialize middleware.

        Args:
            name: Name used in logs. Defaults to the class name.
        """
        self.name = name or self.__class__.__name__

    @abstractmethod
    async def process(self, ctx: "Context", next: Next) -> None:
        """
        Process one request.

        Args:
            ctx: Context of the request being handled.
            next: Downstream continuation. Await it at most once.
        """
        pass

    async def __call__(self, ctx: "Context", next: Next) -> None:
        await self.process(ctx, next)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
