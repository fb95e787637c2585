# ABOUTME: In-memory middleware pipeline holding the ordered middleware list
# ABOUTME: Caches the composed dispatcher and recomposes it after registration changes

from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from cascade.components.compose import compose as default_compose
from cascade.exceptions import MiddlewareRegistrationError
from cascade.interfaces.middleware import AbstractMiddlewarePipeline, ComposedMiddleware, Middleware

ComposeFunction = Callable[[Sequence[Middleware]], ComposedMiddleware]


class MiddlewarePipeline(AbstractMiddlewarePipeline):
    """
    In-memory implementation of the middleware pipeline.

    Middleware run in registration order. The composed dispatcher is cached so
    concurrent requests share one immutable compiled pipeline; registering
    middleware invalidates the cache and the next access recomposes.
    Registration must not race with dispatch.
    """

    def __init__(self, name: str = "MiddlewarePipeline", compose: Optional[ComposeFunction] = None):
        """
        Initialize the pipeline.

        Args:
            name: Name of the pipeline for identification and logging.
            compose: Function turning the middleware list into a dispatcher.
                Defaults to the cascading composer.
        """
        self.name = name
        self.compose = compose or default_compose
        self._middlewares: List[Middleware] = []
        self._compiled: Optional[ComposedMiddleware] = None
        self._compose_count = 0

        self._logger = logger.bind(name=f"{__name__}.{self.name}")

    def use(self, middleware: Middleware) -> "MiddlewarePipeline":
        """
        Append a middleware to the pipeline.

        Args:
            middleware: Callable taking `(ctx, next)`.

        Returns:
            MiddlewarePipeline: self, for chaining.

        Raises:
            MiddlewareRegistrationError: If `middleware` is not callable.
        """
        if not callable(middleware):
            raise MiddlewareRegistrationError(
                "middleware must be a function!",
                details={"middleware": repr(middleware)},
            )
        self._middlewares.append(middleware)
        self._invalidate_cache()
        self._logger.debug(
            f"use {_middleware_name(middleware)}. Total count: {len(self._middlewares)}"
        )
        return self

    @property
    def middleware(self) -> Tuple[Middleware, ...]:
        return tuple(self._middlewares)

    @property
    def compiled(self) -> ComposedMiddleware:
        """
        The composed dispatcher, rebuilt only when the middleware list changed.

        Returns:
            ComposedMiddleware: `async dispatch(ctx, next=None)`.
        """
        if self._compiled is None:
            self._compiled = self.compose(list(self._middlewares))
            self._compose_count += 1
            self._logger.debug(
                f"Pipeline recomposed with {len(self._middlewares)} middleware "
                f"(composition #{self._compose_count})"
            )
        return self._compiled

    @property
    def compose_count(self) -> int:
        """How many times the dispatcher has been composed."""
        return self._compose_count

    def _invalidate_cache(self) -> None:
        self._compiled = None

    def get_pipeline_info(self) -> dict:
        """
        Get information about the current pipeline state.

        Returns:
            dict: Name, middleware names in order and cache status.
        """
        return {
            "name": self.name,
            "middleware_count": len(self._middlewares),
            "middleware_names": [_middleware_name(m) for m in self._middlewares],
            "compose_count": self._compose_count,
            "cache_exists": self._compiled is not None,
        }


def _middleware_name(middleware: Middleware) -> str:
    return (
        getattr(middleware, "name", None)
        or getattr(middleware, "__name__", None)
        or middleware.__class__.__name__
    )
