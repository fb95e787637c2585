# ABOUTME: Middleware interfaces package for the cascade kernel
# ABOUTME: Exports the middleware protocol, abstract middleware and pipeline contracts

from .middleware import AbstractMiddleware, Middleware, Next
from .pipeline import AbstractMiddlewarePipeline, ComposedMiddleware

__all__ = ["AbstractMiddleware", "Middleware", "Next", "AbstractMiddlewarePipeline", "ComposedMiddleware"]
