# ABOUTME: Interfaces package for the cascade kernel
# ABOUTME: Exports abstract contracts for middleware, pipelines and transports

from .middleware import AbstractMiddleware, AbstractMiddlewarePipeline, Middleware, Next
from .transport import AbstractIncomingMessage, AbstractServerResponse

__all__ = [
    "AbstractMiddleware",
    "AbstractMiddlewarePipeline",
    "Middleware",
    "Next",
    "AbstractIncomingMessage",
    "AbstractServerResponse",
]
