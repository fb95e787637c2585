# ABOUTME: cascade package root exporting the public kernel API
# ABOUTME: Application, context facades, HTTP errors, composer and bundled transports

from cascade.application import Application
from cascade.components import ContextStorage, compose, respond
from cascade.exceptions import HttpError, create_http_error
from cascade.implementations.asgi import ASGIIncomingMessage, ASGIServerResponse
from cascade.implementations.memory.middleware import MiddlewarePipeline
from cascade.implementations.memory.transport import MemoryIncomingMessage, MemoryServerResponse
from cascade.interfaces.middleware import AbstractMiddleware
from cascade.models import Body, BodyKind, Context, Request, Response

__version__ = "0.1.0"

__all__ = [
    "Application",
    "Context",
    "Request",
    "Response",
    "Body",
    "BodyKind",
    "HttpError",
    "create_http_error",
    "compose",
    "respond",
    "AbstractMiddleware",
    "MiddlewarePipeline",
    "ContextStorage",
    "ASGIIncomingMessage",
    "ASGIServerResponse",
    "MemoryIncomingMessage",
    "MemoryServerResponse",
]
