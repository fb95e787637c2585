# ABOUTME: In-memory implementations package
# ABOUTME: Exports the list-backed middleware pipeline and the recording transport

from .middleware import MiddlewarePipeline
from .transport import MemoryIncomingMessage, MemoryServerResponse

__all__ = ["MiddlewarePipeline", "MemoryIncomingMessage", "MemoryServerResponse"]
