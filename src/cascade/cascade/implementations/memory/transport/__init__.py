# ABOUTME: In-memory transport implementations package
# ABOUTME: Exports the recording request and response handles

from .transport import MemoryIncomingMessage, MemoryServerResponse

__all__ = ["MemoryIncomingMessage", "MemoryServerResponse"]
