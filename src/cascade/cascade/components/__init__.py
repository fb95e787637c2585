# ABOUTME: Kernel components package
# ABOUTME: Exports the composer, response materializer and context storage

from .compose import compose
from .context_storage import ContextStorage
from .respond import respond

__all__ = ["compose", "ContextStorage", "respond"]
