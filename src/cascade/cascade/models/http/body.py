# ABOUTME: Tagged body variant classifying whatever value middleware assigns to ctx.body
# ABOUTME: Provides byte length, JSON serialization and chunk iteration per body kind

import asyncio
import inspect
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Optional

from pydantic import TypeAdapter

# Read size used when adapting file-like bodies into a byte stream
CHUNK_SIZE = 64 * 1024

_json_adapter: TypeAdapter[Any] = TypeAdapter(Any)

_EXHAUSTED = object()


class BodyKind(str, Enum):
    """
    Body variant enumeration.

    The response materializer switches over these kinds instead of inspecting
    the raw value again.
    """

    EMPTY = "empty"
    TEXT = "text"
    BYTES = "bytes"
    STREAM = "stream"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class Body:
    """
    A classified response body.

    Attributes:
        kind: The body variant.
        value: The value as assigned by the application.
        adapted: True for stream bodies that are not plain byte iterators
            (file-like objects, objects exposing `aiter_bytes()`/`iter_bytes()`)
            and need adapting before they can be piped.
    """

    kind: BodyKind
    value: Any = None
    adapted: bool = False

    @classmethod
    def of(cls, value: Any) -> "Body":
        """Classify a raw body value."""
        if value is None:
            return cls(BodyKind.EMPTY)
        if isinstance(value, str):
            return cls(BodyKind.TEXT, value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(BodyKind.BYTES, value)
        if _is_adaptable(value):
            return cls(BodyKind.STREAM, value, adapted=True)
        if hasattr(value, "__aiter__") or isinstance(value, Iterator):
            return cls(BodyKind.STREAM, value)
        return cls(BodyKind.STRUCTURED, value)

    @property
    def is_empty(self) -> bool:
        return self.kind is BodyKind.EMPTY

    def serialize(self) -> str:
        """
        Encode a structured body as compact JSON.

        Pydantic models, dataclasses, datetimes and other values pydantic knows
        how to dump are supported.

        Raises:
            ValueError: If the kind is not STRUCTURED.
            pydantic_core.PydanticSerializationError: If the value cannot be encoded.
        """
        if self.kind is not BodyKind.STRUCTURED:
            raise ValueError(f"cannot serialize a {self.kind.value} body as JSON")
        return _json_adapter.dump_json(self.value).decode("utf-8")

    def byte_length(self) -> Optional[int]:
        """Number of bytes the body will occupy on the wire, or None when unknown."""
        if self.kind is BodyKind.TEXT:
            return len(self.value.encode("utf-8"))
        if self.kind is BodyKind.BYTES:
            return memoryview(self.value).nbytes
        if self.kind is BodyKind.STRUCTURED:
            return len(self.serialize().encode("utf-8"))
        return None

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield the body of a STREAM as bytes chunks."""
        if self.kind is not BodyKind.STREAM:
            raise ValueError(f"cannot stream a {self.kind.value} body")
        value = self.value

        if self.adapted:
            # Synchronous sources are read in the default executor, off the event loop.
            loop = asyncio.get_running_loop()
            if callable(getattr(value, "aiter_bytes", None)):
                async for chunk in value.aiter_bytes():
                    yield _to_bytes(chunk)
            elif callable(getattr(value, "iter_bytes", None)):
                chunks = iter(value.iter_bytes())
                while True:
                    chunk = await loop.run_in_executor(None, next, chunks, _EXHAUSTED)
                    if chunk is _EXHAUSTED:
                        break
                    yield _to_bytes(chunk)
            else:
                while True:
                    if inspect.iscoroutinefunction(value.read):
                        chunk = await value.read(CHUNK_SIZE)
                    else:
                        chunk = await loop.run_in_executor(None, value.read, CHUNK_SIZE)
                        if inspect.isawaitable(chunk):
                            chunk = await chunk
                    if not chunk:
                        break
                    yield _to_bytes(chunk)
            return

        if hasattr(value, "__aiter__"):
            async for chunk in value:
                yield _to_bytes(chunk)
        else:
            for chunk in value:
                yield _to_bytes(chunk)


def _is_adaptable(value: Any) -> bool:
    return any(callable(getattr(value, attr, None)) for attr in ("aiter_bytes", "iter_bytes", "read"))


def _to_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)
