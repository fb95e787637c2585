# ABOUTME: Abstract outbound response contract written by the kernel
# ABOUTME: Holds the header map, write lifecycle and completion observers shared by all transports

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from cascade.exceptions import HeadersSentError

HeaderValue = Union[str, List[str]]
FinishedCallback = Callable[[Optional[BaseException]], Any]


class AbstractServerResponse(ABC):
    """
    Raw outbound HTTP response handle.

    Concrete transports only implement `_send_head` and `_send_body`; header
    bookkeeping, the write lifecycle and completion observers live here.

    Lifecycle: headers are sent on the first write (or `flush_headers()`),
    `end()` finishes the response. `abort(err)` marks an abnormal termination
    such as a reset connection. Either way every `on_finished` callback is
    invoked once, with `None` after a normal end and with the error after an
    abort.
    """

    def __init__(self):
        self.status_code = 200
        self.status_message = ""
        self.headers_sent = False
        self.finished = False
        self.aborted = False
        self._headers: Dict[str, Tuple[str, HeaderValue]] = {}
        self._finished_callbacks: List[FinishedCallback] = []

    @property
    def writable(self) -> bool:
        """True until the response has been ended or aborted."""
        return not (self.finished or self.aborted)

    # Header map

    def get_header(self, name: str) -> Optional[HeaderValue]:
        entry = self._headers.get(name.lower())
        return entry[1] if entry else None

    def set_header(self, name: str, value: HeaderValue) -> None:
        """
        Set a header, replacing any previous value.

        Raises:
            HeadersSentError: If the headers have already been sent.
        """
        self._assert_headers_not_sent(name)
        self._headers[name.lower()] = (name, value)

    def remove_header(self, name: str) -> None:
        self._assert_headers_not_sent(name)
        self._headers.pop(name.lower(), None)

    def has_header(self, name: str) -> bool:
        return name.lower() in self._headers

    def get_header_names(self) -> List[str]:
        return list(self._headers)

    def get_headers(self) -> Dict[str, HeaderValue]:
        return {key: value for key, (_, value) in self._headers.items()}

    def header_items(self) -> List[Tuple[str, str]]:
        """Headers as (name, value) pairs in their original casing, lists expanded."""
        items = []
        for name, value in self._headers.values():
            if isinstance(value, list):
                items.extend((name, item) for item in value)
            else:
                items.append((name, value))
        return items

    # Write lifecycle

    async def flush_headers(self) -> None:
        if self.headers_sent or not self.writable:
            return
        self.headers_sent = True
        await self._send_head()

    async def write(self, chunk: Union[str, bytes]) -> bool:
        """
        Write a body chunk, sending the headers first if needed.

        Returns:
            bool: Whether the response is still writable afterwards.
        """
        if not self.writable:
            return False
        data = _encode(chunk)
        await self.flush_headers()
        if data and self.writable:
            await self._send_body(data, more_body=True)
        return self.writable

    async def end(self, chunk: Union[str, bytes, None] = None) -> None:
        """Finish the response, optionally writing a last chunk. No-op once ended or aborted."""
        if not self.writable:
            return
        data = _encode(chunk) if chunk is not None else b""
        await self.flush_headers()
        if self.writable:
            await self._send_body(data, more_body=False)
        if self.aborted:
            return
        self.finished = True
        await self._notify(None)

    async def abort(self, err: BaseException) -> None:
        """Terminate the response abnormally and notify completion observers with `err`."""
        if not self.writable:
            return
        self.aborted = True
        await self._notify(err)

    def on_finished(self, callback: FinishedCallback) -> None:
        """
        Register a completion observer.

        Callbacks may be sync or async. Callbacks registered after the
        response completed are never invoked.
        """
        self._finished_callbacks.append(callback)

    async def _notify(self, err: Optional[BaseException]) -> None:
        callbacks, self._finished_callbacks = self._finished_callbacks, []
        for callback in callbacks:
            result = callback(err)
            if inspect.isawaitable(result):
                await result

    def _assert_headers_not_sent(self, name: str) -> None:
        if self.headers_sent:
            raise HeadersSentError(
                f"Cannot modify header '{name}' after headers are sent",
                details={"header": name},
            )

    # Transport hooks

    @abstractmethod
    async def _send_head(self) -> None:
        """Send the status line and headers to the peer."""
        pass

    @abstractmethod
    async def _send_body(self, data: bytes, more_body: bool) -> None:
        """Send a body chunk; `more_body` is False for the final one."""
        pass


def _encode(chunk: Union[str, bytes, bytearray, memoryview]) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)
