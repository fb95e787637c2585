# ABOUTME: ASGI transport adapting scope/receive/send to the raw request and response contracts
# ABOUTME: Send failures abort the response so they reach the error boundary as connection errors

from typing import Any, Awaitable, Callable, Dict, MutableMapping, Optional
from urllib.parse import quote

from loguru import logger

from cascade.interfaces.transport import AbstractIncomingMessage, AbstractServerResponse

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]

_logger = logger.bind(name=__name__)


class ASGIIncomingMessage(AbstractIncomingMessage):
    """Inbound request built from an ASGI `http` scope."""

    def __init__(self, scope: Scope, receive: Receive):
        raw_path = scope.get("raw_path")
        path = raw_path.decode("latin-1") if raw_path else quote(scope.get("path", "/"))
        query_string = scope.get("query_string", b"").decode("latin-1")
        url = f"{path}?{query_string}" if query_string else path

        headers: Dict[str, str] = {}
        for raw_name, raw_value in scope.get("headers", []):
            name = raw_name.decode("latin-1").lower()
            value = raw_value.decode("latin-1")
            headers[name] = f"{headers[name]}, {value}" if name in headers else value

        client = scope.get("client")
        super().__init__(
            scope.get("method", "GET"),
            url,
            headers,
            scope.get("http_version", "1.1"),
            client[0] if client else None,
        )
        self.scope = scope
        self._receive = receive
        self._body: Optional[bytes] = None

    async def read(self) -> bytes:
        """
        Read the whole request body.

        Raises:
            ConnectionResetError: If the client disconnects before the body is complete.
        """
        if self._body is None:
            chunks = []
            while True:
                message = await self._receive()
                if message["type"] == "http.disconnect":
                    raise ConnectionResetError("client disconnected before the request body was read")
                chunks.append(message.get("body", b""))
                if not message.get("more_body", False):
                    break
            self._body = b"".join(chunks)
        return self._body


class ASGIServerResponse(AbstractServerResponse):
    """Outbound response forwarding to an ASGI `send` callable."""

    def __init__(self, send: Send):
        super().__init__()
        self._send = send

    async def _send_head(self) -> None:
        headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in self.header_items()
        ]
        await self._safe_send({"type": "http.response.start", "status": self.status_code, "headers": headers})

    async def _send_body(self, data: bytes, more_body: bool) -> None:
        await self._safe_send({"type": "http.response.body", "body": data, "more_body": more_body})

    async def _safe_send(self, message: Message) -> None:
        try:
            await self._send(message)
        except OSError as err:
            _logger.debug(f"ASGI send failed: {err!r}")
            await self.abort(err)
