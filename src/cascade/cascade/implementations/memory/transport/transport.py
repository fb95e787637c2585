# ABOUTME: In-memory transport recording everything written to it
# ABOUTME: Used to drive applications without a network server, e.g. from tests or embedders

from typing import Dict, List, Optional, Tuple

from cascade.interfaces.transport import AbstractIncomingMessage, AbstractServerResponse


class MemoryIncomingMessage(AbstractIncomingMessage):
    """Inbound request backed by in-memory values."""

    def __init__(
        self,
        method: str = "GET",
        url: str = "/",
        headers: Optional[Dict[str, str]] = None,
        body: bytes = b"",
        http_version: str = "1.1",
        remote_address: Optional[str] = "127.0.0.1",
    ):
        super().__init__(method, url, headers, http_version, remote_address)
        self._body = body

    async def read(self) -> bytes:
        return self._body


class MemoryServerResponse(AbstractServerResponse):
    """
    Outbound response that keeps what was sent.

    Attributes:
        sent_status: Status code at the moment the headers went out.
        sent_headers: Header pairs at the moment the headers went out.
        chunks: Body chunks in write order.
    """

    def __init__(self):
        super().__init__()
        self.sent_status: Optional[int] = None
        self.sent_headers: List[Tuple[str, str]] = []
        self.chunks: List[bytes] = []

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def sent_header(self, name: str) -> Optional[str]:
        """Value of a header as it was sent, multiple values joined with ', '."""
        values = [value for key, value in self.sent_headers if key.lower() == name.lower()]
        return ", ".join(values) if values else None

    async def _send_head(self) -> None:
        self.sent_status = self.status_code
        self.sent_headers = self.header_items()

    async def _send_body(self, data: bytes, more_body: bool) -> None:
        if data:
            self.chunks.append(data)
