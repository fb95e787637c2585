# ABOUTME: Response facade wrapping the raw outbound response
# ABOUTME: Owns status, body and header state that the materializer later writes to the transport

import inspect
import mimetypes
import re
from datetime import UTC, datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from loguru import logger

from cascade import statuses
from cascade.interfaces.transport import HeaderValue

from .body import Body, BodyKind

if TYPE_CHECKING:
    from cascade.application import Application
    from cascade.interfaces.transport import AbstractIncomingMessage, AbstractServerResponse
    from .context import Context
    from .request import Request

_logger = logger.bind(name=__name__)

_TYPE_ALIASES = {
    "text": "text/plain",
    "txt": "text/plain",
    "html": "text/html",
    "json": "application/json",
    "bin": "application/octet-stream",
}
_UTF8_TYPES = {"application/json", "application/javascript", "application/xml"}


class Response:
    """
    Response facade.

    `status` defaults to 404 until set. Assigning `body` adjusts status and
    headers to fit the value; see the `body` setter. Once the transport has
    sent the headers, status and header mutations are ignored.
    """

    def __init__(self, app: "Application", req: "AbstractIncomingMessage", res: "AbstractServerResponse"):
        self.app = app
        self.req = req
        self.res = res
        self.ctx: Optional["Context"] = None
        self.request: Optional["Request"] = None
        self._body: Any = None
        self._explicit_status = False
        self._explicit_null_body = False

    # Status

    @property
    def status(self) -> int:
        return self.res.status_code

    @status.setter
    def status(self, code: int) -> None:
        self._set_status(code, explicit=True)

    @property
    def explicit_status(self) -> bool:
        """True once the status was assigned by application code."""
        return self._explicit_status

    def _set_status(self, code: int, explicit: bool) -> None:
        if self.header_sent:
            _logger.debug(f"Ignoring status {code}: headers already sent")
            return
        if not isinstance(code, int) or isinstance(code, bool):
            raise TypeError(f"status code must be an integer, got {type(code).__name__}")
        if not 100 <= code <= 999:
            raise ValueError(f"invalid status code: {code}")
        if explicit:
            self._explicit_status = True
        self.res.status_code = code
        if self.req.http_version_major < 2:
            self.res.status_message = statuses.message(code) or ""
        if self._body is not None and statuses.is_empty(code):
            self.body = None

    @property
    def message(self) -> str:
        return self.res.status_message or statuses.message(self.status) or ""

    @message.setter
    def message(self, value: str) -> None:
        self.res.status_message = value

    # Body

    @property
    def body(self) -> Any:
        return self._body

    @body.setter
    def body(self, value: Any) -> None:
        """
        Assign the response body.

        - None records an explicit empty body: the status becomes 204 unless
          it was set explicitly, and entity headers are stripped.
        - Otherwise the status becomes 200 unless set explicitly, and the
          Content-Type (when absent) and Content-Length follow the value:
          text/html for strings starting with "<", text/plain for other
          strings, application/octet-stream for bytes and streams, and
          application/json for anything else.
        """
        original = self._body
        self._body = value
        body = Body.of(value)

        if body.is_empty:
            if not self._explicit_status and not statuses.is_empty(self.status):
                self._set_status(204, explicit=False)
            self._explicit_null_body = True
            self.remove("Content-Type")
            self.remove("Content-Length")
            self.remove("Transfer-Encoding")
            return

        self._explicit_null_body = False
        if not self._explicit_status:
            self._set_status(200, explicit=False)

        set_type = not self.has("Content-Type")

        if body.kind is BodyKind.TEXT:
            if set_type:
                self.type = "html" if re.match(r"^\s*<", value) else "text"
            self.length = body.byte_length()
            return

        if body.kind is BodyKind.BYTES:
            if set_type:
                self.type = "bin"
            self.length = body.byte_length()
            return

        if body.kind is BodyKind.STREAM:
            if original is not value:
                self.res.on_finished(lambda err: _close_stream(value))
                if original is not None:
                    self.remove("Content-Length")
            if set_type:
                self.type = "bin"
            return

        self.remove("Content-Length")
        self.type = "json"

    @property
    def explicit_null_body(self) -> bool:
        """True when the body was explicitly set to None."""
        return self._explicit_null_body

    @property
    def length(self) -> Optional[int]:
        """Content-Length header when present, otherwise the byte length of the body if known."""
        if self.has("Content-Length"):
            try:
                return int(self.get("Content-Length"))
            except ValueError:
                return 0
        return Body.of(self._body).byte_length()

    @length.setter
    def length(self, value: Optional[int]) -> None:
        if value is None:
            self.remove("Content-Length")
            return
        if not self.has("Transfer-Encoding"):
            self.set("Content-Length", str(value))

    @property
    def type(self) -> str:
        content_type = self.get("Content-Type")
        if not content_type:
            return ""
        return content_type.split(";")[0].strip()

    @type.setter
    def type(self, value: Optional[str]) -> None:
        content_type = _content_type(value) if value else None
        if content_type:
            self.set("Content-Type", content_type)
        else:
            self.remove("Content-Type")

    @property
    def last_modified(self) -> Optional[datetime]:
        value = self.get("Last-Modified")
        if not value:
            return None
        return parsedate_to_datetime(value)

    @last_modified.setter
    def last_modified(self, value: Union[datetime, str]) -> None:
        if isinstance(value, str):
            value = _parse_date(value)
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        self.set("Last-Modified", format_datetime(value.astimezone(UTC), usegmt=True))

    # Headers

    @property
    def headers(self) -> Dict[str, HeaderValue]:
        return self.res.get_headers()

    header = headers

    @property
    def header_sent(self) -> bool:
        return self.res.headers_sent

    @property
    def writable(self) -> bool:
        return self.res.writable

    def get(self, field: str) -> HeaderValue:
        """Return a response header, or an empty string when absent."""
        value = self.res.get_header(field)
        return value if value is not None else ""

    def has(self, field: str) -> bool:
        return self.res.has_header(field)

    def set(self, field: Union[str, Mapping[str, Any]], value: Any = None) -> None:
        """
        Set one header, or several from a mapping.

        Lists become multi-valued headers; other values are converted to str.
        """
        if self.header_sent:
            _logger.debug(f"Ignoring header {field!r}: headers already sent")
            return
        if isinstance(field, Mapping):
            for name, val in field.items():
                self.set(name, val)
            return
        if isinstance(value, (list, tuple)):
            value = [str(item) for item in value]
        else:
            value = str(value)
        self.res.set_header(field, value)

    def append(self, field: str, value: Any) -> None:
        """Append to a header, turning it into a multi-valued header if needed."""
        previous = self.get(field)
        if previous:
            existing: List[str] = previous if isinstance(previous, list) else [previous]
            additions = list(value) if isinstance(value, (list, tuple)) else [value]
            value = existing + additions
        self.set(field, value)

    def remove(self, field: str) -> None:
        if self.header_sent:
            return
        self.res.remove_header(field)

    async def flush_headers(self) -> None:
        await self.res.flush_headers()

    def to_json(self) -> Dict[str, Any]:
        return {"status": self.status, "message": self.message, "header": dict(self.headers)}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_json()!r})"


def _content_type(value: str) -> Optional[str]:
    if "/" in value:
        mime = value
    else:
        mime = _TYPE_ALIASES.get(value.lower()) or mimetypes.guess_type(f"file.{value.lstrip('.')}")[0]
    if not mime:
        return None
    base = mime.split(";")[0].strip().lower()
    if "charset" not in mime.lower() and (base.startswith("text/") or base in _UTF8_TYPES):
        mime = f"{mime}; charset=utf-8"
    return mime


def _parse_date(value: str) -> datetime:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return datetime.fromisoformat(value)


async def _close_stream(stream: Any) -> None:
    """Release a stream body once the response is done with it."""
    closer = getattr(stream, "aclose", None) or getattr(stream, "close", None)
    if closer is None:
        return
    result = closer()
    if inspect.isawaitable(result):
        await result
