# ABOUTME: Per-request context aggregating request, response, shared state and error signalling
# ABOUTME: Delegates the common request/response API and turns errors into default responses

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, NoReturn, Optional, Union

from loguru import logger

from cascade import statuses
from cascade.exceptions import NonErrorRaisedError, create_http_error

if TYPE_CHECKING:
    from cascade.application import Application
    from cascade.interfaces.transport import AbstractIncomingMessage, AbstractServerResponse
    from .request import Request
    from .response import Response

_logger = logger.bind(name=__name__)


class Context:
    """
    Context of one request/response pair.

    Created by `Application.create_context` before the pipeline runs and
    handed to every middleware. `state` is a free-form dict scoped to the
    request. Setting `respond` to False tells the kernel that the application
    writes to `res` itself and no response should be materialized.

    Most request and response accessors are available directly on the
    context, e.g. `ctx.status`, `ctx.body`, `ctx.path`, `ctx.get(...)`.
    """

    def __init__(
        self,
        app: "Application",
        req: "AbstractIncomingMessage",
        res: "AbstractServerResponse",
        request: "Request",
        response: "Response",
    ):
        self.app = app
        self.req = req
        self.res = res
        self.request = request
        self.response = response
        self.state: Dict[str, Any] = {}
        self.original_url = req.url
        self.respond = True

    # Error signalling

    def throw(self, *args: Any, **props: Any) -> NoReturn:
        """
        Raise an HTTP error.

        Examples:
            ctx.throw(403)
            ctx.throw(400, "name required")
            ctx.throw(400, "name required", headers={"X-Field": "name"})
            ctx.throw(err, 502)

        Raises:
            HttpError: Always (or the wrapped exception, decorated with a status).
        """
        raise create_http_error(*args, **props)

    def assert_(self, value: Any, *args: Any, **props: Any) -> None:
        """Raise an HTTP error built from `args` when `value` is falsy."""
        if not value:
            raise create_http_error(*args, **props)

    async def onerror(self, err: Any) -> None:
        """
        Report an error and, when still possible, answer the client with it.

        The error goes to the application's error listeners. If the headers
        have not been sent yet, every header set so far is dropped, the
        headers carried by the error are applied, and a plain-text response
        is written using the error's status (500 unless `err.status` or
        `err.status_code` is a known HTTP status) and either its message
        (exposed client errors) or the canonical status phrase.

        Args:
            err: The error. None is ignored; non-exceptions are wrapped in
                NonErrorRaisedError.
        """
        if err is None:
            return

        if not isinstance(err, BaseException):
            err = NonErrorRaisedError(err)

        header_sent = False
        if self.header_sent or not self.writable:
            header_sent = True
            err.header_sent = True

        await self.app.emit_error(err, self)

        if header_sent:
            _logger.debug(f"Headers already sent, not responding to {type(err).__name__}")
            return

        res = self.res
        for name in res.get_header_names():
            res.remove_header(name)

        headers = getattr(err, "headers", None)
        if isinstance(headers, Mapping):
            self.set(headers)

        self.type = "text"

        status_code = getattr(err, "status", None) or getattr(err, "status_code", None)
        if isinstance(err, FileNotFoundError):
            status_code = 404
        if not statuses.is_valid(status_code):
            status_code = 500

        phrase = statuses.message(status_code)
        if getattr(err, "expose", False) and 400 <= status_code < 600:
            message = getattr(err, "message", None) or str(err) or phrase
        else:
            message = phrase

        self.status = status_code
        err.status = status_code
        self.length = len(message.encode("utf-8"))
        await res.end(message)

    # Response delegation

    @property
    def status(self) -> int:
        return self.response.status

    @status.setter
    def status(self, code: int) -> None:
        self.response.status = code

    @property
    def message(self) -> str:
        return self.response.message

    @message.setter
    def message(self, value: str) -> None:
        self.response.message = value

    @property
    def body(self) -> Any:
        return self.response.body

    @body.setter
    def body(self, value: Any) -> None:
        self.response.body = value

    @property
    def length(self) -> Optional[int]:
        return self.response.length

    @length.setter
    def length(self, value: Optional[int]) -> None:
        self.response.length = value

    @property
    def type(self) -> str:
        return self.response.type

    @type.setter
    def type(self, value: Optional[str]) -> None:
        self.response.type = value

    @property
    def last_modified(self):
        return self.response.last_modified

    @last_modified.setter
    def last_modified(self, value) -> None:
        self.response.last_modified = value

    @property
    def header_sent(self) -> bool:
        return self.response.header_sent

    @property
    def writable(self) -> bool:
        return self.response.writable

    def set(self, field: Union[str, Mapping[str, Any]], value: Any = None) -> None:
        self.response.set(field, value)

    def append(self, field: str, value: Any) -> None:
        self.response.append(field, value)

    def remove(self, field: str) -> None:
        self.response.remove(field)

    def has(self, field: str) -> bool:
        return self.response.has(field)

    async def flush_headers(self) -> None:
        await self.response.flush_headers()

    # Request delegation

    @property
    def method(self) -> str:
        return self.request.method

    @method.setter
    def method(self, value: str) -> None:
        self.request.method = value

    @property
    def url(self) -> str:
        return self.request.url

    @url.setter
    def url(self, value: str) -> None:
        self.request.url = value

    @property
    def path(self) -> str:
        return self.request.path

    @path.setter
    def path(self, value: str) -> None:
        self.request.path = value

    @property
    def query(self) -> Dict[str, Union[str, List[str]]]:
        return self.request.query

    @property
    def querystring(self) -> str:
        return self.request.querystring

    @property
    def headers(self) -> Dict[str, str]:
        return self.request.headers

    header = headers

    def get(self, field: str) -> str:
        return self.request.get(field)

    @property
    def host(self) -> str:
        return self.request.host

    @property
    def hostname(self) -> str:
        return self.request.hostname

    @property
    def subdomains(self) -> List[str]:
        return self.request.subdomains

    @property
    def ip(self) -> str:
        return self.request.ip

    @property
    def ips(self) -> List[str]:
        return self.request.ips

    def to_json(self) -> Dict[str, Any]:
        return {
            "request": self.request.to_json(),
            "response": self.response.to_json(),
            "app": self.app.to_json(),
            "original_url": self.original_url,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(method={self.method!r}, url={self.url!r}, status={self.status})"

