# ABOUTME: HTTP error types raised by middleware and normalized by the error boundary
# ABOUTME: Provides HttpError, an argument-order-agnostic factory, and the non-error wrapper

import json
from typing import Any, Dict, Mapping, Optional

from cascade.exceptions.base import CascadeException
from cascade import statuses


class HttpError(CascadeException):
    """An error carrying an HTTP status for the client.

    Attributes:
        status: HTTP status code (4xx or 5xx).
        expose: Whether `message` may be sent to the client. Defaults to
            True for client errors (status < 500).
        headers: Optional headers to set on the error response.
    """

    def __init__(
        self,
        status: int = 500,
        message: Optional[str] = None,
        *,
        expose: Optional[bool] = None,
        headers: Optional[Mapping[str, Any]] = None,
        code: str | None = None,
        details: Dict[str, Any] | None = None,
    ):
        if not _is_error_status(status):
            status = 500
        super().__init__(message or statuses.message(status) or str(status), code, details)
        self.status = status
        self.expose = status < 500 if expose is None else expose
        self.headers = dict(headers) if headers else None

    @property
    def status_code(self) -> int:
        """Alias of `status`."""
        return self.status

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status}, message={self.message!r})"


class NonErrorRaisedError(CascadeException):
    """Wraps a value that was signalled as an error without being an exception.

    The message embeds a compact JSON rendering of the value so that reports
    keep a stable shape.
    """

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"non-error thrown: {_format_value(value)}")


def create_http_error(*args: Any, **props: Any) -> BaseException:
    """
    Build an HTTP error from arguments given in any order.

    Accepted positional arguments:
    - an int: the status code
    - a str: the message
    - an exception: wrapped in place (its own status/status_code is honoured)
    - a mapping: extra attributes to set on the error

    Keyword arguments are merged into the extra attributes. `headers` and
    `expose` are understood by the error boundary; anything else is simply set
    on the error.

    Returns:
        The new HttpError, or the given exception decorated with status and expose.
    """
    err: Optional[BaseException] = None
    status: Any = None
    message: Optional[str] = None
    extra: Dict[str, Any] = {}

    for arg in args:
        if isinstance(arg, BaseException):
            err = arg
            if status is None:
                status = getattr(arg, "status", None) or getattr(arg, "status_code", None)
        elif isinstance(arg, int) and not isinstance(arg, bool):
            status = arg
        elif isinstance(arg, str):
            message = arg
        elif isinstance(arg, Mapping):
            extra.update(arg)
        else:
            raise TypeError(f"cannot build an HTTP error from {type(arg).__name__}")
    extra.update(props)

    if not _is_error_status(status):
        status = 500

    if err is None:
        err = HttpError(status, message, expose=extra.pop("expose", None), headers=extra.pop("headers", None))
    elif not isinstance(err, HttpError) or err.status != status:
        if isinstance(err, HttpError):
            err.status = status
        else:
            err.status = status
            err.status_code = status
        if "expose" not in extra:
            err.expose = status < 500

    for key, value in extra.items():
        setattr(err, key, value)
    return err


def _is_error_status(status: Any) -> bool:
    return (
        isinstance(status, int)
        and not isinstance(status, bool)
        and 400 <= status < 600
    )


def _format_value(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), default=repr)
    except (TypeError, ValueError):
        return repr(value)
