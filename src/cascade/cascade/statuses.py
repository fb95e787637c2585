# ABOUTME: HTTP status code table used by the response facade and the error boundary
# ABOUTME: Wraps http.HTTPStatus with the body-forbidden status class

from http import HTTPStatus
from typing import Any, Optional

_MESSAGES = {status.value: status.phrase for status in HTTPStatus}

# Status codes for which a payload must never be sent
EMPTY = frozenset({204, 205, 304})


def message(code: Any) -> Optional[str]:
    """Return the canonical reason phrase for `code`, or None when unknown."""
    if not is_valid(code):
        return None
    return _MESSAGES[code]


def is_valid(code: Any) -> bool:
    """True when `code` is an int naming a known HTTP status."""
    return isinstance(code, int) and not isinstance(code, bool) and code in _MESSAGES


def is_empty(code: Any) -> bool:
    return code in EMPTY
