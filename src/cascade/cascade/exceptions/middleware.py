# ABOUTME: Middleware-specific exception classes for error handling
# ABOUTME: Covers contract violations raised while registering or dispatching middleware

from cascade.exceptions.base import CascadeException


class MiddlewareError(CascadeException):
    """Base exception class for middleware-related errors.

    Should be used as a base for more specific middleware exceptions
    rather than being raised directly.
    """

    pass


class MiddlewareRegistrationError(MiddlewareError, TypeError):
    """Exception raised when something that is not middleware is registered.

    Used when:
    - A non-callable is passed to `use()`
    - A middleware stack handed to `compose()` is not a sequence
    - A middleware stack contains non-callables

    It is also a `TypeError`, so callers can treat it as an ordinary type error.
    """

    pass


class MultipleNextCallsError(MiddlewareError):
    """Exception raised when a middleware invokes its downstream continuation twice.

    Each middleware invocation may call `next()` at most once. The second call
    fails immediately without re-running anything downstream.
    """

    pass
