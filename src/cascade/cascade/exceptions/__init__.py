# ABOUTME: Exceptions package exports
# ABOUTME: Exports the base, middleware and HTTP exception classes

from cascade.exceptions.base import (
    CascadeException,
    ConfigurationException,
    HeadersSentError,
)

from cascade.exceptions.middleware import (
    MiddlewareError,
    MiddlewareRegistrationError,
    MultipleNextCallsError,
)

from cascade.exceptions.http import (
    HttpError,
    NonErrorRaisedError,
    create_http_error,
)

__all__ = [
    "CascadeException",
    "ConfigurationException",
    "HeadersSentError",
    # Middleware exceptions
    "MiddlewareError",
    "MiddlewareRegistrationError",
    "MultipleNextCallsError",
    # HTTP exceptions
    "HttpError",
    "NonErrorRaisedError",
    "create_http_error",
]
