# ABOUTME: Core exception classes for the cascade kernel
# ABOUTME: Provides structured error handling with context and error codes

from typing import Any, Dict


class CascadeException(Exception):
    """Base exception class for the cascade kernel.

    Provides structured error handling with optional error codes and contextual
    details. All custom exceptions raised by the kernel inherit from this class.

    Attributes:
        message: Human-readable error message
        code: Optional error code for programmatic handling
        details: Optional dictionary containing contextual information
    """

    def __init__(self, message: str, code: str | None = None, details: Dict[str, Any] | None = None):
        """Initialize CascadeException with message, optional code and details.

        Args:
            message: Human-readable error message
            code: Optional error code for programmatic handling
            details: Optional dictionary containing contextual information
        """
        self.message = message
        self.code = code
        self.details = details.copy() if details else {}
        super().__init__(self.message)


class ConfigurationException(CascadeException):
    """Exception raised for invalid application options.

    Used when an option handed to `Application` cannot be honoured, such as
    an `async_local_storage` value that is neither a bool nor a storage object.
    """

    pass


class HeadersSentError(CascadeException):
    """Exception raised when a raw response is mutated after its headers went out.

    The response facade guards against this and turns late mutations into
    no-ops; code writing to the raw transport handle sees this error instead.
    """

    pass
