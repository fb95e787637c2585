# ABOUTME: HTTP models package for the cascade kernel
# ABOUTME: Exports the context, request and response facades and the body variant

from .body import Body, BodyKind
from .request import Request
from .response import Response
from .context import Context

__all__ = ["Body", "BodyKind", "Context", "Request", "Response"]
