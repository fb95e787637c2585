# ABOUTME: Models package for the cascade kernel
# ABOUTME: Exports the per-request HTTP models

from .http import Body, BodyKind, Context, Request, Response

__all__ = ["Body", "BodyKind", "Context", "Request", "Response"]
