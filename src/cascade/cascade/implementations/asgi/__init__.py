# ABOUTME: ASGI implementations package
# ABOUTME: Exports the ASGI request/response adapters and type aliases

from .transport import ASGIIncomingMessage, ASGIServerResponse, Message, Receive, Scope, Send

__all__ = ["ASGIIncomingMessage", "ASGIServerResponse", "Message", "Receive", "Scope", "Send"]
