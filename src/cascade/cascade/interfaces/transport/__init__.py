# ABOUTME: Transport interfaces package for the cascade kernel
# ABOUTME: Exports the raw request and response contracts transports implement

from .incoming_message import AbstractIncomingMessage
from .server_response import AbstractServerResponse, FinishedCallback, HeaderValue

__all__ = ["AbstractIncomingMessage", "AbstractServerResponse", "FinishedCallback", "HeaderValue"]
