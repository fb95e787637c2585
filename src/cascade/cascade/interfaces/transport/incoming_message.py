# ABOUTME: Abstract inbound request contract consumed by the kernel
# ABOUTME: Transports deliver raw requests through this interface

from abc import ABC, abstractmethod
from typing import Dict, Optional


class AbstractIncomingMessage(ABC):
    """
    Raw inbound HTTP request as delivered by a transport.

    The kernel only reads from it; header names are stored lower-cased.
    `url` is mutable so rewriting middleware can change the routed path while
    the context keeps the original.
    """

    def __init__(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        http_version: str = "1.1",
        remote_address: Optional[str] = None,
    ):
        self.method = method.upper()
        self.url = url
        self.headers = {name.lower(): value for name, value in (headers or {}).items()}
        self.http_version = http_version
        self.remote_address = remote_address

    @property
    def http_version_major(self) -> int:
        try:
            return int(self.http_version.split(".")[0])
        except ValueError:
            return 1

    @abstractmethod
    async def read(self) -> bytes:
        """
        Read the complete request body.

        Returns:
            bytes: The raw request payload (empty when there is none).
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(method={self.method!r}, url={self.url!r})"
