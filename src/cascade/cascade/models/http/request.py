# ABOUTME: Request facade wrapping the raw inbound message
# ABOUTME: Provides derived read accessors for headers, url parts, content type and client address

import ipaddress
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

if TYPE_CHECKING:
    from cascade.application import Application
    from cascade.interfaces.transport import AbstractIncomingMessage, AbstractServerResponse
    from .context import Context
    from .response import Response

_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_MEDIA_TYPE_RE = re.compile(rf"^{_TOKEN}/{_TOKEN}$")
_PARAM_RE = re.compile(rf'^\s*({_TOKEN})\s*=\s*("(?:[^"\\]|\\.)*"|{_TOKEN})\s*$')


class Request:
    """
    Request facade.

    A thin pass-through over the raw inbound message. One instance exists per
    context; `ctx`, `response` and `app` are wired by `Application.create_context`.
    """

    def __init__(self, app: "Application", req: "AbstractIncomingMessage", res: "AbstractServerResponse"):
        self.app = app
        self.req = req
        self.res = res
        self.ctx: Optional["Context"] = None
        self.response: Optional["Response"] = None
        self.original_url = req.url

    # Headers

    @property
    def headers(self) -> Dict[str, str]:
        return self.req.headers

    @headers.setter
    def headers(self, value: Dict[str, str]) -> None:
        self.req.headers = {name.lower(): val for name, val in value.items()}

    header = headers

    def get(self, field: str) -> str:
        """
        Return a request header, or an empty string when absent.

        `Referer` and `Referrer` are interchangeable.
        """
        name = field.lower()
        if name in ("referer", "referrer"):
            return self.req.headers.get("referrer") or self.req.headers.get("referer") or ""
        return self.req.headers.get(name, "")

    # Request line

    @property
    def method(self) -> str:
        return self.req.method

    @method.setter
    def method(self, value: str) -> None:
        self.req.method = value.upper()

    @property
    def url(self) -> str:
        return self.req.url

    @url.setter
    def url(self, value: str) -> None:
        self.req.url = value

    @property
    def http_version(self) -> str:
        return self.req.http_version

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    @path.setter
    def path(self, value: str) -> None:
        parts = urlsplit(self.url)
        if parts.path == value:
            return
        self.url = urlunsplit(parts._replace(path=value))

    @property
    def querystring(self) -> str:
        return urlsplit(self.url).query

    @querystring.setter
    def querystring(self, value: str) -> None:
        parts = urlsplit(self.url)
        if parts.query == value:
            return
        self.url = urlunsplit(parts._replace(query=value))

    @property
    def search(self) -> str:
        qs = self.querystring
        return f"?{qs}" if qs else ""

    @property
    def query(self) -> Dict[str, Union[str, List[str]]]:
        """Parsed query string; repeated keys map to lists."""
        parsed = parse_qs(self.querystring, keep_blank_values=True)
        return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}

    @query.setter
    def query(self, value: Dict[str, Any]) -> None:
        self.querystring = urlencode(value, doseq=True)

    # Entity

    @property
    def type(self) -> str:
        content_type = self.get("Content-Type")
        if not content_type:
            return ""
        return content_type.split(";")[0].strip().lower()

    @property
    def charset(self) -> str:
        """Charset parameter of the Content-Type, or "" when absent or malformed."""
        params = _parse_content_type(self.get("Content-Type"))
        if params is None:
            return ""
        return params.get("charset", "")

    @property
    def length(self) -> Optional[int]:
        value = self.get("Content-Length")
        if value == "":
            return None
        try:
            return int(value)
        except ValueError:
            return None

    async def read(self) -> bytes:
        """Read the complete request body from the transport."""
        return await self.req.read()

    # Host and client address

    @property
    def host(self) -> str:
        host = self.get("X-Forwarded-Host") if self.app.proxy else ""
        if host:
            host = host.split(",")[0].strip()
        if not host and self.req.http_version_major >= 2:
            host = self.get(":authority")
        return host or self.get("Host")

    @property
    def hostname(self) -> str:
        host = self.host
        if not host:
            return ""
        if host.startswith("["):
            return host[1:].split("]")[0]
        return host.split(":")[0]

    @property
    def subdomains(self) -> List[str]:
        """Host labels left of the application's domain, most significant first."""
        hostname = self.hostname
        if not hostname or _is_ip(hostname):
            return []
        labels = hostname.split(".")
        labels.reverse()
        return labels[self.app.subdomain_offset:]

    @property
    def ips(self) -> List[str]:
        """Client address chain from the proxy header when the app trusts proxies."""
        if not self.app.proxy:
            return []
        value = self.get(self.app.proxy_ip_header)
        addresses = [address.strip() for address in value.split(",") if address.strip()]
        if self.app.max_ips_count > 0:
            addresses = addresses[-self.app.max_ips_count:]
        return addresses

    @property
    def ip(self) -> str:
        ips = self.ips
        if ips:
            return ips[0]
        return self.req.remote_address or ""

    def to_json(self) -> Dict[str, Any]:
        return {"method": self.method, "url": self.url, "header": dict(self.headers)}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_json()!r})"


def _parse_content_type(value: str) -> Optional[Dict[str, str]]:
    """Parse Content-Type parameters; None when the header is absent or malformed."""
    if not value:
        return None
    parts = value.split(";")
    if not _MEDIA_TYPE_RE.match(parts[0].strip()):
        return None
    params: Dict[str, str] = {}
    for part in parts[1:]:
        match = _PARAM_RE.match(part)
        if match is None:
            return None
        key, raw = match.groups()
        if raw.startswith('"'):
            raw = re.sub(r"\\(.)", r"\1", raw[1:-1])
        params[key.lower()] = raw
    return params


def _is_ip(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True
