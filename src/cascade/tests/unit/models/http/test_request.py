# ABOUTME: Unit tests for the request facade
# ABOUTME: Covers header access, url parts, content type parsing, host resolution and client addresses

import pytest

from cascade import Application, MemoryIncomingMessage, MemoryServerResponse


class TestRequestHeaders:
    """Test cases for request header accessors."""

    @pytest.mark.unit
    def test_get_is_case_insensitive(self, make_context):
        ctx = make_context(headers={"X-Custom": "value"})
        assert ctx.request.get("x-custom") == "value"
        assert ctx.get("X-CUSTOM") == "value"

    @pytest.mark.unit
    def test_get_missing_returns_empty_string(self, make_context):
        assert make_context().get("X-Missing") == ""

    @pytest.mark.unit
    @pytest.mark.parametrize("sent", ["Referer", "Referrer"])
    def test_referrer_aliases(self, make_context, sent):
        ctx = make_context(headers={sent: "http://example.com"})
        assert ctx.get("Referer") == "http://example.com"
        assert ctx.get("Referrer") == "http://example.com"

    @pytest.mark.unit
    def test_headers_setter_lowercases(self, make_context):
        ctx = make_context()
        ctx.request.headers = {"X-Replaced": "1"}
        assert ctx.headers == {"x-replaced": "1"}


class TestRequestUrl:
    """Test cases for url derived accessors."""

    @pytest.mark.unit
    def test_path_and_querystring(self, make_context):
        ctx = make_context(url="/users/1?page=2&tag=a&tag=b")
        assert ctx.path == "/users/1"
        assert ctx.querystring == "page=2&tag=a&tag=b"
        assert ctx.request.search == "?page=2&tag=a&tag=b"
        assert ctx.query == {"page": "2", "tag": ["a", "b"]}

    @pytest.mark.unit
    def test_set_path_keeps_query(self, make_context):
        ctx = make_context(url="/old?x=1")
        ctx.path = "/new"
        assert ctx.url == "/new?x=1"
        assert ctx.original_url == "/old?x=1"
        assert ctx.request.original_url == "/old?x=1"

    @pytest.mark.unit
    def test_set_query(self, make_context):
        ctx = make_context(url="/search")
        ctx.request.query = {"q": "tea", "n": [1, 2]}
        assert ctx.url == "/search?q=tea&n=1&n=2"

    @pytest.mark.unit
    def test_set_querystring(self, make_context):
        ctx = make_context(url="/search?q=old")
        ctx.request.querystring = "q=new"
        assert ctx.url == "/search?q=new"

    @pytest.mark.unit
    def test_empty_search(self, make_context):
        assert make_context(url="/").request.search == ""

    @pytest.mark.unit
    def test_method_setter_uppercases(self, make_context):
        ctx = make_context()
        ctx.method = "post"
        assert ctx.method == "POST"


class TestRequestContentType:
    """Test cases for type, charset and length."""

    @pytest.mark.unit
    def test_type_strips_parameters(self, make_context):
        ctx = make_context(headers={"Content-Type": "Text/HTML; charset=utf-8"})
        assert ctx.request.type == "text/html"

    @pytest.mark.unit
    def test_charset(self, make_context):
        ctx = make_context(headers={"Content-Type": "text/plain; charset=utf-8"})
        assert ctx.request.charset == "utf-8"

    @pytest.mark.unit
    def test_quoted_charset(self, make_context):
        ctx = make_context(headers={"Content-Type": 'text/plain; charset="iso-8859-1"'})
        assert ctx.request.charset == "iso-8859-1"

    @pytest.mark.unit
    def test_charset_missing_header(self, make_context):
        assert make_context().request.charset == ""

    @pytest.mark.unit
    def test_charset_without_parameter(self, make_context):
        ctx = make_context(headers={"Content-Type": "text/plain"})
        assert ctx.request.charset == ""

    @pytest.mark.unit
    def test_charset_malformed_header(self, make_context):
        ctx = make_context(headers={"Content-Type": "application/json; application/text; charset=utf-8"})
        assert ctx.request.charset == ""

    @pytest.mark.unit
    def test_length(self, make_context):
        assert make_context(headers={"Content-Length": "42"}).request.length == 42
        assert make_context().request.length is None
        assert make_context(headers={"Content-Length": "abc"}).request.length is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_read(self, app):
        ctx = app.create_context(MemoryIncomingMessage("POST", "/", body=b"payload"), MemoryServerResponse())
        assert await ctx.request.read() == b"payload"


class TestRequestHost:
    """Test cases for host, hostname and subdomains."""

    @pytest.mark.unit
    def test_host_header(self, make_context):
        ctx = make_context(headers={"Host": "example.com:8080"})
        assert ctx.host == "example.com:8080"
        assert ctx.hostname == "example.com"

    @pytest.mark.unit
    def test_ipv6_hostname(self, make_context):
        ctx = make_context(headers={"Host": "[::1]:3000"})
        assert ctx.hostname == "::1"

    @pytest.mark.unit
    def test_missing_host(self, make_context):
        ctx = make_context()
        assert ctx.host == ""
        assert ctx.hostname == ""
        assert ctx.subdomains == []

    @pytest.mark.unit
    def test_forwarded_host_ignored_without_proxy(self, make_context):
        ctx = make_context(headers={"Host": "internal", "X-Forwarded-Host": "public.example.com"})
        assert ctx.host == "internal"

    @pytest.mark.unit
    def test_forwarded_host_with_proxy(self, make_context, settings):
        app = Application(settings=settings, proxy=True)
        ctx = make_context(
            headers={"Host": "internal", "X-Forwarded-Host": "public.example.com, other"},
            target=app,
        )
        assert ctx.host == "public.example.com"

    @pytest.mark.unit
    def test_http2_authority(self, make_context):
        ctx = make_context(headers={":authority": "h2.example.com"}, http_version="2.0")
        assert ctx.host == "h2.example.com"

    @pytest.mark.unit
    def test_subdomains(self, make_context):
        ctx = make_context(headers={"Host": "tobi.ferrets.example.com"})
        assert ctx.subdomains == ["ferrets", "tobi"]

    @pytest.mark.unit
    def test_subdomains_custom_offset(self, make_context, settings):
        app = Application(settings=settings, subdomain_offset=3)
        ctx = make_context(headers={"Host": "tobi.ferrets.example.co.uk"}, target=app)
        assert ctx.subdomains == ["ferrets", "tobi"]

    @pytest.mark.unit
    def test_subdomains_for_ip_host(self, make_context):
        ctx = make_context(headers={"Host": "127.0.0.1:3000"})
        assert ctx.subdomains == []


class TestRequestAddresses:
    """Test cases for ip and ips."""

    @pytest.mark.unit
    def test_ip_from_socket(self, make_context):
        ctx = make_context(headers={"X-Forwarded-For": "1.1.1.1"})
        assert ctx.ips == []
        assert ctx.ip == "127.0.0.1"

    @pytest.mark.unit
    def test_ips_with_proxy(self, make_context, settings):
        app = Application(settings=settings, proxy=True)
        ctx = make_context(headers={"X-Forwarded-For": "1.1.1.1, 2.2.2.2, 3.3.3.3"}, target=app)
        assert ctx.ips == ["1.1.1.1", "2.2.2.2", "3.3.3.3"]
        assert ctx.ip == "1.1.1.1"

    @pytest.mark.unit
    def test_max_ips_count(self, make_context, settings):
        app = Application(settings=settings, proxy=True, max_ips_count=2)
        ctx = make_context(headers={"X-Forwarded-For": "1.1.1.1, 2.2.2.2, 3.3.3.3"}, target=app)
        assert ctx.ips == ["2.2.2.2", "3.3.3.3"]

    @pytest.mark.unit
    def test_custom_proxy_header(self, make_context, settings):
        app = Application(settings=settings, proxy=True, proxy_ip_header="X-Client-IP")
        ctx = make_context(headers={"X-Client-IP": "9.9.9.9", "X-Forwarded-For": "1.1.1.1"}, target=app)
        assert ctx.ip == "9.9.9.9"

    @pytest.mark.unit
    def test_to_json(self, make_context):
        ctx = make_context(method="POST", url="/items", headers={"Accept": "*/*"})
        assert ctx.request.to_json() == {"method": "POST", "url": "/items", "header": {"accept": "*/*"}}
