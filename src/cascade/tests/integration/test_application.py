# ABOUTME: Integration tests for the application request cycle over the in-memory transport
# ABOUTME: Covers registration, default responses, body materialization and per-request isolation

import asyncio

import pytest

from cascade import Application, Context, MemoryIncomingMessage, MemoryServerResponse
from cascade.components.compose import compose
from cascade.exceptions import ConfigurationException, MiddlewareRegistrationError


class TestApplicationSetup:
    """Construction and registration."""

    @pytest.mark.integration
    def test_options_override_settings(self, settings):
        app = Application(settings=settings, env="staging", proxy=True, subdomain_offset=0, silent=True)

        assert app.env == "staging"
        assert app.proxy is True
        assert app.subdomain_offset == 0
        assert app.silent is True
        assert app.to_json() == {"subdomain_offset": 0, "proxy": True, "env": "staging"}

    @pytest.mark.integration
    def test_settings_defaults(self, app):
        assert app.env == "test"
        assert app.proxy is False
        assert app.subdomain_offset == 2
        assert app.max_ips_count == 0
        assert app.ctx_storage is None
        assert app.compose is compose

    @pytest.mark.integration
    def test_use_is_chainable(self, app):
        async def first(ctx, next):
            await next()

        async def second(ctx, next):
            await next()

        assert app.use(first).use(second) is app
        assert app.middleware == (first, second)

    @pytest.mark.integration
    def test_use_rejects_non_callable(self, app):
        with pytest.raises(MiddlewareRegistrationError, match="middleware must be a function!"):
            app.use("not middleware")

    @pytest.mark.integration
    def test_invalid_storage_option(self, settings):
        with pytest.raises(ConfigurationException):
            Application(settings=settings, async_local_storage="yes")

    @pytest.mark.integration
    def test_repr(self, app):
        assert repr(app).startswith("Application(")


class TestRequestCycle:
    """Requests dispatched through callback()."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_no_middleware_is_404(self, client):
        res = await client()

        assert res.sent_status == 404
        assert res.text == "Not Found"
        assert res.sent_header("Content-Type") == "text/plain; charset=utf-8"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_cascade_around_response(self, app, client):
        calls = []

        async def timing(ctx, next):
            calls.append("timing:start")
            await next()
            ctx.set("X-Response-Time", "1ms")
            calls.append("timing:end")

        async def hello(ctx, next):
            calls.append("hello")
            ctx.body = {"hello": "world"}

        app.use(timing).use(hello)
        res = await client()

        assert calls == ["timing:start", "hello", "timing:end"]
        assert res.sent_status == 200
        assert res.text == '{"hello":"world"}'
        assert res.sent_header("Content-Length") == "17"
        assert res.sent_header("X-Response-Time") == "1ms"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_null_body_is_204(self, app, client):
        async def handler(ctx, next):
            ctx.body = None

        app.use(handler)
        res = await client()

        assert res.sent_status == 204
        assert res.body == b""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_head_request(self, app, client):
        async def handler(ctx, next):
            ctx.body = "hello world"

        app.use(handler)
        res = await client("HEAD")

        assert res.sent_status == 200
        assert res.sent_header("Content-Length") == "11"
        assert res.body == b""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_streamed_body(self, app, client):
        async def chunks():
            for part in (b"one,", b"two,", b"three"):
                await asyncio.sleep(0)
                yield part

        async def handler(ctx, next):
            ctx.body = chunks()

        app.use(handler)
        res = await client()

        assert res.chunks == [b"one,", b"two,", b"three"]
        assert res.finished

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_respond_false_bypasses_materializer(self, app, client):
        async def raw(ctx, next):
            ctx.respond = False
            ctx.res.status_code = 200
            await ctx.res.end("raw write")

        app.use(raw)
        res = await client()

        assert res.text == "raw write"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_request_body(self, app, client):
        async def echo(ctx, next):
            ctx.body = await ctx.request.read()

        app.use(echo)
        res = await client("POST", body=b"payload")

        assert res.body == b"payload"
        assert res.sent_header("Content-Type") == "application/octet-stream"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_callback_captures_pipeline(self, app):
        async def first(ctx, next):
            ctx.body = "first"

        async def second(ctx, next):
            ctx.body = "second"

        app.use(first)
        handler = app.callback()
        app.use(second)

        res = MemoryServerResponse()
        await handler(MemoryIncomingMessage(), res)

        assert res.text == "first"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_custom_compose(self, settings):
        def reversed_compose(middleware):
            return compose(list(reversed(middleware)))

        app = Application(settings=settings, compose=reversed_compose)
        order = []

        async def a(ctx, next):
            order.append("a")
            await next()

        async def b(ctx, next):
            order.append("b")
            await next()

        app.use(a).use(b)
        await app.callback()(MemoryIncomingMessage(), MemoryServerResponse())

        assert order == ["b", "a"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_custom_context_class(self, settings):
        class AppContext(Context):
            def user(self):
                return self.state.get("user", "anonymous")

        app = Application(settings=settings, context_class=AppContext)

        async def handler(ctx, next):
            ctx.body = ctx.user()

        app.use(handler)
        res = MemoryServerResponse()
        await app.callback()(MemoryIncomingMessage(), res)

        assert res.text == "anonymous"


class TestRequestIsolation:
    """Per-request state under concurrency."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_state_is_not_shared(self, app, client):
        async def handler(ctx, next):
            ctx.state["path"] = ctx.path
            await asyncio.sleep(0.01)
            ctx.body = ctx.state["path"]

        app.use(handler)
        responses = await asyncio.gather(*(client(url=f"/r/{i}") for i in range(20)))

        assert [res.text for res in responses] == [f"/r/{i}" for i in range(20)]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_current_context(self, settings):
        app = Application(settings=settings, async_local_storage=True)

        async def lookup_path():
            await asyncio.sleep(0.01)
            return app.current_context.path

        async def handler(ctx, next):
            ctx.body = await lookup_path()

        app.use(handler)

        async def send(url):
            res = MemoryServerResponse()
            await app.callback()(MemoryIncomingMessage(url=url), res)
            return res.text

        results = await asyncio.gather(*(send(f"/item/{i}") for i in range(10)))

        assert results == [f"/item/{i}" for i in range(10)]
        assert app.current_context is None

    @pytest.mark.integration
    def test_current_context_disabled(self, app):
        assert app.current_context is None
