# ABOUTME: Application object owning the middleware list, error listeners and request entry point
# ABOUTME: Drives each request context through the composed pipeline and its error boundary

import inspect
import traceback
from textwrap import indent
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from loguru import logger

from cascade.components.context_storage import ContextStorage, resolve_storage
from cascade.components.respond import respond
from cascade.config import CoreSettings, get_settings
from cascade.implementations.asgi import ASGIIncomingMessage, ASGIServerResponse, Receive, Scope, Send
from cascade.implementations.memory.middleware import ComposeFunction, MiddlewarePipeline
from cascade.interfaces.middleware import ComposedMiddleware, Middleware
from cascade.interfaces.transport import AbstractIncomingMessage, AbstractServerResponse
from cascade.models.http import Context, Request, Response

ErrorListener = Callable[[BaseException, Optional[Context]], Any]
RequestHandler = Callable[[AbstractIncomingMessage, AbstractServerResponse], Any]


class Application:
    """
    A cascade application.

    Middleware registered with `use()` run in order for every request, each
    able to act before and after the rest of the pipeline. `callback()`
    returns the transport-level request handler; the application object is
    also an ASGI app and can be served directly by any ASGI server.

    Example:
        app = Application()

        async def hello(ctx, next):
            ctx.body = {"hello": "world"}

        app.use(hello)

    Options left as None fall back to `CoreSettings` (environment variables
    prefixed with `CASCADE_`).
    """

    def __init__(
        self,
        *,
        env: Optional[str] = None,
        proxy: Optional[bool] = None,
        subdomain_offset: Optional[int] = None,
        proxy_ip_header: Optional[str] = None,
        max_ips_count: Optional[int] = None,
        keys: Optional[List[str]] = None,
        silent: Optional[bool] = None,
        async_local_storage: Any = None,
        compose: Optional[ComposeFunction] = None,
        settings: Optional[CoreSettings] = None,
        context_class: Type[Context] = Context,
        request_class: Type[Request] = Request,
        response_class: Type[Response] = Response,
    ):
        self.settings = settings or get_settings()
        self.env = env or self.settings.ENV
        self.proxy = self.settings.PROXY if proxy is None else proxy
        self.subdomain_offset = self.settings.SUBDOMAIN_OFFSET if subdomain_offset is None else subdomain_offset
        self.proxy_ip_header = proxy_ip_header or self.settings.PROXY_IP_HEADER
        self.max_ips_count = self.settings.MAX_IPS_COUNT if max_ips_count is None else max_ips_count
        self.keys = keys if keys is not None else self.settings.KEYS
        self.silent = self.settings.SILENT if silent is None else silent

        self.context_class = context_class
        self.request_class = request_class
        self.response_class = response_class

        self.ctx_storage: Optional[ContextStorage] = resolve_storage(
            self.settings.ASYNC_LOCAL_STORAGE if async_local_storage is None else async_local_storage
        )

        self._pipeline = MiddlewarePipeline(name=f"{self.settings.APP_NAME}.pipeline", compose=compose)
        self._error_listeners: List[ErrorListener] = []
        self._handler: Optional[RequestHandler] = None

        self._logger = logger.bind(name=f"{__name__}.{self.settings.APP_NAME}")

    # Middleware

    @property
    def compose(self) -> ComposeFunction:
        return self._pipeline.compose

    @property
    def middleware(self) -> Tuple[Middleware, ...]:
        return self._pipeline.middleware

    def use(self, fn: Middleware) -> "Application":
        """
        Append a middleware.

        Returns the application so calls can be chained:
        `app.use(logger_mw).use(router)`.

        Raises:
            MiddlewareRegistrationError: If `fn` is not callable.
        """
        self._pipeline.use(fn)
        self._handler = None
        return self

    # Request handling

    def callback(self) -> RequestHandler:
        """
        Return a request handler for the transport layer.

        The pipeline is composed once here; middleware registered afterwards
        only affect handlers obtained by later calls.

        Returns:
            `async handler(req, res)` handling one request per call.
        """
        fn = self._pipeline.compiled

        async def handle(req: AbstractIncomingMessage, res: AbstractServerResponse) -> None:
            ctx = self.create_context(req, res)
            if self.ctx_storage is None:
                return await self.handle_request(ctx, fn)
            return await self.ctx_storage.run(ctx, lambda: self.handle_request(ctx, fn))

        return handle

    async def handle_request(self, ctx: Context, fn: ComposedMiddleware) -> None:
        """
        Run one context through the composed pipeline.

        The status starts at 404. Abnormal termination of the transport is
        routed to `ctx.onerror`, as is any exception raised by the pipeline or
        while writing the response.
        """
        res = ctx.res
        res.status_code = 404
        res.on_finished(ctx.onerror)
        self._logger.debug(f"{ctx.method} {ctx.url}")
        try:
            await fn(ctx)
            await respond(ctx)
        except Exception as err:
            await ctx.onerror(err)

    def create_context(self, req: AbstractIncomingMessage, res: AbstractServerResponse) -> Context:
        """Build the context, request and response facades for one request."""
        request = self.request_class(self, req, res)
        response = self.response_class(self, req, res)
        context = self.context_class(self, req, res, request, response)
        request.ctx = response.ctx = context
        request.response = response
        response.request = request
        return context

    @property
    def current_context(self) -> Optional[Context]:
        """Context of the request handled by the calling task; None unless context storage is enabled."""
        if self.ctx_storage is None:
            return None
        return self.ctx_storage.get()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point supporting the `http` and `lifespan` scopes."""
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return
        if scope["type"] != "http":
            raise NotImplementedError(f"Unsupported ASGI scope type: {scope['type']}")

        if self._handler is None:
            self._handler = self.callback()
        await self._handler(ASGIIncomingMessage(scope, receive), ASGIServerResponse(send))

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self._logger.info(f"{self.settings.APP_NAME} started ({self.env})")
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # Error reporting

    def on_error(self, listener: ErrorListener) -> ErrorListener:
        """
        Register an error listener, called as `listener(err, ctx)`.

        Listeners run in registration order and replace the default
        reporter. Coroutine listeners are awaited before the next one runs.
        Usable as a decorator.
        """
        if not callable(listener):
            raise TypeError("error listener must be callable")
        self._error_listeners.append(listener)
        return listener

    @property
    def error_listeners(self) -> Tuple[ErrorListener, ...]:
        return tuple(self._error_listeners)

    async def emit_error(self, err: BaseException, ctx: Optional[Context] = None) -> None:
        """Hand an error to every registered listener, or to `onerror` when there are none."""
        if not self._error_listeners:
            self.onerror(err, ctx)
            return
        for listener in list(self._error_listeners):
            result = listener(err, ctx)
            if inspect.isawaitable(result):
                await result

    def onerror(self, err: Any, ctx: Optional[Context] = None) -> None:
        """
        Default error reporter.

        Errors with status 404 or marked `expose` are expected client errors
        and are not reported; neither is anything in silent mode. Other errors
        are logged at ERROR level with an indented traceback.

        Raises:
            TypeError: If `err` is not an exception.
        """
        if not isinstance(err, BaseException):
            raise TypeError(f"non-error thrown: {err!r}")

        if getattr(err, "status", None) == 404 or getattr(err, "expose", False):
            return
        if self.silent:
            return

        if err.__traceback__ is not None:
            msg = "".join(traceback.format_exception(err)).rstrip()
        else:
            msg = f"{type(err).__name__}: {err}"
        self._logger.error(f"\n{indent(msg, '  ')}\n")

    def to_json(self) -> Dict[str, Any]:
        return {"subdomain_offset": self.subdomain_offset, "proxy": self.proxy, "env": self.env}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_json()!r})"
