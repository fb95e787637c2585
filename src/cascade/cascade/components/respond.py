# ABOUTME: Response materializer run once after the pipeline resolves
# ABOUTME: Maps the final context state onto exactly one terminal write to the transport

from typing import TYPE_CHECKING

from loguru import logger

from cascade import statuses
from cascade.models.http.body import Body, BodyKind

if TYPE_CHECKING:
    from cascade.interfaces.transport import AbstractServerResponse
    from cascade.models.http.context import Context

_logger = logger.bind(name=__name__)


async def respond(ctx: "Context") -> None:
    """
    Write the response described by `ctx`.

    The checks below run in order and the first one that applies ends the
    response:

    1. `ctx.respond is False`: the application writes to `ctx.res` itself.
    2. The connection is no longer writable: end without a body.
    3. Body-forbidden status (204, 205, 304): drop the body and end.
    4. HEAD: fill in Content-Length from the would-be body, never send it.
    5. No body: an explicit None sends an empty payload; otherwise the status
       message (or the bare code on HTTP/2+) is sent as text/plain.
    6. str or bytes: sent as-is.
    7. Adapted streams (file-like, `aiter_bytes()`/`iter_bytes()` objects)
       and 8. plain byte iterators: piped chunk by chunk.
    9. Anything else: JSON-encoded.
    """
    if ctx.respond is False:
        return

    res = ctx.res
    if not ctx.writable:
        await res.end()
        return

    code = ctx.status
    if statuses.is_empty(code):
        ctx.body = None
        await res.end()
        return

    if ctx.method == "HEAD":
        if not res.headers_sent and not ctx.response.has("Content-Length"):
            length = ctx.response.length
            if isinstance(length, int):
                ctx.length = length
        await res.end()
        return

    body = Body.of(ctx.body)

    if body.kind is BodyKind.EMPTY:
        if ctx.response.explicit_null_body:
            ctx.response.remove("Content-Type")
            ctx.response.remove("Transfer-Encoding")
            ctx.length = 0
            await res.end()
            return
        if ctx.req.http_version_major >= 2:
            text = str(code)
        else:
            text = ctx.message or str(code)
        if not res.headers_sent:
            ctx.type = "text"
            ctx.length = len(text.encode("utf-8"))
        await res.end(text)
        return

    if body.kind in (BodyKind.TEXT, BodyKind.BYTES):
        await res.end(body.value)
        return

    if body.kind is BodyKind.STREAM:
        await _pipe(body, res)
        return

    text = body.serialize()
    if not res.headers_sent:
        ctx.length = len(text.encode("utf-8"))
    await res.end(text)


async def _pipe(body: Body, res: "AbstractServerResponse") -> None:
    """Copy a stream body to the transport, stopping early if the connection goes away."""
    async for chunk in body.iter_chunks():
        if not await res.write(chunk):
            _logger.debug("Transport closed while streaming the response body")
            break
    await res.end()
