# ABOUTME: Cascading middleware composer
# ABOUTME: Compiles an ordered middleware list into a single two-phase dispatch function

import functools
import inspect
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger

from cascade.exceptions import MiddlewareRegistrationError, MultipleNextCallsError

if TYPE_CHECKING:
    from cascade.interfaces.middleware import ComposedMiddleware, Middleware, Next

_logger = logger.bind(name=__name__)

# How a middleware receives `next`
_POSITIONAL = "positional"
_KEYWORD = "keyword"
_CTX_ONLY = "ctx-only"


def compose(middleware: "Sequence[Middleware]") -> "ComposedMiddleware":
    """
    Compose middleware into one dispatch function.

    `dispatch(ctx)` runs `m0(ctx, next0)`; awaiting `next0()` runs
    `m1(ctx, next1)` and so on. Code before `await next()` runs in list order,
    code after it runs in reverse order once everything downstream has
    completed. A middleware that does not call `next()` ends the chain there.
    Exceptions propagate unchanged, so the upstream half of enclosing
    middleware only runs if they catch them.

    The returned function also accepts an outer `next`, run after the last
    stage, which makes a composed pipeline usable as middleware itself.

    Composition does not call any middleware.

    Args:
        middleware: Ordered middleware callables.

    Returns:
        The composed `async dispatch(ctx, next=None)` function.

    Raises:
        MiddlewareRegistrationError: If `middleware` is not a sequence or contains a non-callable.
    """
    if isinstance(middleware, (str, bytes)) or not isinstance(middleware, Sequence):
        raise MiddlewareRegistrationError("Middleware stack must be a sequence!")
    stack = tuple(middleware)
    for fn in stack:
        if not callable(fn):
            raise MiddlewareRegistrationError(
                "Middleware must be composed of callables!",
                details={"middleware": repr(fn)},
            )
    call_styles = tuple(_call_style(fn) for fn in stack)
    _logger.debug(f"Composed pipeline of {len(stack)} middleware")

    async def dispatch_pipeline(ctx: Any, next: Optional["Next"] = None) -> Any:
        index = -1

        async def dispatch(i: int) -> Any:
            nonlocal index
            if i <= index:
                raise MultipleNextCallsError(
                    "next() called multiple times",
                    details={"middleware_index": i - 1},
                )
            index = i

            if i == len(stack):
                if next is None:
                    return None
                return await next()

            fn = stack[i]
            style = call_styles[i]
            if style is _POSITIONAL:
                result = fn(ctx, functools.partial(dispatch, i + 1))
            elif style is _KEYWORD:
                result = fn(ctx, next=functools.partial(dispatch, i + 1))
            else:
                result = fn(ctx)
            if inspect.isawaitable(result):
                result = await result
            return result

        return await dispatch(0)

    return dispatch_pipeline


def _call_style(fn: Any) -> str:
    """
    Decide how `fn` is called: `(ctx, next)`, `(ctx, next=...)` or `(ctx)`.

    A second positional parameter or `*args` takes `next` positionally; a
    keyword-only parameter named `next` takes it by keyword. Callables whose
    signature cannot be inspected are given both arguments.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return _POSITIONAL

    positional = 0
    keyword_next = False
    for parameter in signature.parameters.values():
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return _POSITIONAL
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            positional += 1
        elif parameter.kind is inspect.Parameter.KEYWORD_ONLY and parameter.name == "next":
            keyword_next = True

    if positional >= 2:
        return _POSITIONAL
    if keyword_next:
        return _KEYWORD
    return _CTX_ONLY
