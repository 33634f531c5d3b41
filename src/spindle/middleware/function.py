"""Adapter for function middleware.

Lets a plain ``async def mw(request, next)`` take part in the pipeline::

    @middleware
    async def timing(request: Request, next: Next) -> Response:
        start = time.monotonic()
        response = await next()
        return response.with_header("X-Time", f"{time.monotonic() - start:.3f}")

    app.add_middleware(timing)
"""

from collections.abc import Callable
from typing import Any

from spindle._internal.invoke import invoke
from spindle.http.request import Request
from spindle.middleware.protocol import Next


class FunctionMiddleware:
    """Wraps a ``(request, next)`` callable as a middleware object."""

    __slots__ = ("func",)

    def __init__(self, func: Callable[[Request, Next], Any]) -> None:
        self.func = func

    async def process(self, request: Request, next: Next) -> Any:
        return await invoke(self.func, request, next)

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"<FunctionMiddleware {name}>"


def middleware(func: Callable[[Request, Next], Any]) -> FunctionMiddleware:
    """Turn a ``(request, next)`` function into a middleware object."""
    return FunctionMiddleware(func)
