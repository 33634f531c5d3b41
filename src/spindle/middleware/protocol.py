"""Middleware, CORS, and resolver protocols.

A middleware is any object exposing::

    async def process(self, request: Request, next: Next) -> Response: ...

No base class required. The dispatcher checks the shape, not the lineage.
``process`` may also be a plain ``def``; a sync middleware can still
delegate by returning ``next()`` unchanged.

``next`` is the rest of the pipeline. Call it with no argument to pass
the same request inward, or with a new request to pass a transformed one.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeAlias, runtime_checkable

from spindle.http.request import Request
from spindle.http.response import Response

# The rest of the pipeline, including the terminal handler
Next: TypeAlias = Callable[..., Awaitable[Response]]

# A route handler: (request, response, params) -> response
Handler: TypeAlias = Callable[[Request, Response, dict[str, str]], Any]


@runtime_checkable
class Middleware(Protocol):
    """Protocol for spindle middleware.

    Class middleware::

        class Timing:
            async def process(self, request: Request, next: Next) -> Response:
                start = time.monotonic()
                response = await next()
                elapsed = time.monotonic() - start
                return response.with_header("X-Time", f"{elapsed:.3f}")

    Function middleware goes through :func:`spindle.middleware.middleware`.
    """

    def process(self, request: Request, next: Next) -> Any: ...


@runtime_checkable
class Resolver(Protocol):
    """Maps an identifier to an instance.

    Raises ``ServiceNotFound`` for unknown identifiers and
    ``ContainerError`` when construction fails.
    """

    def get(self, identifier: str) -> Any: ...


class CORSInterceptor(Protocol):
    """Decides whether CORS applies and decorates responses."""

    def should_apply(self, request: Request) -> bool: ...

    def add_headers(self, response: Response, request: Request) -> Response: ...
