"""Per-request middleware pipeline and terminal handler invocation.

The pipeline is an onion: each middleware wraps the rest of the chain.
Code before ``await next()`` runs on the way in, code after it on the
way out, and a middleware that never calls ``next`` short-circuits
everything inside it.

A ``Pipeline`` is built fresh for every request.  Its cursor is the
only mutable dispatch state and is never visible to another request.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeAlias

from spindle._internal.invoke import invoke
from spindle.errors import InvalidHandlerError
from spindle.http.request import Request
from spindle.http.response import Response
from spindle.middleware.protocol import Middleware, Resolver
from spindle.routing.route import (
    CallableHandler,
    HandlerSpec,
    MethodHandler,
    RouteMatch,
    ServiceHandler,
)

logger = logging.getLogger("spindle.dispatch")

ResponseFactory: TypeAlias = Callable[[int], Response]


def default_response_factory(status: int = 200) -> Response:
    """Create an empty response with *status*."""
    return Response(status=status)


class HandlerInvoker:
    """Resolves and calls the terminal handler of a matched route.

    Handlers are called as ``handler(request, response, params)`` where
    *response* is a fresh response from the factory.  Resolver errors
    propagate unchanged.
    """

    __slots__ = ("_resolver", "_response_factory")

    def __init__(
        self,
        resolver: Resolver | None = None,
        response_factory: ResponseFactory = default_response_factory,
    ) -> None:
        self._resolver = resolver
        self._response_factory = response_factory

    async def __call__(self, request: Request, route_match: RouteMatch) -> Any:
        target = self.target(route_match.handler)
        response = self._response_factory(200)
        return await invoke(target, request, response, dict(route_match.params))

    def target(self, handler: HandlerSpec) -> Callable[..., Any]:
        """Return the callable *handler* describes, resolving it if needed."""
        match handler:
            case CallableHandler(func=func):
                return func
            case ServiceHandler(identifier=identifier):
                service = self._resolve(identifier)
                if not callable(service):
                    msg = f"Route handler {identifier!r} resolved to non-callable {service!r}"
                    raise InvalidHandlerError(msg)
                return service
            case MethodHandler(identifier=identifier, method=method):
                service = self._resolve(identifier)
                bound = getattr(service, method, None)
                if not callable(bound):
                    msg = f"Route handler {identifier!r} has no callable method {method!r}"
                    raise InvalidHandlerError(msg)
                return bound
            case _:
                msg = f"Invalid route handler: {handler!r}"
                raise InvalidHandlerError(msg)

    def _resolve(self, identifier: str) -> Any:
        if self._resolver is None:
            msg = f"Cannot resolve route handler {identifier!r}: the app has no resolver."
            raise InvalidHandlerError(msg)
        return self._resolver.get(identifier)


class Pipeline:
    """Middleware chain for a single request.

    Usage::

        pipeline = Pipeline((auth, timing), match, invoker)
        response = await pipeline.handle(request)
    """

    __slots__ = ("_cursor", "_invoker", "_match", "_middleware")

    def __init__(
        self,
        middleware: Sequence[Middleware],
        match: RouteMatch,
        invoker: HandlerInvoker,
    ) -> None:
        self._middleware = tuple(middleware)
        self._match = match
        self._invoker = invoker
        self._cursor = 0

    @property
    def remaining(self) -> int:
        """Middlewares not yet entered."""
        return len(self._middleware) - self._cursor

    async def handle(self, request: Request) -> Any:
        """Run the next middleware, or the handler once the chain is exhausted.

        Each middleware's ``next`` is bound to its place in the chain:
        calling it twice runs every inner middleware and the handler
        twice.
        """
        if self._cursor >= len(self._middleware):
            logger.debug("Invoking handler for %s %s", request.method, request.path)
            return await self._invoker(request, self._match)

        mw = self._middleware[self._cursor]
        self._cursor += 1
        position = self._cursor

        async def next(req: Request | None = None) -> Any:  # noqa: A001
            # Rewind so a repeated call re-enters the inner layers
            self._cursor = position
            return await self.handle(request if req is None else req)

        return await invoke(mw.process, request, next)
