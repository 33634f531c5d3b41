"""Spindle application class.

Mutable during setup (routes, groups, global middleware).
Sealed at runtime when ``run()`` is first awaited.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from spindle.config import AppConfig
from spindle.context import match_var, request_var
from spindle.errors import ConfigurationError
from spindle.http.request import Request
from spindle.http.response import Response
from spindle.middleware.cors import CORSHandler
from spindle.middleware.normalize import normalize_middleware
from spindle.middleware.protocol import CORSInterceptor, Middleware, Resolver
from spindle.pipeline import HandlerInvoker, Pipeline, ResponseFactory, default_response_factory
from spindle.routing.route import Route
from spindle.routing.router import Router

logger = logging.getLogger("spindle.dispatch")

# Request attributes set before the pipeline runs
HANDLER_ATTRIBUTE = "handler"
PARAMS_ATTRIBUTE = "params"


class App:
    """The spindle application.

    Usage::

        app = App(resolver=container, cors=CORSHandler())
        app.add_middleware("session")
        app.get("/users/{id:\\d+}", ("users", "show"), ["auth"])

        response = await app.run(request)

    Thread safety:
        Setup is single-threaded. The seal transition uses a Lock +
        double-check so exactly one caller seals the route table and
        middleware, even when the first requests arrive concurrently.
        After that, every request gets its own ``Pipeline``; nothing
        per-request is stored on the app.
    """

    __slots__ = (
        "_cors",
        "_freeze_lock",
        "_frozen",
        "_invoker",
        "_middleware",
        "_middleware_list",
        "_resolver",
        "_response_factory",
        "config",
        "router",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        resolver: Resolver | None = None,
        cors: CORSInterceptor | None = None,
        response_factory: ResponseFactory = default_response_factory,
        router: Router | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.router: Router = router or Router(self.config.methods)
        self._resolver = resolver
        if cors is None and self.config.cors is not None:
            cors = CORSHandler(self.config.cors)
        self._cors: CORSInterceptor | None = cors
        self._response_factory = response_factory
        self._invoker = HandlerInvoker(resolver, response_factory)
        self._middleware_list: list[Middleware] = []
        self._middleware: tuple[Middleware, ...] = ()
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

    # -- Middleware --

    def add_middleware(self, middleware: Any) -> None:
        """Add a global middleware, run before every route's own middleware.

        Accepts an instance, an identifier for the resolver, or a factory
        taking the resolver. Raises ``ConfigurationError`` if the result
        is not a middleware.
        """
        self._check_not_frozen()
        self._middleware_list.append(normalize_middleware(middleware, self._resolver))

    # -- Route registration (delegates to the router) --

    def add_route(
        self,
        method: str,
        group_prefix: str,
        path: str,
        handler: Any,
        middlewares: Iterable[Any] = (),
    ) -> Route:
        return self.router.add_route(method, group_prefix, path, handler, middlewares)

    def get(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Router:
        return self.router.get(path, handler, middlewares)

    def post(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Router:
        return self.router.post(path, handler, middlewares)

    def put(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Router:
        return self.router.put(path, handler, middlewares)

    def patch(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Router:
        return self.router.patch(path, handler, middlewares)

    def delete(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Router:
        return self.router.delete(path, handler, middlewares)

    def options(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Router:
        return self.router.options(path, handler, middlewares)

    def group(
        self,
        prefix: str,
        body: Callable[[Router], Any],
        middlewares: Iterable[Any] = (),
    ) -> None:
        self.router.group(prefix, body, middlewares)

    def name(self, identifier: str) -> None:
        self.router.name(identifier)

    def url_for(self, identifier: str, **params: object) -> str:
        return self.router.url_for(identifier, **params)

    # -- Dispatch --

    async def run(self, request: Request) -> Response:
        """Dispatch *request* and return the response.

        Preflight requests are answered by the CORS interceptor without
        routing. A path no route accepts yields a 404 without running
        any middleware.
        """
        self._ensure_frozen()
        cors = self._cors

        if request.method.upper() == "OPTIONS" and cors is not None and cors.should_apply(request):
            logger.debug("Answering CORS preflight for %s", request.path)
            return cors.add_headers(self._response_factory(200), request)

        match = self.router.match(request.method, request.path)
        if match is None:
            logger.debug("No route matches %s %s", request.method, request.path)
            return self._response_factory(404)
        logger.debug("Matched %s %s to %s", request.method, request.path, match.route.path)

        middleware = [
            *self._middleware,
            *(normalize_middleware(d, self._resolver) for d in match.middlewares),
        ]
        request = request.with_attribute(HANDLER_ATTRIBUTE, match.handler).with_attribute(
            PARAMS_ATTRIBUTE, match.params
        )

        request_token = request_var.set(request)
        match_token = match_var.set(match)
        try:
            response = await Pipeline(middleware, match, self._invoker).handle(request)
        finally:
            match_var.reset(match_token)
            request_var.reset(request_token)

        if cors is not None and cors.should_apply(request):
            response = cors.add_headers(response, request)
        return response

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Seal the route table and capture global middleware.

        In debug mode every route is checked first; a failing check
        leaves the app unsealed, so each ``run()`` raises again until the
        configuration is fixed.

        MUST only be called while holding _freeze_lock.
        """
        if self.config.debug:
            self._check_routes()
        self.router.seal()
        self._middleware = tuple(self._middleware_list)
        self._frozen = True
        logger.debug(
            "Sealed app with %d route(s) and %d global middleware",
            len(self.router.routes),
            len(self._middleware),
        )

    def check(self) -> None:
        """Resolve every route's middleware and handler once.

        Surfaces ``ConfigurationError``, ``InvalidHandlerError`` and
        resolver errors at startup instead of on the first request that
        hits the route. Resolution may construct instances; they are
        discarded.
        """
        self._ensure_frozen()
        self._check_routes()

    def _check_routes(self) -> None:
        for route in self.router.routes:
            for descriptor in route.middlewares:
                normalize_middleware(descriptor, self._resolver)
            self._invoker.target(route.handler)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes and middleware before the first run()."
            )
            raise ConfigurationError(msg)
