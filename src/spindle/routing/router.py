"""Ordered route table with first-match-wins lookup.

Routes are registered during setup, then the table is sealed and only
read.  Matching is a linear scan in registration order: the first route
whose method and pattern accept the request wins.  There is no
specificity ranking; declaration order is the precedence.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Any, Self

from spindle.errors import ConfigurationError, RouteNotFound
from spindle.routing.pattern import compile_template
from spindle.routing.route import Route, RouteMatch, parse_handler

logger = logging.getLogger("spindle.routing")

DEFAULT_METHODS: frozenset[str] = frozenset(
    {"GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}
)


@dataclass(frozen=True, slots=True)
class _GroupScope:
    """Prefix and middleware inherited by routes registered inside a group."""

    prefix: str = ""
    middlewares: tuple[Any, ...] = ()


class Router:
    """Route table, group scopes, and matcher.

    Usage::

        router = Router()
        router.get("/", home)
        router.get("/users/{id:\\d+}", ("users", "show")).name("user")

        def admin(r: Router) -> None:
            r.get("/stats", stats)

        router.group("/admin", admin, middlewares=["auth"])
        router.seal()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_methods", "_named", "_routes", "_scopes", "_sealed")

    def __init__(self, methods: Iterable[str] = DEFAULT_METHODS) -> None:
        self._methods = frozenset(m.upper() for m in methods)
        self._routes: list[Route] = []
        self._named: dict[str, int] = {}
        self._scopes: list[_GroupScope] = [_GroupScope()]
        self._sealed = False

    # -- Registration --

    def add_route(
        self,
        method: str,
        group_prefix: str,
        path: str,
        handler: Any,
        middlewares: Iterable[Any] = (),
    ) -> Route:
        """Compile and append a route. Must be called before seal()."""
        self._check_not_sealed()
        method = method.upper()
        if method not in self._methods:
            allowed = ", ".join(sorted(self._methods))
            msg = f"Unsupported HTTP method {method!r} for {path!r}. Allowed: {allowed}"
            raise ConfigurationError(msg)
        full_path = group_prefix + path
        route = Route(
            method=method,
            path=full_path,
            pattern=compile_template(full_path),
            handler=parse_handler(handler),
            middlewares=tuple(middlewares),
        )
        self._routes.append(route)
        logger.debug("Registered route %s %s", method, full_path)
        return route

    def _add_scoped(
        self,
        method: str,
        path: str,
        handler: Any,
        middlewares: Iterable[Any],
    ) -> Self:
        scope = self._scopes[-1]
        self.add_route(
            method,
            scope.prefix,
            path,
            handler,
            (*scope.middlewares, *middlewares),
        )
        return self

    def get(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Self:
        """Register a GET route in the current group scope."""
        return self._add_scoped("GET", path, handler, middlewares)

    def post(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Self:
        """Register a POST route in the current group scope."""
        return self._add_scoped("POST", path, handler, middlewares)

    def put(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Self:
        """Register a PUT route in the current group scope."""
        return self._add_scoped("PUT", path, handler, middlewares)

    def patch(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Self:
        """Register a PATCH route in the current group scope."""
        return self._add_scoped("PATCH", path, handler, middlewares)

    def delete(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Self:
        """Register a DELETE route in the current group scope."""
        return self._add_scoped("DELETE", path, handler, middlewares)

    def options(self, path: str, handler: Any, middlewares: Iterable[Any] = ()) -> Self:
        """Register an OPTIONS route in the current group scope."""
        return self._add_scoped("OPTIONS", path, handler, middlewares)

    def route(
        self,
        method: str,
        path: str,
        handler: Any,
        middlewares: Iterable[Any] = (),
    ) -> Self:
        """Register a route for any configured method in the current group scope."""
        return self._add_scoped(method, path, handler, middlewares)

    def group(
        self,
        prefix: str,
        body: Callable[[Self], Any],
        middlewares: Iterable[Any] = (),
    ) -> None:
        """Register the routes declared by *body* under a shared prefix.

        The prefix is appended to the enclosing group's prefix and the
        middlewares after the enclosing group's middlewares.  Routes in
        the group list their own middlewares last.  The enclosing scope
        is restored when *body* returns or raises.
        """
        outer = self._scopes[-1]
        self._scopes.append(
            _GroupScope(
                prefix=outer.prefix + prefix,
                middlewares=(*outer.middlewares, *middlewares),
            )
        )
        try:
            body(self)
        finally:
            self._scopes.pop()

    def name(self, identifier: str) -> None:
        """Name the most recently registered route."""
        self._check_not_sealed()
        if not self._routes:
            msg = f"Cannot name route {identifier!r}: no route has been registered yet."
            raise ConfigurationError(msg)
        if identifier in self._named:
            msg = f"Route name {identifier!r} is already in use."
            raise ConfigurationError(msg)
        index = len(self._routes) - 1
        self._routes[index] = replace(self._routes[index], name=identifier)
        self._named[identifier] = index

    def seal(self) -> None:
        """Freeze the table. No more routes can be added."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_not_sealed(self) -> None:
        if self._sealed:
            msg = "Cannot modify routes after the route table has been sealed."
            raise ConfigurationError(msg)

    # -- Lookup --

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in registration order."""
        return tuple(self._routes)

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Return the first route accepting *method* and *path*, or ``None``.

        *method* is compared case-insensitively, like registration.
        """
        method = method.upper()
        for route in self._routes:
            if route.method != method:
                continue
            params = route.pattern.match(path)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def allowed_methods(self, path: str) -> frozenset[str]:
        """Methods of every route whose pattern accepts *path*."""
        return frozenset(
            route.method for route in self._routes if route.pattern.match(path) is not None
        )

    def named(self, identifier: str) -> Route:
        """Return the route registered under *identifier*."""
        try:
            return self._routes[self._named[identifier]]
        except KeyError:
            msg = f"No route named {identifier!r}"
            raise RouteNotFound(msg) from None

    def url_for(self, identifier: str, **params: object) -> str:
        """Build the path of a named route.

        Raises ``RouteNotFound`` for an unknown name and ``ValueError``
        when the parameters do not fit the route template.
        """
        return self.named(identifier).pattern.build(params)
