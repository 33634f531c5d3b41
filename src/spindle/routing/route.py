"""Route, RouteMatch, and handler descriptor frozen dataclasses."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from spindle.errors import InvalidHandlerError
from spindle.routing.pattern import CompiledPattern


@dataclass(frozen=True, slots=True)
class ServiceHandler:
    """Handler resolved by identifier, then called directly."""

    identifier: str


@dataclass(frozen=True, slots=True)
class MethodHandler:
    """Handler resolved by identifier, then one of its methods is called."""

    identifier: str
    method: str


@dataclass(frozen=True, slots=True)
class CallableHandler:
    """Handler that is already a callable."""

    func: Callable[..., Any]


HandlerSpec: TypeAlias = ServiceHandler | MethodHandler | CallableHandler


def parse_handler(value: Any) -> HandlerSpec:
    """Classify a handler value once, at registration time.

    Accepted shapes::

        "users.show"               -> ServiceHandler
        ("users", "show")          -> MethodHandler
        show_user                  -> CallableHandler

    Raises ``InvalidHandlerError`` for anything else.
    """
    if isinstance(value, ServiceHandler | MethodHandler | CallableHandler):
        return value
    if isinstance(value, str):
        if not value:
            msg = "Route handler identifier must not be empty."
            raise InvalidHandlerError(msg)
        return ServiceHandler(value)
    if isinstance(value, Sequence) and len(value) == 2:
        identifier, method = value
        if isinstance(identifier, str) and isinstance(method, str) and identifier and method:
            return MethodHandler(identifier, method)
    if callable(value):
        return CallableHandler(value)
    msg = f"Invalid route handler: {value!r}"
    raise InvalidHandlerError(msg)


@dataclass(frozen=True, slots=True)
class Route:
    """A compiled route.

    Created once during setup; the router's table is sealed before
    serving and routes are never mutated afterwards.
    """

    method: str
    path: str
    pattern: CompiledPattern
    handler: HandlerSpec
    middlewares: tuple[Any, ...] = ()
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match. Lives for one request."""

    route: Route
    params: dict[str, str] = field(default_factory=dict)

    @property
    def method(self) -> str:
        return self.route.method

    @property
    def handler(self) -> HandlerSpec:
        return self.route.handler

    @property
    def middlewares(self) -> tuple[Any, ...]:
        return self.route.middlewares
