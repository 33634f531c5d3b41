"""Spindle — an HTTP routing and middleware-dispatch core.

Matches requests to handlers through an ordered route table, threads
them through an onion of middleware, and layers CORS on top.

Basic usage::

    from spindle import App, Request

    app = App()

    def hello(request, response, params):
        return response.with_body(f"Hello, {params['name']}!")

    app.get("/hello/{name}", hello)

    response = await app.run(Request("GET", "/hello/world"))
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "CORSConfig",
    "CORSHandler",
    "ConfigurationError",
    "Container",
    "ContainerError",
    "Headers",
    "InvalidHandlerError",
    "Middleware",
    "Next",
    "Request",
    "Response",
    "RouteNotFound",
    "Router",
    "ServiceNotFound",
    "SpindleError",
    "get_match",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import spindle`` fast while providing a clean top-level API.
    """
    if name == "App":
        from spindle.app import App

        return App

    if name == "AppConfig":
        from spindle.config import AppConfig

        return AppConfig

    if name == "Container":
        from spindle.container import Container

        return Container

    if name == "Router":
        from spindle.routing.router import Router

        return Router

    if name == "Request":
        from spindle.http.request import Request

        return Request

    if name == "Response":
        from spindle.http.response import Response

        return Response

    if name == "Headers":
        from spindle.http.headers import Headers

        return Headers

    if name in ("CORSConfig", "CORSHandler", "Middleware", "Next"):
        from spindle import middleware as _mw

        return getattr(_mw, name)

    if name in ("get_match", "get_request"):
        from spindle import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ConfigurationError",
        "ContainerError",
        "InvalidHandlerError",
        "RouteNotFound",
        "ServiceNotFound",
        "SpindleError",
    ):
        from spindle import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
