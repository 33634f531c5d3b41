"""Spindle exception hierarchy.

Shared across the router, pipeline, container, and app so every module
raises and catches the same types.

A request that matches no route is not an error here: ``App.run``
answers it with a 404 response.
"""


class SpindleError(Exception):
    """Base for all spindle-specific errors."""


class ConfigurationError(SpindleError):
    """Raised when routes, middleware, or the app are misconfigured.

    Surfaces at registration time (or when the app seals), never
    swallowed by the dispatcher.
    """


class InvalidHandlerError(SpindleError):
    """The route handler cannot be invoked.

    Raised at registration when the handler value has none of the
    recognized shapes, and at dispatch when a resolved handler turns
    out not to be callable.
    """


class RouteNotFound(SpindleError, LookupError):  # noqa: N818
    """No route is registered under the requested name."""


class ContainerError(SpindleError):
    """A resolver failed to produce an instance.

    The dispatcher never catches this; retry policy belongs to the caller.
    """


class ServiceNotFound(ContainerError, LookupError):  # noqa: N818
    """The resolver has no entry for the identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"No service registered for {identifier!r}")
        self.identifier = identifier
