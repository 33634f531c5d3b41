"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: the request currently being dispatched.
- ``match_var``: the ``RouteMatch`` for that request.

Both are set by ``App.run`` for the duration of one dispatch and reset
afterwards. Accessing them outside a dispatch raises ``LookupError``.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    threads. No locks needed.
"""

from contextvars import ContextVar

from spindle.http.request import Request
from spindle.routing.route import RouteMatch

request_var: ContextVar[Request] = ContextVar("spindle_request")
"""The current request. Set by the app before the pipeline runs."""

match_var: ContextVar[RouteMatch] = ContextVar("spindle_match")
"""The route match for the current request."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return request_var.get()


def get_match() -> RouteMatch:
    """Return the route match for the current request.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return match_var.get()
