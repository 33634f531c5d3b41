"""Middleware descriptor normalization.

A route or the app may declare middleware as:

- an object with a ``process`` method, used as-is;
- an identifier string, looked up through the resolver;
- a factory callable, called with the resolver. A class counts as a
  factory: its constructor receives the resolver.

Construction by identifier always goes through the resolver; spindle
never instantiates middleware classes itself.
"""

import inspect
from typing import Any

from spindle.errors import ConfigurationError
from spindle.middleware.protocol import Middleware, Resolver


def _is_middleware(value: Any) -> bool:
    return callable(getattr(value, "process", None))


def normalize_middleware(descriptor: Any, resolver: Resolver | None) -> Middleware:
    """Return a middleware instance for *descriptor*.

    Raises ``ConfigurationError`` if the result has no callable
    ``process``.  Resolver errors propagate unchanged.
    """
    if isinstance(descriptor, str):
        instance = _require_resolver(resolver, descriptor).get(descriptor)
    elif _is_middleware(descriptor) and not isinstance(descriptor, type):
        instance = descriptor
    elif inspect.iscoroutinefunction(descriptor):
        msg = (
            f"Middleware {descriptor!r} is a bare async function; "
            "wrap it with @middleware to use it as process(request, next)."
        )
        raise ConfigurationError(msg)
    elif callable(descriptor):
        instance = descriptor(resolver)
    else:
        instance = descriptor

    if not _is_middleware(instance):
        msg = (
            f"Middleware {descriptor!r} resolved to {instance!r}, which has no "
            "process(request, next) method."
        )
        raise ConfigurationError(msg)
    return instance


def _require_resolver(resolver: Resolver | None, identifier: str) -> Resolver:
    if resolver is None:
        msg = f"Cannot resolve middleware {identifier!r}: the app has no resolver."
        raise ConfigurationError(msg)
    return resolver
