"""A small resolver: identifiers mapped to instances or factories.

Any object with ``get(identifier)`` can serve as the app's resolver;
this one covers the common case::

    container = Container()
    container.set("users", UserController(repo))
    container.factory("auth", lambda c: AuthMiddleware(c.get("users")))
    container.factory("db", connect, shared=True)

Factories receive the container. A ``shared`` factory is called once and
its instance reused; the dispatcher itself never caches.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from spindle.errors import ContainerError, ServiceNotFound


@dataclass(frozen=True, slots=True)
class _Factory:
    func: Callable[["Container"], Any]
    shared: bool


class Container:
    """Identifier-to-instance registry implementing the ``Resolver`` protocol.

    Thread safety:
        Registration is expected during setup. ``get`` may be called
        concurrently; shared factories are built under a lock so each is
        constructed exactly once.
    """

    __slots__ = ("_factories", "_instances", "_lock")

    def __init__(self) -> None:
        self._instances: dict[str, Any] = {}
        self._factories: dict[str, _Factory] = {}
        self._lock = threading.RLock()

    def set(self, identifier: str, value: Any) -> None:
        """Register a ready-made instance."""
        self._factories.pop(identifier, None)
        self._instances[identifier] = value

    def factory(
        self,
        identifier: str,
        func: Callable[["Container"], Any],
        *,
        shared: bool = False,
    ) -> None:
        """Register a factory called with the container on each ``get``.

        With ``shared=True`` the first instance is kept and reused.
        """
        self._instances.pop(identifier, None)
        self._factories[identifier] = _Factory(func, shared)

    def has(self, identifier: str) -> bool:
        return identifier in self._instances or identifier in self._factories

    def get(self, identifier: str) -> Any:
        """Return the instance for *identifier*.

        Raises ``ServiceNotFound`` for unknown identifiers and
        ``ContainerError`` when a factory fails.
        """
        if identifier in self._instances:
            return self._instances[identifier]
        entry = self._factories.get(identifier)
        if entry is None:
            raise ServiceNotFound(identifier)
        if not entry.shared:
            return self._build(identifier, entry)
        with self._lock:
            if identifier not in self._instances:
                self._instances[identifier] = self._build(identifier, entry)
            return self._instances[identifier]

    def _build(self, identifier: str, entry: _Factory) -> Any:
        try:
            return entry.func(self)
        except ContainerError:
            raise
        except Exception as exc:
            msg = f"Factory for {identifier!r} failed: {exc}"
            raise ContainerError(msg) from exc
