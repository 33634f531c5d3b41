"""Immutable HTTP request.

Frozen metadata plus a bag of attributes. Middleware that wants to pass
data inward returns a new request from ``with_attribute()``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from spindle.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Usage::

        request = Request("GET", "/users/42", Headers.from_mapping({"Origin": "https://a.com"}))
        request = request.with_attribute("user", current_user)
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: str = ""
    body: bytes = b""
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def header(self, name: str) -> str:
        """Header line for *name*, or ``""`` when absent."""
        return self.headers.line(name)

    def attribute(self, name: str, default: Any = None) -> Any:
        """Return a request attribute set by the router or middleware."""
        return self.attributes.get(name, default)

    # -- Chainable transformations --

    def with_attribute(self, name: str, value: Any) -> "Request":
        """Return a new Request with an additional attribute."""
        return replace(self, attributes=MappingProxyType({**self.attributes, name: value}))

    def with_header(self, name: str, value: str) -> "Request":
        """Return a new Request with *name* set to *value*."""
        return replace(self, headers=self.headers.replace(name, value))

    def with_path(self, path: str) -> "Request":
        """Return a new Request for a different path."""
        return replace(self, path=path)

    def with_method(self, method: str) -> "Request":
        """Return a new Request with a different method."""
        return replace(self, method=method)
