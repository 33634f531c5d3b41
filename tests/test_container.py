"""Tests for spindle.container — the identifier resolver."""

import threading

import pytest

from spindle.container import Container
from spindle.errors import ContainerError, ServiceNotFound
from spindle.middleware.protocol import Resolver


class TestContainer:
    def test_is_resolver(self) -> None:
        assert isinstance(Container(), Resolver)

    def test_set_and_get(self) -> None:
        c = Container()
        service = object()
        c.set("svc", service)
        assert c.get("svc") is service

    def test_missing(self) -> None:
        with pytest.raises(ServiceNotFound, match="'nope'") as exc_info:
            Container().get("nope")
        assert exc_info.value.identifier == "nope"

    def test_missing_is_lookup_and_container_error(self) -> None:
        assert issubclass(ServiceNotFound, LookupError)
        assert issubclass(ServiceNotFound, ContainerError)

    def test_has(self) -> None:
        c = Container()
        c.set("a", 1)
        c.factory("b", lambda _: 2)
        assert c.has("a")
        assert c.has("b")
        assert not c.has("c")

    def test_factory_receives_container(self) -> None:
        c = Container()
        c.set("greeting", "hi")
        c.factory("shout", lambda container: container.get("greeting").upper())
        assert c.get("shout") == "HI"

    def test_factory_not_shared_by_default(self) -> None:
        c = Container()
        c.factory("obj", lambda _: object())
        assert c.get("obj") is not c.get("obj")

    def test_shared_factory(self) -> None:
        c = Container()
        calls: list[int] = []

        def build(_: Container) -> object:
            calls.append(1)
            return object()

        c.factory("obj", build, shared=True)
        assert c.get("obj") is c.get("obj")
        assert len(calls) == 1

    def test_shared_factory_built_once_across_threads(self) -> None:
        c = Container()
        calls: list[int] = []
        c.factory("obj", lambda _: calls.append(1) or object(), shared=True)

        results: list[object] = []
        threads = [threading.Thread(target=lambda: results.append(c.get("obj"))) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert len({id(r) for r in results}) == 1

    def test_factory_error_wrapped(self) -> None:
        c = Container()

        def broken(_: Container) -> object:
            raise RuntimeError("db down")

        c.factory("db", broken)
        with pytest.raises(ContainerError, match="db down") as exc_info:
            c.get("db")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_nested_not_found_not_rewrapped(self) -> None:
        c = Container()
        c.factory("users", lambda container: container.get("repo"))
        with pytest.raises(ServiceNotFound, match="'repo'"):
            c.get("users")

    def test_set_replaces_factory(self) -> None:
        c = Container()
        c.factory("x", lambda _: 1)
        c.set("x", 2)
        assert c.get("x") == 2
