"""Tests for spindle.middleware — descriptor normalization and function middleware."""

import pytest

from spindle.container import Container
from spindle.errors import ConfigurationError, ServiceNotFound
from spindle.http.request import Request
from spindle.http.response import Response
from spindle.middleware import FunctionMiddleware, Middleware, middleware, normalize_middleware


class Passthrough:
    async def process(self, request, next):
        return await next()


class WithResolver:
    def __init__(self, resolver) -> None:
        self.resolver = resolver

    async def process(self, request, next):
        return await next()


class TestNormalize:
    def test_instance_used_as_is(self) -> None:
        mw = Passthrough()
        assert normalize_middleware(mw, None) is mw

    def test_identifier_resolved(self) -> None:
        mw = Passthrough()
        container = Container()
        container.set("passthrough", mw)
        assert normalize_middleware("passthrough", container) is mw

    def test_factory_called_with_resolver(self) -> None:
        container = Container()
        result = normalize_middleware(lambda resolver: WithResolver(resolver), container)
        assert isinstance(result, WithResolver)
        assert result.resolver is container

    def test_class_treated_as_factory(self) -> None:
        container = Container()
        result = normalize_middleware(WithResolver, container)
        assert isinstance(result, WithResolver)
        assert result.resolver is container

    def test_identifier_resolving_to_non_middleware(self) -> None:
        container = Container()
        container.set("config", {"debug": True})
        with pytest.raises(ConfigurationError, match="no process"):
            normalize_middleware("config", container)

    def test_factory_returning_non_middleware(self) -> None:
        with pytest.raises(ConfigurationError):
            normalize_middleware(lambda resolver: object(), Container())

    def test_plain_object_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            normalize_middleware(42, Container())

    def test_non_callable_process_rejected(self) -> None:
        class Broken:
            process = "nope"

        with pytest.raises(ConfigurationError):
            normalize_middleware(Broken(), Container())

    def test_resolver_error_propagates(self) -> None:
        with pytest.raises(ServiceNotFound):
            normalize_middleware("missing", Container())

    def test_identifier_without_resolver(self) -> None:
        with pytest.raises(ConfigurationError, match="no resolver"):
            normalize_middleware("auth", None)

    def test_protocol_check(self) -> None:
        assert isinstance(Passthrough(), Middleware)

    def test_bare_async_function_rejected(self) -> None:
        async def timing(request, next):
            return await next()

        with pytest.raises(ConfigurationError, match="@middleware"):
            normalize_middleware(timing, Container())


class TestFunctionMiddleware:
    def test_decorator_wraps(self) -> None:
        @middleware
        async def timing(request, next):
            return await next()

        assert isinstance(timing, FunctionMiddleware)
        assert normalize_middleware(timing, None) is timing
        assert "timing" in repr(timing)

    @pytest.mark.anyio
    async def test_process_calls_function(self) -> None:
        @middleware
        async def tag(request, next):
            response = await next()
            return response.with_header("X-Tag", request.path)

        async def next(req=None):
            return Response()

        response = await tag.process(Request("GET", "/tagged"), next)
        assert response.header("X-Tag") == "/tagged"

    @pytest.mark.anyio
    async def test_sync_function(self) -> None:
        @middleware
        def deny(request, next):
            return Response(status=401)

        async def next(req=None):
            return Response()

        response = await deny.process(Request("GET", "/"), next)
        assert response.status == 401
