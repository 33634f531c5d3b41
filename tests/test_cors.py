"""Tests for spindle.middleware.cors — CORS policy decisions and headers."""

from spindle.http.headers import Headers
from spindle.http.request import Request
from spindle.http.response import Response
from spindle.middleware.cors import CORSConfig, CORSHandler


def _request(method: str = "GET", **headers: str) -> Request:
    pairs = tuple((name.replace("_", "-"), value) for name, value in headers.items())
    return Request(method, "/api/data", Headers(pairs))


def _header_names(response: Response) -> set[str]:
    return {name.lower() for name, _ in response.headers}


class TestShouldApply:
    def test_with_origin(self) -> None:
        assert CORSHandler().should_apply(_request(Origin="http://localhost:3000"))

    def test_without_origin(self) -> None:
        assert not CORSHandler().should_apply(_request())

    def test_empty_origin(self) -> None:
        assert not CORSHandler().should_apply(_request(Origin=""))


class TestDefaults:
    def test_config_defaults(self) -> None:
        cfg = CORSConfig()
        assert cfg.allow_origins == ("*",)
        assert cfg.allow_methods == ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
        assert cfg.allow_headers == ("Content-Type", "Authorization")
        assert cfg.allow_credentials is False
        assert cfg.max_age == 86400

    def test_wildcard_without_credentials(self) -> None:
        response = CORSHandler().add_headers(Response(), _request(Origin="http://x"))
        assert response.header("Access-Control-Allow-Origin") == "*"
        assert response.header("Access-Control-Allow-Credentials") is None
        # Wildcard should NOT include Vary header
        assert response.header("Vary") is None

    def test_wildcard_with_credentials_echoes_origin(self) -> None:
        handler = CORSHandler(CORSConfig(allow_credentials=True))
        response = handler.add_headers(Response(), _request(Origin="http://x"))
        assert response.header("Access-Control-Allow-Origin") == "http://x"
        assert response.header("Access-Control-Allow-Credentials") == "true"
        assert response.header("Vary") == "Origin"

    def test_vary_keeps_existing_values(self) -> None:
        handler = CORSHandler(CORSConfig(allow_credentials=True))
        original = Response().with_header("Vary", "Accept-Encoding")
        response = handler.add_headers(original, _request(Origin="http://x"))
        assert response.header("Vary") == "Accept-Encoding, Origin"

    def test_vary_origin_not_duplicated(self) -> None:
        handler = CORSHandler(CORSConfig(allow_credentials=True))
        original = Response().with_header("Vary", "origin")
        response = handler.add_headers(original, _request(Origin="http://x"))
        assert response.header("Vary") == "origin"


class TestOriginAllowList:
    def test_listed_origin_echoed(self) -> None:
        handler = CORSHandler(CORSConfig(allow_origins=("http://localhost:3000",)))
        response = handler.add_headers(Response(), _request(Origin="http://localhost:3000"))
        assert response.header("Access-Control-Allow-Origin") == "http://localhost:3000"

    def test_unlisted_origin_unchanged(self) -> None:
        handler = CORSHandler(CORSConfig(allow_origins=("http://localhost:3000",)))
        original = Response(body="ok")
        response = handler.add_headers(original, _request(Origin="http://malicious.com"))
        assert response == original
        assert "access-control-allow-origin" not in _header_names(response)

    def test_no_origin_unchanged(self) -> None:
        original = Response()
        assert CORSHandler().add_headers(original, _request()) is original

    def test_second_origin_allowed(self) -> None:
        handler = CORSHandler(CORSConfig(allow_origins=("https://a.com", "https://b.com")))
        response = handler.add_headers(Response(), _request(Origin="https://b.com"))
        assert response.header("Access-Control-Allow-Origin") == "https://b.com"

    def test_expose_headers(self) -> None:
        handler = CORSHandler(CORSConfig(expose_headers=("X-Request-Id", "X-Rate-Limit")))
        response = handler.add_headers(Response(), _request(Origin="https://a.com"))
        assert response.header("Access-Control-Expose-Headers") == "X-Request-Id, X-Rate-Limit"


class TestPreflight:
    def test_both_request_headers(self) -> None:
        handler = CORSHandler(
            CORSConfig(allow_methods=("GET", "POST"), allow_headers=("X-Token",), max_age=600)
        )
        request = _request(
            "OPTIONS",
            Origin="https://a.com",
            Access_Control_Request_Method="POST",
            Access_Control_Request_Headers="X-Token, X-Other",
        )
        response = handler.add_headers(Response(), request)
        assert response.header("Access-Control-Allow-Methods") == "GET, POST"
        # Populated from config, not echoed from the request
        assert response.header("Access-Control-Allow-Headers") == "X-Token"
        assert response.header("Access-Control-Max-Age") == "600"

    def test_missing_request_method_header(self) -> None:
        request = _request(
            "OPTIONS", Origin="https://a.com", Access_Control_Request_Headers="Content-Type"
        )
        response = CORSHandler().add_headers(Response(), request)
        assert response.header("Access-Control-Allow-Methods") is None
        assert response.header("Access-Control-Allow-Headers") == "Content-Type, Authorization"

    def test_missing_request_headers_header(self) -> None:
        request = _request("OPTIONS", Origin="https://a.com", Access_Control_Request_Method="PUT")
        response = CORSHandler().add_headers(Response(), request)
        assert response.header("Access-Control-Allow-Methods") is not None
        assert response.header("Access-Control-Allow-Headers") is None
        assert response.header("Access-Control-Max-Age") == "86400"

    def test_non_options_gets_no_preflight_headers(self) -> None:
        request = _request("POST", Origin="https://a.com", Access_Control_Request_Method="PUT")
        names = _header_names(CORSHandler().add_headers(Response(), request))
        assert "access-control-allow-methods" not in names
        assert "access-control-max-age" not in names

    def test_disallowed_origin_preflight_unchanged(self) -> None:
        handler = CORSHandler(CORSConfig(allow_origins=("https://a.com",)))
        request = _request("OPTIONS", Origin="https://evil.com", Access_Control_Request_Method="GET")
        assert handler.add_headers(Response(), request).headers == ()
