"""Tests for spindle.http.request — frozen Request with attribute bag."""

import pytest

from spindle.http.headers import Headers
from spindle.http.request import Request


class TestRequest:
    def test_defaults(self) -> None:
        req = Request("GET", "/")
        assert req.headers == Headers()
        assert req.query == ""
        assert req.body == b""
        assert dict(req.attributes) == {}

    def test_header_line(self) -> None:
        req = Request("GET", "/", Headers.from_mapping({"Origin": "https://a.com"}))
        assert req.header("origin") == "https://a.com"
        assert req.header("Authorization") == ""

    def test_frozen(self) -> None:
        req = Request("GET", "/")
        with pytest.raises(AttributeError):
            req.path = "/other"  # type: ignore[misc]

    def test_attributes_read_only(self) -> None:
        req = Request("GET", "/").with_attribute("user", "alice")
        with pytest.raises(TypeError):
            req.attributes["user"] = "bob"  # type: ignore[index]


class TestTransformations:
    def test_with_attribute_returns_new_request(self) -> None:
        original = Request("GET", "/")
        updated = original.with_attribute("user", "alice")
        assert updated.attribute("user") == "alice"
        assert original.attribute("user") is None

    def test_attribute_default(self) -> None:
        assert Request("GET", "/").attribute("missing", 0) == 0

    def test_with_attribute_keeps_existing(self) -> None:
        req = Request("GET", "/").with_attribute("a", 1).with_attribute("b", 2)
        assert dict(req.attributes) == {"a": 1, "b": 2}

    def test_with_header(self) -> None:
        req = Request("GET", "/").with_header("X-Trace", "1").with_header("x-trace", "2")
        assert req.headers.get_list("X-Trace") == ["2"]

    def test_with_path_and_method(self) -> None:
        req = Request("GET", "/a").with_path("/b").with_method("POST")
        assert (req.method, req.path) == ("POST", "/b")
