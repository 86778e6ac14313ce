"""
Unit tests for URL routing.
"""

import pytest

from minihttpd.http.request import HTTPRequest
from minihttpd.http.response import HTTPResponse, ok
from minihttpd.http.router import Router, Route


def make_handler(name: str):
    """Create a handler that answers with its own name."""
    def handler(request: HTTPRequest) -> HTTPResponse:
        return ok(name)
    return handler


class TestRoute:
    """Tests for Route.matches."""

    def test_exact_match(self):
        route = Route(path="/user-agent", method="GET", handler=make_handler("ua"))

        assert route.matches("GET", "/user-agent")
        assert not route.matches("GET", "/user-agent/")
        assert not route.matches("POST", "/user-agent")

    def test_prefix_match(self):
        route = Route(path="/echo/", method="GET", handler=make_handler("echo"), prefix=True)

        assert route.matches("GET", "/echo/")
        assert route.matches("GET", "/echo/a/b")
        assert not route.matches("GET", "/echo")

    def test_any_method(self):
        route = Route(path="/files/", method=None, handler=make_handler("files"), prefix=True)

        assert route.matches("GET", "/files/a")
        assert route.matches("DELETE", "/files/a")


class TestRouter:
    """Tests for Router."""

    def test_simple_route(self):
        router = Router()
        router.add_route("/", make_handler("root"), method="GET")

        route = router.match("GET", "/")

        assert route is not None
        assert route.handler(HTTPRequest("GET", "/")).body == b"root"

    def test_no_match(self):
        router = Router()
        router.add_route("/", make_handler("root"), method="GET")

        assert router.match("GET", "/missing") is None
        assert router.match("POST", "/") is None

    def test_prefix_route_matches_nested_path(self):
        router = Router()
        router.add_route("/echo/", make_handler("echo"), method="GET", prefix=True)

        assert router.match("GET", "/echo/abc/def").path == "/echo/"

    def test_first_match_wins(self):
        router = Router()
        router.add_route("/files/special", make_handler("special"))
        router.add_route("/files/", make_handler("files"), prefix=True)

        route = router.match("GET", "/files/special")

        assert route.path == "/files/special"
        assert router.match("GET", "/files/other").path == "/files/"

    def test_method_is_uppercased(self):
        router = Router()
        router.add_route("/", make_handler("root"), method="get")

        assert router.match("GET", "/") is not None

    def test_decorators(self):
        router = Router()

        @router.get("/")
        def index(request):
            return ok()

        @router.post("/upload/", prefix=True)
        def upload(request):
            return ok()

        assert len(router) == 2
        assert [r.method for r in router.routes] == ["GET", "POST"]
        assert router.match("POST", "/upload/x").handler is upload

    def test_routes_returns_copy(self):
        router = Router()
        router.add_route("/", make_handler("root"))

        router.routes.clear()

        assert len(router) == 1

    @pytest.mark.parametrize("path", ["/User-Agent", "/ECHO/x", "/user-agent?x=1"])
    def test_paths_match_literally(self, path: str):
        router = Router()
        router.add_route("/user-agent", make_handler("ua"), method="GET")
        router.add_route("/echo/", make_handler("echo"), method="GET", prefix=True)

        assert router.match("GET", path) is None
