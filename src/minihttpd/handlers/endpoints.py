"""
Small stateless endpoints: root, echo, user-agent.
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok


ECHO_PREFIX = "/echo/"


def root(request: HTTPRequest) -> HTTPResponse:
    """GET / → 200 with an empty body."""
    return ok()


def echo(request: HTTPRequest) -> HTTPResponse:
    """
    GET /echo/<text> → <text> as the body.

    The suffix is returned byte-for-byte: no URL-decoding, and slashes
    after the prefix are part of it ("/echo/a/b" → "a/b").
    """
    return ok(request.path[len(ECHO_PREFIX):])


def user_agent(request: HTTPRequest) -> HTTPResponse:
    """GET /user-agent → the User-Agent header value (empty if missing)."""
    return ok(request.user_agent)
