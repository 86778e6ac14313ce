"""
HTTP protocol layer: request parsing, responses, status codes, routing.
"""

from .status_codes import HTTPStatus
from .request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    ConnectionClosed,
    parse_content_length,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    created,
    bad_request,
    not_found,
    method_not_allowed,
    conflict,
    upgrade_required,
    internal_error,
)
from .router import Router, Route, Handler

__all__ = [
    "HTTPStatus",
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "ConnectionClosed",
    "parse_content_length",
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "conflict",
    "upgrade_required",
    "internal_error",
    "Router",
    "Route",
    "Handler",
]
