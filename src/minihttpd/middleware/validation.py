"""
Request validation stages: protocol version and method.

Both run before anything else and short-circuit on failure, so the
router and handlers only ever see HTTP/1.1 GET or POST requests.
"""

import logging
from typing import Iterable, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, upgrade_required, method_not_allowed


logger = logging.getLogger(__name__)


class HTTPVersionMiddleware(Middleware):
    """
    Reject any version other than the one supported.

        GET / HTTP/1.0  →  426 Upgrade Required
                           Upgrade: HTTP/1.1

    The check is an exact string comparison: "http/1.1" and "HTTP/2.0"
    are both rejected.
    """

    def __init__(self, version: str = "HTTP/1.1"):
        self.version = version

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        if request.version != self.version:
            logger.debug(f"Rejecting version {request.version!r}")
            return upgrade_required(self.version)
        return next(request)


class MethodMiddleware(Middleware):
    """Answer 405 for any method outside the allowed set (GET, POST)."""

    DEFAULT_METHODS = frozenset({"GET", "POST"})

    def __init__(self, allowed: Optional[Iterable[str]] = None):
        self.allowed = frozenset(allowed) if allowed is not None else self.DEFAULT_METHODS

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        if request.method not in self.allowed:
            return method_not_allowed()
        return next(request)
