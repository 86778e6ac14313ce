"""
Routing as a pipeline stage.

The router sits inside the chain rather than at its end so that an
unmatched request simply falls through to whatever terminal handler
the pipeline was wrapped around (the 404 handler).
"""

import logging

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.router import Router


logger = logging.getLogger(__name__)


class RoutingMiddleware(Middleware):
    """Dispatch to the first matching route; otherwise delegate to next."""

    def __init__(self, router: Router):
        self.router = router

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        route = self.router.match(request.method, request.path)
        if route is None:
            logger.debug(f"No route for {request.method} {request.path}")
            return next(request)
        return route.handler(request)
