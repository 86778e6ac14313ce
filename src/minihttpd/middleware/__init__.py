"""
=============================================================================
MIDDLEWARE PACKAGE
=============================================================================

Stages of the request pipeline, in the order the server chains them:

    HTTPVersionMiddleware   426 unless the request is HTTP/1.1
    MethodMiddleware        405 unless the method is GET or POST
    CompressionMiddleware   gzip the routed response when accepted
    RoutingMiddleware       dispatch to a handler, else fall through

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, MiddlewareChain, NextHandler
from .validation import HTTPVersionMiddleware, MethodMiddleware
from .compression import CompressionMiddleware
from .routing import RoutingMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "MiddlewareChain",
    "NextHandler",
    "HTTPVersionMiddleware",
    "MethodMiddleware",
    "CompressionMiddleware",
    "RoutingMiddleware",
]
