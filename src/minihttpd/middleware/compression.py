"""
=============================================================================
RESPONSE COMPRESSION MIDDLEWARE
=============================================================================

Gzip-compresses response bodies for clients that ask for it.

=============================================================================
CONTENT NEGOTIATION
=============================================================================

    Client                                   Server
      │                                        │
      │  GET /echo/abc                         │
      │  Accept-Encoding: deflate, gzip        │
      │ ─────────────────────────────────────► │
      │                                        │  body "abc" → gzip
      │  200 OK                                │
      │  Content-Encoding: gzip                │
      │  Content-Length: 23                    │
      │ ◄───────────────────────────────────── │

Accept-Encoding is a comma-separated token list. A token matches when,
trimmed and compared case-insensitively, it equals "gzip". Quality
values are not interpreted: "gzip;q=0" is a different token and does
not match.

=============================================================================
MIDDLEWARE POSITION
=============================================================================

Declared before routing, so it runs AFTER the handler has produced the
final body and BEFORE the connection loop serializes it:

    pipeline.use(
        HTTPVersionMiddleware(),
        MethodMiddleware(),
        CompressionMiddleware(),    ← sees the routed response
        RoutingMiddleware(router),
    )

Short-circuit responses from the version and method stages never reach
it, and their bodies are empty anyway.

=============================================================================
"""

import gzip
import logging
import zlib

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, internal_error


logger = logging.getLogger(__name__)


class CompressionMiddleware(Middleware):
    """
    Response compression middleware.

    Compresses whenever the client accepts gzip and the body is
    non-empty. Empty bodies are left alone: there is nothing to encode,
    and a Content-Encoding header on an empty body only confuses clients.
    """

    ENCODING = "gzip"

    def __init__(self, level: int = 6):
        """
        Args:
            level: gzip compression level, 1 (fastest) to 9 (smallest).
        """
        self.level = level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)

        if not response.body or not self.accepts_gzip(request.accept_encoding):
            return response

        try:
            compressed = gzip.compress(response.body, compresslevel=self.level)
        except (OSError, zlib.error) as e:
            logger.error(f"Error compressing response body: {e}")
            return internal_error()

        logger.debug(f"Compressed body {len(response.body)} -> {len(compressed)} bytes")
        response.body = compressed
        response.headers["Content-Encoding"] = self.ENCODING
        response.headers["Content-Length"] = str(len(compressed))

        # Caches must key on Accept-Encoding
        vary = response.headers.get("Vary", "")
        if "accept-encoding" not in vary.lower():
            response.headers["Vary"] = f"{vary}, Accept-Encoding".lstrip(", ")

        return response

    @classmethod
    def accepts_gzip(cls, accept_encoding: str) -> bool:
        """
        True if any Accept-Encoding token is "gzip".

            "gzip"              → True
            "deflate,  GZip "   → True
            "gzip;q=1.0"        → False
            "x-gzip"            → False
        """
        if not accept_encoding:
            return False
        tokens = (token.strip().lower() for token in accept_encoding.split(","))
        return cls.ENCODING in tokens
