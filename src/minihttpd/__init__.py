"""
=============================================================================
MINIHTTPD - A Small HTTP/1.1 Server on Raw Sockets
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          ENDPOINTS                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   GET  /               200, empty body                              │
    │   GET  /echo/{text}    200, body = text (gzip if accepted)          │
    │   GET  /user-agent     200, body = User-Agent header                │
    │   GET  /files/{name}   200 file bytes, 404 if missing               │
    │   POST /files/{name}   201 created, 409 if it already exists        │
    │   *                    404                                          │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE LAYOUT
=============================================================================

    minihttpd/
    ├── server.py            # HTTPServer: connection loop, pipeline assembly
    ├── config.py            # ServerConfig
    ├── core/
    │   ├── connection.py    # Buffered socket reads, connection state
    │   ├── socket_server.py # Bind/listen/accept
    │   └── thread_pool.py   # Growing worker pool
    ├── http/
    │   ├── request.py       # HTTPRequest + RequestParser
    │   ├── response.py      # HTTPResponse + serialization helpers
    │   ├── router.py        # Exact and prefix routes
    │   └── status_codes.py  # HTTPStatus
    ├── middleware/
    │   ├── base.py          # Middleware, MiddlewarePipeline
    │   ├── validation.py    # Version and method checks
    │   ├── compression.py   # gzip
    │   └── routing.py       # Router dispatch
    └── handlers/
        ├── endpoints.py     # /, /echo/, /user-agent
        └── files.py         # /files/ upload and download

=============================================================================
QUICK START
=============================================================================

    from minihttpd import HTTPServer, ServerConfig

    HTTPServer(ServerConfig(port=4221, directory="/tmp/files")).run()

    # or from the shell
    python -m minihttpd --directory /tmp/files

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]
