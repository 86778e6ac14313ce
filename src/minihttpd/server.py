"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    SocketServer ──accept──► ThreadPool ──► _process_connection(conn)
                                                │
                        ┌───────────────────────┘
                        ▼
                 RequestParser.parse(conn)
                        │
                        ▼
                 MiddlewareChain
                   HTTPVersion → Method → Compression → Routing → 404
                        │
                        ▼
                 HTTPResponse.to_bytes() ──► conn.send_response()
                        │
                        └──► keep-alive? loop : close

=============================================================================
CONNECTION LOOP
=============================================================================

    READING ──► PROCESSING ──► WRITING ──┬──► READING   (keep-alive)
       │                                 └──► CLOSED    (Connection: close,
       │                                                  write failure)
       └──► CLOSED   (clean EOF, idle timeout, framing error)

A framing error closes the connection without sending a response.

=============================================================================
"""

import logging
import socket
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool
from .handlers import FileHandler, ECHO_PREFIX, root, echo, user_agent
from .http import (
    HTTPRequest, RequestParser, HTTPParseError, ConnectionClosed,
    HTTPResponse, Router, not_found, internal_error,
)
from .middleware import (
    MiddlewarePipeline, MiddlewareChain,
    HTTPVersionMiddleware, MethodMiddleware, CompressionMiddleware, RoutingMiddleware,
)


logger = logging.getLogger(__name__)


def not_found_handler(request: HTTPRequest) -> HTTPResponse:
    """Terminal handler: whatever reaches the end of the chain is a 404."""
    return not_found()


class HTTPServer:
    """
    HTTP/1.1 server with echo, user-agent and file endpoints.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(port=4221, directory="/tmp/files"))
        server.run()            # Blocks until SIGINT/SIGTERM or shutdown()

        # Without sockets:
        response = server.handle(HTTPRequest(method="GET", path="/echo/hi"))

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(
            max_line_size=self.config.max_line_size,
            max_body_size=self.config.max_body_size,
            max_header_count=self.config.max_header_count,
        )

        self._router = Router()
        self._files = FileHandler(self.config.directory)
        self._register_routes()
        self._handler = self._build_pipeline()

        self._running = False

    # =========================================================================
    # ASSEMBLY
    # =========================================================================

    def _register_routes(self):
        """Registration order is match precedence."""
        self._router.add_route("/", root, method="GET")
        self._router.add_route("/user-agent", user_agent, method="GET")
        self._router.add_route(ECHO_PREFIX, echo, method="GET", prefix=True)
        self._router.add_route(self._files.url_prefix, self._files.handle, prefix=True)

    def _build_pipeline(self) -> MiddlewareChain:
        """
        Stage order, outermost first. Compression is declared before
        routing so it post-processes the routed response.
        """
        return MiddlewarePipeline().use(
            HTTPVersionMiddleware(),
            MethodMiddleware(),
            CompressionMiddleware(),
            RoutingMiddleware(self._router),
        ).wrap(not_found_handler)

    @property
    def router(self) -> Router:
        return self._router

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run a request through the middleware chain.

        An exception escaping the chain is a server bug, not a client
        error: it is logged with its traceback and answered with 500.
        """
        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.path}: {e}")
            return internal_error()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self):
        """Start serving. Blocks until shutdown."""
        self._setup_logging()
        self._running = True
        self._thread_pool.start()

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        if self.config.directory:
            logger.info(f"Directory: {self.config.directory}")

        try:
            self._socket_server.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Safe from any thread."""
        self._socket_server.stop()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("minihttpd").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=self.config.read_timeout + 1.0)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection):
        """Hand an accepted connection to a worker thread."""
        self._thread_pool.submit(self._process_connection, conn)

    def _process_connection(self, conn: Connection):
        """
        Serve one connection until it closes (runs in a worker thread).

        Only exceptions of the connection's own making are caught here;
        anything else propagates to the worker, which logs it. The
        `with` block guarantees the socket is closed either way.
        """
        with conn:
            while self._running:
                try:
                    request = self._parser.parse(conn)
                except ConnectionClosed:
                    logger.debug(f"[{conn.id}] Client closed connection")
                    break
                except socket.timeout:
                    logger.debug(f"[{conn.id}] Idle timeout")
                    break
                except HTTPParseError as e:
                    logger.warning(f"[{conn.id}] Error parsing request: {e}")
                    break
                except OSError as e:
                    logger.warning(f"[{conn.id}] Read failed: {e}")
                    break

                conn.state = ConnectionState.PROCESSING
                response = self.handle(request)

                close = request.wants_close
                if close:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break

                logger.info(
                    f"[{conn.id}] {request.method} {request.path} {request.version} "
                    f"-> {response.status_line}"
                )

                if close:
                    break
