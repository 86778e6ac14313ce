"""
=============================================================================
SOCKET SERVER
=============================================================================

The listening socket and its accept loop.

    serve(on_connection)
        │
        ├──► _listen()              bind + listen, SO_REUSEADDR, TCP_NODELAY
        ├──► _stop_on_signals()     SIGINT/SIGTERM → stop()   (main thread)
        └──► accept() ──► Connection(sock, addr, timeouts) ──► on_connection

    stop()      sets the stop event; serve() returns within one poll
                interval and closes the listening socket on the way out

accept() is polled with a short timeout because a blocked accept() does
not wake up when another thread closes the socket.

=============================================================================
"""

import contextlib
import logging
import signal
import socket
import threading
from typing import Callable

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Accepts TCP connections and hands each one to a callback.

        listener = SocketServer(config)
        listener.serve(pool_submit)     # Returns after stop()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._stopped = threading.Event()

    def serve(self, on_connection: Callable[[Connection], None]):
        """
        Listen and dispatch connections until stop() is called.

        Raises:
            OSError: The address could not be bound.
        """
        self._stopped.clear()
        with self._listen() as listener, self._stop_on_signals():
            logger.info(f"Server listening on {self.config.host}:{self.config.port}")
            while not self._stopped.is_set():
                try:
                    client, address = listener.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    logger.error(f"Accept error: {e}")
                    break
                on_connection(self._wrap(client, address))
        logger.info("Socket server stopped")

    def stop(self):
        """Stop accepting. Safe from any thread, and to call twice."""
        if not self._stopped.is_set():
            logger.info("Stopping socket server...")
        self._stopped.set()

    def _listen(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            sock.close()
            raise
        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _wrap(self, client: socket.socket, address) -> Connection:
        conn = Connection(
            socket=client,
            address=address,
            buffer_size=self.config.buffer_size,
            timeout=self.config.read_timeout,
        )
        logger.debug(f"[{conn.id}] Accepted connection from {address[0]}:{address[1]}")
        return conn

    @contextlib.contextmanager
    def _stop_on_signals(self):
        """
        Route SIGINT/SIGTERM to stop() while serving.

        Python only installs signal handlers from the main thread, so a
        server running on any other thread is stopped by calling stop().
        """
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.stop()

        previous = {sig: signal.signal(sig, handler)
                    for sig in (signal.SIGINT, signal.SIGTERM)}
        try:
            yield
        finally:
            for sig, old in previous.items():
                signal.signal(sig, old)
