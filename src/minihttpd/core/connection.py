"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket with a buffered reader and
a writer suited to HTTP/1.1 framing.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

TCP only guarantees that bytes arrive in order and intact. It does not
preserve the boundaries of the writes the client made:

    Client sends:
        send(b"GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
        send(b"GET /echo/hi HTTP/1.1\\r\\n\\r\\n")

    Server might receive:
        recv() → b"GET / HTTP/1.1\\r\\nHo"
        recv() → b"st: x\\r\\n\\r\\nGET /echo/hi HTTP/1.1\\r\\n\\r\\n"

So the reader keeps a buffer. The parser asks for "one line" or "exactly
N bytes", and the connection pulls from the buffer, refilling it from the
socket only when it runs dry. Bytes belonging to the NEXT request on a
keep-alive connection stay in the buffer for the next parse.

    ┌───────────────┐   read_line()    ┌─────────────┐
    │ RequestParser │ ───────────────► │ Connection  │ ◄── recv() ── socket
    │               │   read_exact(n)  │   _buffer   │
    └───────────────┘ ───────────────► └─────────────┘

=============================================================================
TIMEOUTS
=============================================================================

Every recv() runs under the idle read timeout (5 seconds by default). A
client that goes quiet in the middle of a request, or between requests
on a keep-alive connection, gets disconnected. socket.timeout (an alias
of TimeoutError) propagates to the connection loop, which closes.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """
    Connection lifecycle states.

        NEW ──► READING ──► PROCESSING ──► WRITING ──┬──► READING (keep-alive)
                                                    └──► CLOSED
    """
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


class LineTooLong(ValueError):
    """A line exceeded the configured maximum before its terminator arrived."""


@dataclass
class Connection:
    """
    A client connection: buffered reads, whole-buffer writes, clean close.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used to tag log lines.
        state: Current ConnectionState.
        requests_handled: Requests fully answered on this connection.
        buffer_size: Bytes requested per recv().
        timeout: Idle timeout applied to every recv(), in seconds.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: float = 5.0

    _buffer: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self, limit: int = 8192) -> bytes:
        """
        Read one LF-terminated line, terminator included.

        CRLF lines come back with their "\\r\\n"; the caller strips it.

        Args:
            limit: Maximum line length in bytes.

        Returns:
            The line. If the peer closed first, whatever was buffered
            (possibly b"") without a terminator.

        Raises:
            LineTooLong: No terminator within `limit` bytes.
            socket.timeout: The idle timeout expired.
        """
        self.state = ConnectionState.READING
        scanned = 0
        while True:
            index = self._buffer.find(b"\n", scanned)
            if index > limit or (index < 0 and len(self._buffer) > limit):
                raise LineTooLong(f"Line exceeds {limit} bytes")
            if index >= 0:
                return self._take(index + 1)

            scanned = len(self._buffer)
            chunk = self._recv()
            if not chunk:
                return self._take(len(self._buffer))
            self._buffer += chunk

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly `size` bytes.

        Returns fewer bytes only when the peer closed the connection
        first; the caller decides whether that is fatal.
        """
        self.state = ConnectionState.READING
        while len(self._buffer) < size:
            chunk = self._recv()
            if not chunk:
                break
            self._buffer += chunk
        return self._take(min(size, len(self._buffer)))

    def _take(self, count: int) -> bytes:
        data = bytes(self._buffer[:count])
        del self._buffer[:count]
        return data

    def _recv(self) -> bytes:
        """
        Receive one chunk from the socket.

        A reset or broken pipe is reported as end-of-stream (b"").
        Timeouts are NOT swallowed here.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send a serialized response.

        sendall() loops until every byte is written. There is no write
        timeout beyond the socket's.

        Returns:
            True on success, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        self.requests_handled += 1
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once.

        shutdown(SHUT_WR) sends our FIN first so the client sees a clean
        end-of-stream after the last response, then the descriptor is
        released.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING
        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed after {self.requests_handled} "
            f"requests ({self.age:.2f}s)"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
