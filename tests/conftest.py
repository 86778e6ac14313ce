"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator, List, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttpd import HTTPServer, ServerConfig
from minihttpd.core import Connection


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /echo/abc HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept-Encoding: gzip\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a body."""
    body = b"hello world"
    return (
        b"POST /files/hello.txt HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Type: application/octet-stream\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def make_connection() -> Generator:
    """
    Build a Connection whose peer has already sent `data`.

    Uses socket.socketpair(), so reads go through real recv() calls.
    The peer's write side is shut down after sending unless
    `keep_open=True`, which makes a read past the data block until the
    connection's timeout.
    """
    sockets: List[socket.socket] = []

    def factory(data: bytes, keep_open: bool = False, buffer_size: int = 8192,
                timeout: float = 2.0) -> Tuple[Connection, socket.socket]:
        server_side, client_side = socket.socketpair()
        sockets.extend([server_side, client_side])
        client_side.sendall(data)
        if not keep_open:
            client_side.shutdown(socket.SHUT_WR)
        conn = Connection(
            socket=server_side,
            address=("127.0.0.1", 12345),
            buffer_size=buffer_size,
            timeout=timeout,
        )
        return conn, client_side

    yield factory

    for s in sockets:
        try:
            s.close()
        except OSError:
            pass


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    """Empty root directory for /files/."""
    root = tmp_path / "files"
    root.mkdir()
    return root


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer, port: int):
        self.server = server
        self.port = port
        self._thread: threading.Thread = None

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        # Wait for server to be ready
        for _ in range(50):  # 5 seconds max
            try:
                with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                    s.connect(("127.0.0.1", self.port))
                    return
            except ConnectionRefusedError:
                time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def connect(self) -> socket.socket:
        sock = socket.create_connection(("127.0.0.1", self.port), timeout=5.0)
        return sock

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def make_server(free_port: int, files_dir: Path) -> Generator:
    """
    Start servers on a free port with /files/ rooted at files_dir.

    Keyword arguments override the ServerConfig defaults used here.
    Every server started is stopped at teardown.
    """
    started: List[TestServer] = []

    def factory(**overrides) -> TestServer:
        settings = dict(
            host="127.0.0.1",
            port=free_port,
            min_workers=2,
            read_timeout=2.0,
            directory=str(files_dir),
            log_level="WARNING",
        )
        settings.update(overrides)
        test_srv = TestServer(HTTPServer(ServerConfig(**settings)), settings["port"])
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield factory

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def test_server(make_server) -> TestServer:
    """A running server with default test settings."""
    return make_server()
