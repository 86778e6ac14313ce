"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All process-wide settings in one immutable object. HTTPServer receives it
at construction and hands the pieces each component needs (bind address
to the listener, timeouts to connections, root directory to the file
handler). Nothing reads settings from module globals.

    ServerConfig(
        host="0.0.0.0",          # All interfaces
        port=4221,
        directory="/srv/files",  # Enables /files/
        log_level="DEBUG",
    )

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK      host, port, backlog, buffer_size, read_timeout
    LIMITS       max_line_size, max_body_size, max_header_count
    THREADING    min_workers, max_workers
    FILES        directory
    LOGGING      log_level, server_name

    =========================================================================
    """

    host: str = "0.0.0.0"
    port: int = 4221

    backlog: int = 128
    """Pending connections the kernel queues before refusing."""

    buffer_size: int = 8192
    """Bytes requested per recv()."""

    read_timeout: float = 5.0
    """Idle timeout for each socket read while waiting for a request."""

    max_line_size: int = 8192
    """Longest request line or header line accepted."""

    max_body_size: int = 10 * 1024 * 1024
    """Largest Content-Length accepted (10 MB)."""

    max_header_count: int = 100
    """Most header lines accepted in one request."""

    min_workers: int = 4
    max_workers: Optional[int] = None
    """
    Each open connection occupies one worker for its whole keep-alive
    lifetime. None lets the pool grow with the number of open
    connections; a number caps it, and connections past the cap wait
    in the queue until a worker frees.
    """

    directory: Optional[str] = None
    """Root for /files/. None disables the endpoint (400)."""

    log_level: str = "INFO"
    server_name: str = "minihttpd/1.0"

    def validate(self) -> None:
        """Fail fast on nonsensical values."""
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")
        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")
        if self.max_workers is not None and self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")
        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")
        if self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")
        if min(self.max_line_size, self.max_body_size, self.max_header_count) < 1:
            raise ValueError("size limits must be >= 1")
        if self.directory is not None and os.path.exists(self.directory) \
                and not os.path.isdir(self.directory):
            raise ValueError(f"Not a directory: {self.directory}")
