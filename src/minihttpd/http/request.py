"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns bytes coming off a Connection into an immutable HTTPRequest.

=============================================================================
HTTP REQUEST FORMAT (RFC 7230)
=============================================================================

    GET /echo/abc HTTP/1.1\\r\\n          ← Request line
    Host: localhost:4221\\r\\n            ← Headers
    Accept-Encoding: gzip\\r\\n
    Content-Length: 5\\r\\n
    \\r\\n                                ← Blank line: end of headers
    hello                               ← Body (exactly Content-Length bytes)

=============================================================================
FRAMING RULES
=============================================================================

    ┌──────────────────────────────────────────────────────────────────┐
    │ Condition                                  │ Outcome             │
    ├──────────────────────────────────────────────────────────────────┤
    │ EOF before a complete request line         │ ConnectionClosed    │
    │ Request line not exactly 3 tokens          │ HTTPParseError      │
    │ EOF inside the header block                │ HTTPParseError      │
    │ Header line without a colon                │ logged, skipped     │
    │ Content-Length > 0, body cut short         │ HTTPParseError      │
    │ Line or body over the configured limit     │ HTTPParseError      │
    │ More header lines than max_header_count    │ HTTPParseError      │
    └──────────────────────────────────────────────────────────────────┘

HTTPParseError is fatal for the connection: once framing is lost there
is no way to find where the next request starts, so the caller closes
without answering.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
import logging
import re

from ..core.connection import Connection, LineTooLong


logger = logging.getLogger(__name__)

# Request-line and header bytes are decoded as ISO-8859-1: every byte maps
# to exactly one character, so paths and header values round-trip unchanged.
WIRE_ENCODING = "iso-8859-1"

_CONTENT_LENGTH_PATTERN = re.compile(r"\+?[0-9]+")


class HTTPParseError(Exception):
    """The request stream is malformed; the connection cannot continue."""


class ConnectionClosed(Exception):
    """The peer closed the connection before sending a new request line."""


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:   Request method exactly as sent ("GET", "POST", ...)
        path:     Raw request-target, NOT URL-decoded ("/echo/a%20b")
        version:  Protocol version token ("HTTP/1.1")
        headers:  Lower-cased names → trimmed values, last one wins
        body:     Body bytes when Content-Length > 0, else None

    Frozen: handlers receive it read-only. The middleware chain rewrites
    the response, never the request.

    =========================================================================
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def accept_encoding(self) -> str:
        return self.headers.get("accept-encoding", "")

    @property
    def content_length(self) -> int:
        """Declared body length; 0 when missing or not a positive integer."""
        return parse_content_length(self.headers.get("content-length", ""))

    @property
    def wants_close(self) -> bool:
        """True when the client sent `Connection: close`."""
        return self.headers.get("connection", "").strip().lower() == "close"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


def parse_content_length(value: str) -> int:
    """
    Interpret a Content-Length value.

    Only an optional "+" followed by decimal digits counts. Anything else
    (empty, negative, "abc", "1_000") means "no body".
    """
    value = value.strip()
    if not _CONTENT_LENGTH_PATTERN.fullmatch(value):
        return 0
    return int(value)


class RequestParser:
    """
    Reads one request at a time from a Connection.

        parser = RequestParser()
        while True:
            request = parser.parse(conn)   # ConnectionClosed ends the loop
            ...

    The parser is stateless between calls, so one instance is shared by
    every connection the server handles.
    """

    def __init__(
        self,
        max_line_size: int = 8192,
        max_body_size: int = 10 * 1024 * 1024,
        max_header_count: int = 100,
    ):
        """
        Args:
            max_line_size: Longest request line or header line accepted.
            max_body_size: Largest Content-Length accepted.
            max_header_count: Most header lines accepted per request,
                              malformed ones included.
        """
        self.max_line_size = max_line_size
        self.max_body_size = max_body_size
        self.max_header_count = max_header_count

    def parse(self, conn: Connection) -> HTTPRequest:
        """
        Parse the next request from the connection.

        Raises:
            ConnectionClosed: End-of-stream before a request line.
            HTTPParseError: Any framing violation.
            socket.timeout: The connection's idle timeout expired.
        """
        method, path, version = self._read_request_line(conn)
        headers = self._read_headers(conn)

        body = None
        content_length = parse_content_length(headers.get("content-length", ""))
        if content_length > 0:
            if content_length > self.max_body_size:
                raise HTTPParseError(
                    f"Body too large: {content_length} bytes "
                    f"(limit {self.max_body_size})"
                )
            body = conn.read_exact(content_length)
            if len(body) < content_length:
                raise HTTPParseError(
                    f"Incomplete body: expected {content_length} bytes, "
                    f"got {len(body)}"
                )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body,
        )

    def _read_line(self, conn: Connection) -> bytes:
        try:
            return conn.read_line(self.max_line_size)
        except LineTooLong as e:
            raise HTTPParseError(str(e)) from e

    def _read_request_line(self, conn: Connection) -> tuple[str, str, str]:
        """
        Read the request line, skipping blank lines in front of it.

            "GET /echo/abc HTTP/1.1"
             ─┬─ ────┬──── ───┬────
              │      │        └── version
              │      └─────────── path (request-target)
              └────────────────── method
        """
        while True:
            raw = self._read_line(conn)
            if not raw.endswith(b"\n"):
                # Peer closed before finishing a request line.
                raise ConnectionClosed()
            line = raw.decode(WIRE_ENCODING).strip()
            if line:
                break

        parts = line.split(" ")
        if len(parts) != 3:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, path, version = parts
        return method, path, version

    def _read_headers(self, conn: Connection) -> Dict[str, str]:
        """
        Read header lines up to the blank line.

            "Accept-Encoding:  gzip, br "  →  {"accept-encoding": "gzip, br"}
        """
        headers: Dict[str, str] = {}
        count = 0
        while True:
            raw = self._read_line(conn)
            if not raw.endswith(b"\n"):
                raise HTTPParseError("Connection closed while reading headers")

            line = raw.decode(WIRE_ENCODING).rstrip("\r\n")
            if not line:
                return headers

            count += 1
            if count > self.max_header_count:
                raise HTTPParseError(
                    f"Too many headers (limit {self.max_header_count})"
                )

            name, sep, value = line.partition(":")
            if not sep:
                logger.warning(f"Invalid header format: {line!r}")
                continue

            headers[name.strip().lower()] = value.strip()
