"""
=============================================================================
HTTP RESPONSE
=============================================================================

HTTPResponse is the structure every handler returns and every middleware
stage may rewrite. to_bytes() is the response writer: the only place a
response becomes wire bytes.

=============================================================================
RESPONSE FORMAT
=============================================================================

    HTTP/1.1 200 OK\\r\\n                      ← Status line
    Content-Type: text/plain\\r\\n             ← Headers (any order)
    Content-Length: 3\\r\\n
    \\r\\n                                     ← Blank line
    abc                                      ← Body

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

from .status_codes import HTTPStatus
from .request import WIRE_ENCODING


@dataclass
class HTTPResponse:
    """
    An HTTP response under construction.

    Mutable on purpose: the compression stage swaps the body and fixes
    Content-Length, and the connection loop adds `Connection: close`.
    Header names keep the case they were set with.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 201 Created"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def to_bytes(self, server_name: str = "minihttpd/1.0") -> bytes:
        """
        Serialize for socket.sendall().

        =====================================================================
        HEADERS ADDED HERE
        =====================================================================

            Content-Length  Always the exact body length. Any stale value
                            set upstream is overwritten, so the framing
                            cannot disagree with the body.
            Content-Type    text/plain when there is a body and no type.
            Date, Server    When absent.

        =====================================================================
        """
        headers = dict(self.headers)

        headers["Content-Length"] = str(len(self.body))
        if self.body and "Content-Type" not in headers:
            headers["Content-Type"] = "text/plain"
        headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        head = "\r\n".join(lines).encode(WIRE_ENCODING) + b"\r\n"
        return head + self.body


class ResponseBuilder:
    """
    Fluent builder for responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Content-Type", "application/octet-stream")
            .body(data)
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        if isinstance(body, str):
            body = body.encode(WIRE_ENCODING)
        self._body = body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Plain-text body."""
        self._headers["Content-Type"] = "text/plain"
        return self.body(text)

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an HTTP-date (RFC 7231).

    Example: "Mon, 19 Oct 2026 12:00:00 GMT"
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE CONSTRUCTORS
# =============================================================================
#
# Error responses carry no body: the status line is the whole message.
#
# =============================================================================

def ok(body: Union[str, bytes] = b"") -> HTTPResponse:
    """200 OK; a str body is sent as text/plain."""
    if isinstance(body, str):
        return ResponseBuilder().text(body).build()
    return ResponseBuilder().body(body).build()


def created() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.CREATED)


def bad_request() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.BAD_REQUEST)


def not_found() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.NOT_FOUND)


def method_not_allowed() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.METHOD_NOT_ALLOWED)


def conflict() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.CONFLICT)


def upgrade_required(version: str = "HTTP/1.1") -> HTTPResponse:
    """426 with the Upgrade header naming the protocol the client must use."""
    return HTTPResponse(
        status=HTTPStatus.UPGRADE_REQUIRED,
        headers={"Upgrade": version},
    )


def internal_error() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.INTERNAL_SERVER_ERROR)
