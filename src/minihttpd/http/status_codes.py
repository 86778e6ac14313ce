"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can answer with, and their reason phrases.

A status line on the wire looks like:

    HTTP/1.1 404 Not Found
             ─── ─────────
              │      │
              │      └── Reason phrase (human readable)
              └───────── Status code (machine readable)

Only the codes the pipeline actually produces are listed here. The
reason phrases are the exact strings written on the wire, which is why
405 reads "Not Allowed" rather than the RFC's "Method Not Allowed".

    2xx Success       200 OK, 201 Created
    4xx Client error  400, 404, 405, 409, 426
    5xx Server error  500

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.CONFLICT == 409
        True
        >>> HTTPStatus.CONFLICT.phrase
        'Conflict'
    """

    OK = 200                        # Request succeeded
    CREATED = 201                   # Upload stored a new file

    BAD_REQUEST = 400               # Bad path, missing body, no root directory
    NOT_FOUND = 404                 # No route, or file missing
    METHOD_NOT_ALLOWED = 405        # Method other than GET/POST
    CONFLICT = 409                  # Upload target already exists
    UPGRADE_REQUIRED = 426          # Version other than HTTP/1.1

    INTERNAL_SERVER_ERROR = 500     # Filesystem or compression failure

    @property
    def phrase(self) -> str:
        """Reason phrase written after the code in the status line."""
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Not Allowed",
    HTTPStatus.CONFLICT: "Conflict",
    HTTPStatus.UPGRADE_REQUIRED: "Upgrade Required",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
