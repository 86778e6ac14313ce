"""
=============================================================================
FILE UPLOAD / DOWNLOAD HANDLER
=============================================================================

Serves /files/<name> from a configured root directory.

    GET  /files/<name>   → file contents as an attachment
    POST /files/<name>   → store the request body as a new file

=============================================================================
FLOW
=============================================================================

    Request: POST /files/docs/a.txt   (body: b"hello")

    1. No root directory configured?             → 400
    2. Strip "/files/", normalize "docs/a.txt"
       Empty or still climbing out with ".."?    → 400
    3. Join under the root: <root>/docs/a.txt
    4. POST: no body?                            → 400
             mkdir -p <root>/docs  (fails)       → 500
             exclusive create: already exists?   → 409
             write                               → 201
       GET:  missing or a directory?             → 404
             read                                → 200 octet-stream
       else                                      → 405

=============================================================================
PATH SAFETY
=============================================================================

Normalization is purely lexical (posixpath.normpath), so it never
touches the filesystem before the path has been accepted:

    "a/./b"            → "a/b"          accepted
    "a/../b"           → "b"            accepted
    "../etc/passwd"    → "../etc/passwd" rejected
    "a/../../x"        → "../x"         rejected
    "/etc/passwd"      → "etc/passwd"   accepted, but under the root
    ""  or  "."        → rejected

Leading slashes are stripped after normalizing, so os.path.join() can
never be handed an absolute path that would discard the root.

=============================================================================
"""

import logging
import os
import posixpath
from typing import Optional

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse, ResponseBuilder, HTTPStatus,
    bad_request, not_found, method_not_allowed, conflict, created, internal_error,
)


logger = logging.getLogger(__name__)


class FileHandler:
    """
    Upload and download files under a root directory.

    Uploads never overwrite. The target is opened with exclusive-create
    ("xb"), so the existence check and the creation are one atomic step:
    two concurrent uploads to the same name yield one 201 and one 409.

    Usage:
        files = FileHandler("/srv/files")
        router.add_route("/files/", files.handle, prefix=True)
    """

    def __init__(self, root_dir: Optional[str], url_prefix: str = "/files/"):
        """
        Args:
            root_dir: Directory files live in. None disables the handler:
                      every request is answered with 400.
            url_prefix: Path prefix stripped to get the file name.
        """
        self.root_dir = os.path.abspath(root_dir) if root_dir else None
        self.url_prefix = url_prefix

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        if self.root_dir is None:
            logger.warning("Directory not specified for /files endpoint")
            return bad_request()

        full_path = self.resolve(request.path)
        if full_path is None:
            logger.warning(f"Invalid file path: {request.path!r}")
            return bad_request()

        if request.method == "POST":
            return self._upload(request, full_path)
        if request.method == "GET":
            return self._download(full_path)
        return method_not_allowed()

    def resolve(self, request_path: str) -> Optional[str]:
        """
        Map a request path to a filesystem path under the root.

        Returns:
            The absolute path, or None if the name is empty or escapes
            the root.
        """
        relative = request_path[len(self.url_prefix):]
        normalized = posixpath.normpath(relative).lstrip("/")

        if normalized in ("", "."):
            return None
        segments = normalized.split("/")
        if ".." in segments or "\x00" in normalized:
            return None

        return os.path.join(self.root_dir, *segments)

    # =========================================================================
    # UPLOAD
    # =========================================================================

    def _upload(self, request: HTTPRequest, full_path: str) -> HTTPResponse:
        if request.body is None:
            logger.warning("No request body provided for POST method")
            return bad_request()

        try:
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
        except OSError as e:
            logger.error(f"Error creating directory for {full_path}: {e}")
            return internal_error()

        try:
            target = open(full_path, "xb")
        except FileExistsError:
            logger.info(f"File already exists: {full_path}")
            return conflict()
        except OSError as e:
            logger.error(f"Error creating file {full_path}: {e}")
            return internal_error()

        try:
            with target:
                target.write(request.body)
        except OSError as e:
            logger.error(f"Error writing file {full_path}: {e}")
            self._discard(full_path)
            return internal_error()

        logger.debug(f"Stored {len(request.body)} bytes at {full_path}")
        return created()

    def _discard(self, path: str):
        """Remove a partially written upload."""
        try:
            os.remove(path)
        except OSError as e:
            logger.error(f"Error removing partial file {path}: {e}")

    # =========================================================================
    # DOWNLOAD
    # =========================================================================

    def _download(self, full_path: str) -> HTTPResponse:
        if not os.path.isfile(full_path):
            return not_found()

        try:
            with open(full_path, "rb") as f:
                content = f.read()
        except FileNotFoundError:
            return not_found()  # Removed since the isfile() check
        except OSError as e:
            logger.error(f"Error reading file {full_path}: {e}")
            return internal_error()

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Content-Type", "application/octet-stream")
            .header("Content-Disposition",
                    f"attachment; filename={os.path.basename(full_path)}")
            .body(content)
            .build())
