"""
Unit tests for the endpoint handlers.
"""

import os
import threading
from pathlib import Path

import pytest

from minihttpd.handlers import FileHandler, root, echo, user_agent
from minihttpd.http.request import HTTPRequest
from minihttpd.http.status_codes import HTTPStatus


def post(path: str, body: bytes = None) -> HTTPRequest:
    return HTTPRequest(method="POST", path=path, body=body)


def get(path: str, **headers) -> HTTPRequest:
    return HTTPRequest(method="GET", path=path, headers=headers)


class TestEndpoints:

    def test_root(self):
        response = root(get("/"))

        assert response.status == HTTPStatus.OK
        assert response.body == b""

    @pytest.mark.parametrize("path,body", [
        ("/echo/abc", b"abc"),
        ("/echo/", b""),
        ("/echo/a/b", b"a/b"),
        ("/echo/a%20b", b"a%20b"),
    ])
    def test_echo(self, path: str, body: bytes):
        response = echo(get(path))

        assert response.status == HTTPStatus.OK
        assert response.body == body

    def test_user_agent(self):
        response = user_agent(get("/user-agent", **{"user-agent": "foobar/1.2.3"}))

        assert response.body == b"foobar/1.2.3"
        assert response.headers["Content-Type"] == "text/plain"

    def test_user_agent_missing(self):
        assert user_agent(get("/user-agent")).body == b""


class TestFileHandlerResolve:
    """Mapping request paths onto the root directory."""

    @pytest.fixture
    def handler(self, files_dir: Path) -> FileHandler:
        return FileHandler(str(files_dir))

    def test_simple_name(self, handler: FileHandler, files_dir: Path):
        assert handler.resolve("/files/a.txt") == str(files_dir / "a.txt")

    def test_nested_name(self, handler: FileHandler, files_dir: Path):
        assert handler.resolve("/files/sub/dir/a.txt") == str(files_dir / "sub" / "dir" / "a.txt")

    def test_inner_dotdot_that_stays_inside(self, handler: FileHandler, files_dir: Path):
        assert handler.resolve("/files/sub/../a.txt") == str(files_dir / "a.txt")

    def test_leading_slashes_stay_under_root(self, handler: FileHandler, files_dir: Path):
        assert handler.resolve("/files//etc/passwd") == str(files_dir / "etc" / "passwd")

    @pytest.mark.parametrize("path", [
        "/files/",
        "/files/.",
        "/files/../etc/passwd",
        "/files/a/../../secret",
        "/files/..",
        "/files/a\x00b",
    ])
    def test_rejected(self, handler: FileHandler, path: str):
        assert handler.resolve(path) is None

    def test_double_dots_inside_a_name_are_allowed(self, handler: FileHandler, files_dir: Path):
        assert handler.resolve("/files/a..b") == str(files_dir / "a..b")


class TestFileHandler:
    """Upload and download."""

    @pytest.fixture
    def handler(self, files_dir: Path) -> FileHandler:
        return FileHandler(str(files_dir))

    def test_upload_creates_file(self, handler: FileHandler, files_dir: Path):
        response = handler.handle(post("/files/a.txt", b"hello"))

        assert response.status == HTTPStatus.CREATED
        assert response.body == b""
        assert (files_dir / "a.txt").read_bytes() == b"hello"

    def test_upload_creates_parent_directories(self, handler: FileHandler, files_dir: Path):
        response = handler.handle(post("/files/x/y/z.bin", b"\x00\xff"))

        assert response.status == HTTPStatus.CREATED
        assert (files_dir / "x" / "y" / "z.bin").read_bytes() == b"\x00\xff"

    def test_upload_existing_is_conflict(self, handler: FileHandler, files_dir: Path):
        (files_dir / "a.txt").write_bytes(b"original")

        response = handler.handle(post("/files/a.txt", b"new"))

        assert response.status == HTTPStatus.CONFLICT
        assert (files_dir / "a.txt").read_bytes() == b"original"

    def test_upload_twice(self, handler: FileHandler):
        first = handler.handle(post("/files/a.txt", b"one"))
        second = handler.handle(post("/files/a.txt", b"two"))

        assert first.status == HTTPStatus.CREATED
        assert second.status == HTTPStatus.CONFLICT

    def test_upload_without_body(self, handler: FileHandler, files_dir: Path):
        response = handler.handle(post("/files/a.txt"))

        assert response.status == HTTPStatus.BAD_REQUEST
        assert not (files_dir / "a.txt").exists()

    def test_upload_onto_directory_is_conflict(self, handler: FileHandler, files_dir: Path):
        (files_dir / "dir").mkdir()

        response = handler.handle(post("/files/dir", b"data"))

        assert response.status == HTTPStatus.CONFLICT

    def test_concurrent_uploads_single_winner(self, handler: FileHandler):
        results = []
        barrier = threading.Barrier(8)

        def upload(i: int):
            barrier.wait()
            results.append(handler.handle(post("/files/race.txt", f"{i}".encode())).status)

        threads = [threading.Thread(target=upload, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(HTTPStatus.CREATED) == 1
        assert results.count(HTTPStatus.CONFLICT) == 7

    def test_download(self, handler: FileHandler, files_dir: Path):
        (files_dir / "data.bin").write_bytes(b"\x00\x01binary")

        response = handler.handle(get("/files/data.bin"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"\x00\x01binary"
        assert response.headers["Content-Type"] == "application/octet-stream"
        assert response.headers["Content-Disposition"] == "attachment; filename=data.bin"

    def test_download_empty_file(self, handler: FileHandler, files_dir: Path):
        (files_dir / "empty").write_bytes(b"")

        response = handler.handle(get("/files/empty"))

        assert response.status == HTTPStatus.OK
        assert response.body == b""

    def test_download_missing(self, handler: FileHandler):
        assert handler.handle(get("/files/nope")).status == HTTPStatus.NOT_FOUND

    def test_download_directory_is_not_found(self, handler: FileHandler, files_dir: Path):
        (files_dir / "dir").mkdir()

        assert handler.handle(get("/files/dir")).status == HTTPStatus.NOT_FOUND

    def test_traversal_is_bad_request(self, handler: FileHandler, files_dir: Path):
        secret = files_dir.parent / "secret"
        secret.write_bytes(b"secret")

        response = handler.handle(get("/files/../secret"))

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.body == b""

    def test_traversal_upload_writes_nothing(self, handler: FileHandler, files_dir: Path):
        response = handler.handle(post("/files/../escaped", b"x"))

        assert response.status == HTTPStatus.BAD_REQUEST
        assert not (files_dir.parent / "escaped").exists()

    def test_other_method_not_allowed(self, handler: FileHandler):
        response = handler.handle(HTTPRequest(method="DELETE", path="/files/a"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED

    def test_no_root_directory(self):
        handler = FileHandler(None)

        assert handler.handle(get("/files/a")).status == HTTPStatus.BAD_REQUEST
        assert handler.handle(post("/files/a", b"x")).status == HTTPStatus.BAD_REQUEST

    @pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0,
                        reason="needs POSIX permissions and a non-root user")
    def test_unreadable_file_is_500(self, handler: FileHandler, files_dir: Path):
        target = files_dir / "locked"
        target.write_bytes(b"x")
        target.chmod(0)
        try:
            assert handler.handle(get("/files/locked")).status == HTTPStatus.INTERNAL_SERVER_ERROR
        finally:
            target.chmod(0o644)

    def test_write_failure_removes_partial_file(self, handler: FileHandler, files_dir: Path,
                                                monkeypatch):
        real_open = open

        class FailingWriter:
            def __init__(self, f):
                self._f = f

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                self._f.close()
                return False

            def write(self, data):
                raise OSError("disk full")

        def failing_open(path, mode="r", *args, **kwargs):
            f = real_open(path, mode, *args, **kwargs)
            return FailingWriter(f) if mode == "xb" else f

        monkeypatch.setattr("builtins.open", failing_open)
        response = handler.handle(post("/files/partial", b"data"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert not (files_dir / "partial").exists()
