"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Callable, Dict, Generator, List

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig


UNICODE_TEXT = "héllo wörld ✓\n"


@pytest.fixture
def served_root(tmp_path: Path) -> Path:
    """
    A small directory tree to serve.

        notes.txt        plain text
        unicode.txt      multi-byte UTF-8
        crlf.txt         CRLF line endings
        data.json
        app.js
        fake.png         text content, .png name
        binary.bin       not valid UTF-8
        docs/
            readme.txt
            nested/
        empty/
    """
    (tmp_path / "notes.txt").write_bytes(b"just some notes\n")
    (tmp_path / "unicode.txt").write_bytes(UNICODE_TEXT.encode("utf-8"))
    (tmp_path / "crlf.txt").write_bytes(b"line one\r\nline two\r\n")
    (tmp_path / "data.json").write_bytes(b'{"answer": 42}')
    (tmp_path / "app.js").write_bytes(b"console.log('hi');\n")
    (tmp_path / "fake.png").write_bytes(b"not really a png")
    (tmp_path / "binary.bin").write_bytes(b"\x89PNG\r\n\x1a\n\x00\xff\xfe")

    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "readme.txt").write_bytes(b"read me\n")
    (docs / "nested").mkdir()

    (tmp_path / "empty").mkdir()
    return tmp_path


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class ServerThread:
    """Runs a FileServer in a background thread."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self) -> "ServerThread":
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")
        return self

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, payload: bytes, **kwargs) -> bytes:
        return send_raw(self.port, payload, **kwargs)

    def get(self, path: str) -> "ParsedResponse":
        raw = self.request(f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode("utf-8"))
        return parse_response(raw)


@pytest.fixture
def start_server(served_root: Path) -> Generator[Callable[..., ServerThread], None, None]:
    """
    Factory fixture: start_server(**config_overrides) -> running ServerThread.

    Servers bind an OS-assigned port on loopback and serve ``served_root``.
    All of them are stopped at teardown.
    """
    started: List[ServerThread] = []

    def _start(**overrides) -> ServerThread:
        options = {"host": "127.0.0.1", "port": 0, "root": str(served_root), "timeout": 5.0}
        options.update(overrides)
        srv = ServerThread(FileServer(ServerConfig(**options))).start()
        started.append(srv)
        return srv

    yield _start

    for srv in started:
        srv.stop()


@pytest.fixture
def server(start_server) -> ServerThread:
    """A running server with the default (thread-per-connection) mode."""
    return start_server()


# =============================================================================
# RAW HTTP HELPERS
# =============================================================================

def send_raw(port: int, payload: bytes, half_close: bool = False, timeout: float = 5.0) -> bytes:
    """
    Send ``payload`` and read until the server closes the connection.

    With ``half_close`` the client shuts down its write side after sending,
    so a server blocked on recv() sees EOF.
    """
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        if payload:
            s.sendall(payload)
        if half_close:
            s.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class ParsedResponse:
    def __init__(self, status_line: str, headers: Dict[str, str], body: bytes):
        self.status_line = status_line
        self.headers = headers
        self.body = body

    @property
    def status(self) -> int:
        return int(self.status_line.split()[1])


def parse_response(raw: bytes) -> ParsedResponse:
    head, sep, body = raw.partition(b"\r\n\r\n")
    assert sep, f"no header terminator in {raw!r}"

    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return ParsedResponse(lines[0], headers, body)
