"""
pytest configuration and fixtures.
"""

import http.client
import socket
import threading
from pathlib import Path
from typing import Generator, Optional

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /data HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a JSON body."""
    body = b'{"key1":"value1"}'
    return (
        b"POST /data HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        b"Content-Length: %d\r\n"
        b"\r\n"
    ) % len(body) + body


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    """Empty working directory for file operations."""
    root = tmp_path / "root"
    root.mkdir()
    return root


class RunningServer:
    """FileServer running in a background thread."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, method: str, path: str, body: Optional[bytes] = None):
        """Send one request, return (status, body)."""
        conn = http.client.HTTPConnection("127.0.0.1", self.port, timeout=10)
        try:
            conn.request(method, path, body=body)
            response = conn.getresponse()
            return response.status, response.read()
        finally:
            conn.close()

    def send_raw(self, data: bytes) -> bytes:
        """Send raw bytes, return everything received until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=10) as sock:
            sock.sendall(data)
            received = b""
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    return received
                received += chunk


def start_server(root: Path, handler=None, **overrides) -> RunningServer:
    """Build a FileServer on an ephemeral port and start it."""
    options = dict(
        host="127.0.0.1",
        port=0,
        root_dir=str(root),
        min_workers=2,
        log_level="WARNING",
    )
    options.update(overrides)
    running = RunningServer(FileServer(ServerConfig(**options), handler=handler))
    running.start()
    return running


@pytest.fixture
def server_factory(root_dir: Path):
    """Start file servers over root_dir with custom handlers or config."""
    started: list[RunningServer] = []

    def factory(handler=None, **overrides) -> RunningServer:
        running = start_server(root_dir, handler=handler, **overrides)
        started.append(running)
        return running

    yield factory

    for running in started:
        running.stop()


@pytest.fixture
def file_server(server_factory) -> Generator[RunningServer, None, None]:
    """A running file server over root_dir."""
    yield server_factory()
