"""
pytest configuration and fixtures.
"""

import os
import socket
import threading
from dataclasses import replace
from typing import Callable, Generator, List, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttp import HTTPServer, ServerConfig, create_app


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /echo/abc/def HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"Connection: close\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a binary body."""
    body = b"\x00\x01hello\xff"
    return (
        b"POST /files/foo.bin HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Type: application/octet-stream\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


@pytest.fixture
def storage_dir(tmp_path: Path) -> str:
    """Storage root as the CLI would take it: with a trailing separator."""
    return str(tmp_path) + os.sep


@pytest.fixture
def config(storage_dir: str) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        directory=storage_dir,
        log_level="WARNING",
    )


@pytest.fixture
def app(config: ServerConfig) -> HTTPServer:
    """Server with the standard routes, never started."""
    return create_app(config)


def send_raw(port: int, data: bytes, shutdown_write: bool = True, timeout: float = 5.0) -> bytes:
    """Send `data` and read until the server closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        s.sendall(data)
        if shutdown_write:
            s.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


class RunningServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: HTTPServer):
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
            self._thread.join(timeout=10.0)

    def request(self, data: bytes, **kwargs) -> bytes:
        return send_raw(self.port, data, **kwargs)


@pytest.fixture
def running_server(app: HTTPServer) -> Generator[RunningServer, None, None]:
    """The standard app listening on a free port."""
    srv = RunningServer(app)
    srv.start()

    yield srv

    srv.stop()


@pytest.fixture
def server_factory(config: ServerConfig) -> Generator[Callable[..., RunningServer], None, None]:
    """Start standard apps with config overrides; all are stopped afterwards."""
    started: List[RunningServer] = []

    def factory(**overrides) -> RunningServer:
        srv = RunningServer(create_app(replace(config, **overrides)))
        srv.start()
        started.append(srv)
        return srv

    yield factory

    for srv in started:
        srv.stop()
