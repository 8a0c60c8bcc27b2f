"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps an accepted socket: reads exactly one request, writes exactly one
response, closes. There is no keep-alive.

=============================================================================
READING A REQUEST
=============================================================================

TCP hands over bytes in whatever chunks it likes, so the reader loops:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   recv() ──► buffer            until "\r\n\r\n" is in the buffer    │
    │      │                                                               │
    │      ▼                                                               │
    │   Content-Length in the head?                                        │
    │      ├── no  ──► done (whatever body bytes came along are kept)     │
    │      └── yes ──► recv() until that many body bytes are buffered     │
    │                                                                      │
    │   At every step: buffer > max_request_size → RequestTooLargeError  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

When the peer stops early (EOF) or goes quiet (timeout), whatever was
buffered is returned as is and the parser decides what it is worth. Only
a connection that closes or times out before sending a single byte
yields None.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..http.headers import HeaderCollection, RequestHeader
from ..http.request import HEAD_TERMINATOR, split_lines


logger = logging.getLogger(__name__)


DRAIN_TIMEOUT = 0.5


class RequestTooLargeError(ValueError):
    """The request grew past max_request_size before it was complete."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Request too large: {size} bytes (limit {limit})")
        self.size = size
        self.limit = limit


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One accepted client socket.

        with conn:
            raw = conn.read_request()
            if raw is not None:
                conn.send_response(response.to_bytes())
        # closed here

    Attributes:
        socket: The client socket.
        address: Client's (ip, port).
        id: Short identifier for log lines.
        state: Where in the read/process/write cycle the connection is.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 1024
    timeout: Optional[float] = 30.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one request.

        Returns:
            The request bytes (possibly incomplete if the peer stopped
            early), or None if nothing at all arrived.

        Raises:
            RequestTooLargeError: More than max_request_size bytes.
        """
        self.state = ConnectionState.READING

        try:
            while HEAD_TERMINATOR not in self._buffer:
                if not self._fill():
                    return self._take_partial()

            head, _, body = self._buffer.partition(HEAD_TERMINATOR)
            content_length = self._parse_content_length(head)

            while len(body) < content_length:
                if not self._fill():
                    logger.debug(
                        f"[{self.id}] Peer stopped after {len(body)} of "
                        f"{content_length} body bytes"
                    )
                    break
                body = self._buffer.partition(HEAD_TERMINATOR)[2]

        except socket.timeout:
            logger.debug(f"[{self.id}] Read timed out with {len(self._buffer)} bytes buffered")
            return self._take_partial()

        self.state = ConnectionState.PROCESSING
        data, self._buffer = self._buffer, b""
        return data

    def _fill(self) -> bool:
        """recv() once into the buffer. False on EOF."""
        chunk = self._recv()
        if not chunk:
            return False

        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLargeError(len(self._buffer), self.max_request_size)
        return True

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _take_partial(self) -> Optional[bytes]:
        data, self._buffer = self._buffer, b""
        if not data:
            return None
        self.state = ConnectionState.PROCESSING
        return data

    def _parse_content_length(self, head: bytes) -> int:
        """Declared body length, 0 if missing or not a non-negative number."""
        lines = split_lines(head.decode("utf-8", errors="replace"))
        headers = HeaderCollection.from_lines(lines[1:])
        value = headers.get(RequestHeader.CONTENT_LENGTH)
        # str.isdigit() also accepts "²" and other digits int() rejects
        if value is None or not (value.isascii() and value.isdigit()):
            return 0
        try:
            return int(value)
        except ValueError:
            # longer than sys.get_int_max_str_digits()
            return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Write the whole response.

        Returns:
            True if sent, False if the peer was already gone.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self, drain: bool = True) -> None:
        """
        Close gracefully: send FIN, drain what the peer still sends, close.

        Draining keeps unread request bytes from turning the close into a
        reset that could destroy the response in flight. It stops at EOF,
        after max_request_size bytes, or DRAIN_TIMEOUT seconds in total,
        whichever comes first. Pass drain=False to skip it.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        if drain:
            self._drain()

        self.socket.close()
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self) -> None:
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0
        try:
            while drained <= self.max_request_size:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(self.buffer_size)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # includes socket.timeout

        if drained:
            logger.debug(f"[{self.id}] Drained {drained} unread bytes")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
