"""
Unit tests for Connection reading/writing and the ThreadPool.
"""

import socket
import threading
import time

import pytest

from minihttp.core import Connection, ConnectionState, RequestTooLargeError, ThreadPool
from minihttp.core.connection import DRAIN_TIMEOUT


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    server_side.close()
    client_side.close()


def make_connection(sock, **kwargs) -> Connection:
    kwargs.setdefault("timeout", 2.0)
    return Connection(socket=sock, address=("127.0.0.1", 1234), **kwargs)


class TestConnectionRead:
    """Tests for Connection.read_request."""

    def test_reads_head_only(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        conn = make_connection(server_side)

        assert conn.read_request() == b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"
        assert conn.state is ConnectionState.PROCESSING

    def test_waits_for_content_length(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side, buffer_size=8)

        def send_in_pieces():
            client_side.sendall(b"POST /files/x HTTP/1.1\r\nContent-Length: 10\r\n")
            time.sleep(0.05)
            client_side.sendall(b"\r\n01234")
            time.sleep(0.05)
            client_side.sendall(b"56789")

        sender = threading.Thread(target=send_in_pieces)
        sender.start()
        data = conn.read_request()
        sender.join()

        assert data.endswith(b"\r\n\r\n0123456789")

    def test_binary_body_with_separator_inside(self, socket_pair):
        server_side, client_side = socket_pair
        body = b"\r\n\r\n\x00\xff"
        client_side.sendall(
            b"POST /files/x HTTP/1.1\r\nContent-Length: 6\r\n\r\n" + body
        )

        data = make_connection(server_side).read_request()
        assert data.partition(b"\r\n\r\n")[2] == body

    def test_eof_returns_partial(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"POST /files/x HTTP/1.1\r\nContent-Length: 100\r\n\r\nshort")
        client_side.shutdown(socket.SHUT_WR)

        data = make_connection(server_side).read_request()
        assert data.endswith(b"\r\n\r\nshort")

    def test_eof_before_head_end(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n")
        client_side.shutdown(socket.SHUT_WR)

        assert make_connection(server_side).read_request() == b"GET / HTTP/1.1\r\n"

    def test_nothing_sent(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.shutdown(socket.SHUT_WR)

        assert make_connection(server_side).read_request() is None

    def test_timeout_returns_partial(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n")

        conn = make_connection(server_side, timeout=0.2)
        assert conn.read_request() == b"GET / HTTP/1.1\r\n"

    @pytest.mark.parametrize("value", ["²", "٣", "-5", "1e3", " ", "9" * 5000])
    def test_unusable_content_length_reads_head_only(self, socket_pair, value):
        server_side, client_side = socket_pair
        raw = f"GET /echo/x HTTP/1.1\r\nContent-Length: {value}\r\n\r\n".encode()
        client_side.sendall(raw)

        assert make_connection(server_side).read_request() == raw

    def test_too_large(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET /" + b"a" * 5000)

        conn = make_connection(server_side, max_request_size=2048)

        with pytest.raises(RequestTooLargeError) as exc_info:
            conn.read_request()

        assert exc_info.value.limit == 2048
        assert exc_info.value.size > 2048


class TestConnectionWrite:
    """Tests for sending and closing."""

    def test_send_and_close(self, socket_pair):
        server_side, client_side = socket_pair

        with make_connection(server_side) as conn:
            assert conn.send_response(b"HTTP/1.1 200 OK\r\n\r\n")

        assert conn.state is ConnectionState.CLOSED
        assert client_side.recv(1024) == b"HTTP/1.1 200 OK\r\n\r\n"
        assert client_side.recv(1024) == b""

    def test_close_twice(self, socket_pair):
        server_side, _ = socket_pair
        conn = make_connection(server_side)

        conn.close()
        conn.close()

        assert conn.state is ConnectionState.CLOSED

    def test_drain_stops_at_deadline(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        stop = threading.Event()

        def trickle():
            try:
                while not stop.is_set():
                    client_side.send(b"x")
                    time.sleep(0.05)
            except OSError:
                pass

        sender = threading.Thread(target=trickle)
        sender.start()
        try:
            started = time.monotonic()
            conn.close()
            elapsed = time.monotonic() - started
        finally:
            stop.set()
            sender.join()

        assert conn.state is ConnectionState.CLOSED
        assert elapsed < DRAIN_TIMEOUT + 0.5

    def test_close_without_drain(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        client_side.sendall(b"unread request bytes")

        started = time.monotonic()
        conn.close(drain=False)

        assert time.monotonic() - started < DRAIN_TIMEOUT / 2
        assert conn.state is ConnectionState.CLOSED
        assert client_side.recv(1024) == b""


class TestThreadPool:
    """Tests for ThreadPool."""

    def test_runs_tasks(self):
        pool = ThreadPool(min_workers=2, max_workers=2, queue_size=10)
        pool.start()
        done = threading.Event()

        try:
            assert pool.submit(done.set)
            assert done.wait(2.0)
            assert pool.worker_count == 2
        finally:
            pool.shutdown(wait=True, timeout=2.0)

        assert pool.worker_count == 0

    def test_submit_before_start(self):
        with pytest.raises(RuntimeError):
            ThreadPool().submit(lambda: None)

    def test_full_queue_rejects_without_blocking(self):
        pool = ThreadPool(min_workers=1, max_workers=1, queue_size=1)
        pool.start()
        release = threading.Event()
        started = threading.Event()

        def blocker():
            started.set()
            release.wait(5.0)

        try:
            assert pool.submit(blocker)
            assert started.wait(2.0)
            assert pool.submit(lambda: None, block=False)
            assert not pool.submit(lambda: None, block=False)
        finally:
            release.set()
            pool.shutdown(wait=True, timeout=2.0)

    def test_scales_up_when_busy(self):
        pool = ThreadPool(min_workers=1, max_workers=3, queue_size=10)
        pool.start()
        release = threading.Event()
        started = threading.Event()

        def blocker():
            started.set()
            release.wait(5.0)

        try:
            pool.submit(blocker)
            assert started.wait(2.0)
            pool.submit(blocker)

            assert pool.worker_count == 2
        finally:
            release.set()
            pool.shutdown(wait=True, timeout=2.0)

    def test_failing_task_does_not_kill_worker(self):
        pool = ThreadPool(min_workers=1, max_workers=1, queue_size=10)
        pool.start()
        done = threading.Event()

        def boom():
            raise RuntimeError("task failed")

        try:
            pool.submit(boom)
            pool.submit(done.set)
            assert done.wait(2.0)
        finally:
            pool.shutdown(wait=True, timeout=2.0)
