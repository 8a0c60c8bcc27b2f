"""
Integration tests against a live server on a real socket.
"""

import os
import socket
import threading
import time


def post_file(name: str, body: bytes, content_type: str = "application/octet-stream") -> bytes:
    return (
        f"POST /files/{name} HTTP/1.1\r\n"
        f"Host: localhost:4221\r\n"
        f"Content-Type: {content_type}\r\n"
        f"Content-Length: {len(body)}\r\n"
        f"\r\n"
    ).encode() + body


class TestBasicRoutes:
    """Echo, user-agent and index over the wire."""

    def test_index(self, running_server):
        response = running_server.request(b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n")
        assert response == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_echo(self, running_server):
        response = running_server.request(b"GET /echo/abc HTTP/1.1\r\n\r\n")

        assert response == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"abc"
        )

    def test_echo_is_repeatable(self, running_server):
        responses = [
            running_server.request(b"GET /echo/same HTTP/1.1\r\n\r\n") for _ in range(5)
        ]

        assert responses[0] == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 4\r\n"
            b"\r\n"
            b"same"
        )
        assert len(set(responses)) == 1

    def test_unusable_content_length_still_answered(self, running_server):
        response = running_server.request(
            "GET /echo/x HTTP/1.1\r\nContent-Length: ²\r\n\r\n".encode()
        )
        assert response.endswith(b"Content-Length: 1\r\n\r\nx")

    def test_user_agent(self, running_server):
        response = running_server.request(
            b"GET /user-agent HTTP/1.1\r\nUser-Agent: curl/8.4.0\r\n\r\n"
        )
        assert response.endswith(b"Content-Length: 10\r\n\r\ncurl/8.4.0")

    def test_unknown_path(self, running_server):
        response = running_server.request(b"GET /missing HTTP/1.1\r\n\r\n")
        assert response == b"HTTP/1.1 404 Not Found\r\n\r\n"

    def test_http_1_0(self, running_server):
        response = running_server.request(b"GET / HTTP/1.0\r\n\r\n")

        assert response.startswith(b"HTTP/1.1 400 Bad Request\r\n")
        assert response.endswith(b"this server only supports HTTP version 1.1.")

    def test_garbage(self, running_server):
        response = running_server.request(b"hello there\r\n\r\n")
        assert response.startswith(b"HTTP/1.1 400 Bad Request\r\n")

    def test_client_that_keeps_writing_side_open(self, running_server):
        response = running_server.request(
            b"GET /echo/open HTTP/1.1\r\n\r\n", shutdown_write=False,
        )
        assert response.endswith(b"\r\n\r\nopen")

    def test_one_request_per_connection(self, running_server):
        with socket.create_connection(("127.0.0.1", running_server.port), timeout=5) as s:
            s.sendall(b"GET / HTTP/1.1\r\n\r\n")
            first = s.recv(4096)
            assert first == b"HTTP/1.1 200 OK\r\n\r\n"
            assert s.recv(4096) == b""


class TestFileRoutes:
    """File upload and download over the wire."""

    def test_post_then_get(self, running_server, storage_dir):
        body = bytes(range(256)) * 4

        created = running_server.request(post_file("blob.bin", body))
        assert created == b"HTTP/1.1 201 Created\r\n\r\n"

        with open(storage_dir + "blob.bin", "rb") as f:
            assert f.read() == body

        fetched = running_server.request(b"GET /files/blob.bin HTTP/1.1\r\n\r\n")
        assert fetched == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: application/octet-stream\r\n"
            b"Content-Length: 1024\r\n"
            b"\r\n"
        ) + body

    def test_second_post_conflicts(self, running_server, storage_dir):
        assert running_server.request(post_file("once", b"first")).startswith(
            b"HTTP/1.1 201 Created"
        )

        response = running_server.request(post_file("once", b"second"))

        assert response.startswith(b"HTTP/1.1 409 Conflict\r\n")
        assert response.endswith(b"file already exists.")
        with open(storage_dir + "once", "rb") as f:
            assert f.read() == b"first"

    def test_text_plain_rejected(self, running_server, storage_dir):
        response = running_server.request(post_file("note.txt", b"hi", "text/plain"))

        assert response.startswith(b"HTTP/1.1 400 Bad Request\r\n")
        assert response.endswith(b"unexpected content type")
        assert not os.path.exists(storage_dir + "note.txt")

    def test_get_missing(self, running_server):
        response = running_server.request(b"GET /files/nothing-here HTTP/1.1\r\n\r\n")
        assert response == b"HTTP/1.1 404 Not Found\r\n\r\n"

    def test_body_in_chunks(self, running_server, storage_dir):
        body = b"x" * 3000
        data = post_file("chunked.bin", body)

        with socket.create_connection(("127.0.0.1", running_server.port), timeout=5) as s:
            for i in range(0, len(data), 700):
                s.sendall(data[i:i + 700])
                time.sleep(0.01)
            response = s.recv(4096)

        assert response.startswith(b"HTTP/1.1 201 Created")
        with open(storage_dir + "chunked.bin", "rb") as f:
            assert f.read() == body

    def test_concurrent_writers_one_wins(self, running_server, storage_dir):
        results = []
        lock = threading.Lock()

        def writer(i):
            response = running_server.request(post_file("contested", f"writer-{i}".encode()))
            with lock:
                results.append(response.split(b"\r\n", 1)[0])

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert results.count(b"HTTP/1.1 201 Created") == 1
        assert results.count(b"HTTP/1.1 409 Conflict") == 7
        with open(storage_dir + "contested", "rb") as f:
            assert f.read().startswith(b"writer-")


class TestLimits:
    """Size limits and concurrency."""

    def test_oversize_request(self, server_factory, storage_dir):
        server = server_factory(buffer_size=1024, max_request_size=4096)

        response = server.request(post_file("big.bin", b"z" * 5000))

        assert response.startswith(b"HTTP/1.1 400 Bad Request\r\n")
        assert response.endswith(b"request too large")
        assert not os.path.exists(storage_dir + "big.bin")

    def test_many_clients(self, running_server):
        results = []
        lock = threading.Lock()

        def client(i):
            response = running_server.request(f"GET /echo/{i} HTTP/1.1\r\n\r\n".encode())
            with lock:
                results.append(response.rsplit(b"\r\n\r\n", 1)[1])

        threads = [threading.Thread(target=client, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sorted(results, key=int) == [str(i).encode() for i in range(20)]
