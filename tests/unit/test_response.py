"""
Unit tests for HTTP response building.
"""

import pytest

from minihttp.http.headers import ContentType, ResponseHeader
from minihttp.http.response import (
    HTTPResponse,
    ResponseBuilder,
    bad_request,
    conflict,
    created,
    internal_error,
    not_found,
    ok,
    ok_binary,
)
from minihttp.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.NOT_FOUND).status_line == "HTTP/1.1 404 Not Found"

    def test_default_response_framing(self):
        assert HTTPResponse().to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_no_automatic_headers(self):
        response = HTTPResponse(body=b"raw")
        assert response.to_bytes() == b"HTTP/1.1 200 OK\r\n\r\nraw"

    def test_headers_in_insertion_order(self):
        response = HTTPResponse(
            status=HTTPStatus.CREATED,
            headers=[
                (ResponseHeader.CONTENT_LENGTH, "0"),
                (ResponseHeader.CONTENT_TYPE, "text/plain"),
            ],
        )

        assert response.to_bytes() == (
            b"HTTP/1.1 201 Created\r\n"
            b"Content-Length: 0\r\n"
            b"Content-Type: text/plain\r\n"
            b"\r\n"
        )

    def test_get_header(self):
        response = ok("abc")

        assert response.get_header(ResponseHeader.CONTENT_LENGTH) == "3"
        assert HTTPResponse().get_header(ResponseHeader.CONTENT_TYPE) is None


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_text_body(self):
        data = ResponseBuilder().text("abc").to_bytes()

        assert data == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"abc"
        )

    def test_text_length_is_utf8_byte_length(self):
        response = ResponseBuilder().text("héllo ☃").build()

        assert response.body == "héllo ☃".encode("utf-8")
        assert response.get_header(ResponseHeader.CONTENT_LENGTH) == "10"

    def test_text_content_type_override(self):
        response = ResponseBuilder().text("x", ContentType.parse("text/csv")).build()
        assert response.get_header(ResponseHeader.CONTENT_TYPE) == "text/csv"

    def test_binary_body_written_raw(self):
        payload = b"\x00\xff\r\n\r\n\x01"
        data = ResponseBuilder().binary(payload, ContentType.OCTET_STREAM).to_bytes()

        assert data == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: application/octet-stream\r\n"
            b"Content-Length: 7\r\n"
            b"\r\n"
        ) + payload

    def test_binary_defaults_to_text_plain(self):
        response = ResponseBuilder().binary(b"x").build()
        assert response.get_header(ResponseHeader.CONTENT_TYPE) == "text/plain"

    def test_status(self):
        response = ResponseBuilder().status(HTTPStatus.CONFLICT).build()

        assert response.status is HTTPStatus.CONFLICT
        assert response.to_bytes() == b"HTTP/1.1 409 Conflict\r\n\r\n"

    def test_build_copies_headers(self):
        builder = ResponseBuilder().text("a")
        first = builder.build()
        builder.header(ResponseHeader.CONTENT_TYPE, "extra")

        assert len(first.headers) == 2


class TestConvenienceFunctions:
    """Tests for response convenience functions."""

    def test_ok_bare(self):
        assert ok().to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_ok_text(self):
        response = ok("abc/def")

        assert response.status is HTTPStatus.OK
        assert response.body == b"abc/def"
        assert response.get_header(ResponseHeader.CONTENT_LENGTH) == "7"

    def test_ok_empty_text_still_has_headers(self):
        assert ok("").to_bytes() == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 0\r\n"
            b"\r\n"
        )

    def test_ok_binary(self):
        response = ok_binary(b"\x01\x02")

        assert response.get_header(ResponseHeader.CONTENT_TYPE) == "application/octet-stream"
        assert response.body == b"\x01\x02"

    def test_created(self):
        assert created().to_bytes() == b"HTTP/1.1 201 Created\r\n\r\n"

    def test_not_found_bare(self):
        assert not_found().to_bytes() == b"HTTP/1.1 404 Not Found\r\n\r\n"

    @pytest.mark.parametrize("factory,status", [
        (bad_request, HTTPStatus.BAD_REQUEST),
        (not_found, HTTPStatus.NOT_FOUND),
        (conflict, HTTPStatus.CONFLICT),
        (internal_error, HTTPStatus.INTERNAL_SERVER_ERROR),
    ])
    def test_error_with_message(self, factory, status):
        response = factory("went wrong")

        assert response.status is status
        assert response.body == b"went wrong"
        assert response.get_header(ResponseHeader.CONTENT_TYPE) == "text/plain"
        assert response.get_header(ResponseHeader.CONTENT_LENGTH) == "10"


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.CREATED.phrase == "Created"
        assert HTTPStatus.BAD_REQUEST.phrase == "Bad Request"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.CONFLICT.phrase == "Conflict"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"

    def test_closed_set(self):
        assert sorted(int(s) for s in HTTPStatus) == [200, 201, 400, 404, 409, 500]

    def test_status_categories(self):
        assert not HTTPStatus.OK.is_client_error
        assert not HTTPStatus.CREATED.is_server_error
        assert HTTPStatus.CONFLICT.is_client_error
        assert not HTTPStatus.CONFLICT.is_server_error
        assert HTTPStatus.INTERNAL_SERVER_ERROR.is_server_error
