"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Serializes responses into the exact bytes written to the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │    Version  Code Phrase                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │  ┌─ HEADERS (zero or more) ───────────────────────────────────────┐ │
    │  │    Content-Type: text/plain\r\n                                │ │
    │  │    Content-Length: 3\r\n                                       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │    \r\n                                   ← always present          │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    abc                                                          │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Nothing is added behind the caller's back: no Date, no Server, no implicit
Content-Length. A response built with no headers and no body is exactly

    HTTP/1.1 200 OK\r\n\r\n

which is what "GET /" answers with.

=============================================================================
BODY MODES
=============================================================================

    text(str)       UTF-8 encoded, Content-Length = encoded byte length
    binary(bytes)   written raw, Content-Length = len(bytes)

Both set Content-Type (text/plain unless overridden) and Content-Length,
in that order.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .headers import ContentType, ResponseHeader
from .status_codes import HTTPStatus


HTTP_VERSION = "HTTP/1.1"
CRLF = "\r\n"


@dataclass
class HTTPResponse:
    """
    A response ready to be serialized.

    Headers are an ordered list so the wire order is exactly the order in
    which they were added.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: List[Tuple[ResponseHeader, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 404 Not Found"."""
        return f"{HTTP_VERSION} {self.status.value} {self.status.phrase}"

    def get_header(self, header: ResponseHeader) -> Optional[str]:
        for name, value in self.headers:
            if name is header:
                return value
        return None

    def to_bytes(self) -> bytes:
        """
        Serialize to wire format.

            HTTP/1.1 201 Created\\r\\n      ← status line
            Content-Type: ...\\r\\n         ← each header, in order
            \\r\\n                          ← separator
            <body>                         ← raw bytes
        """
        lines = [self.status_line]
        for header, value in self.headers:
            lines.append(header.line(value))

        head = CRLF.join(lines) + CRLF + CRLF
        return head.encode("utf-8") + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .binary(data, ContentType.OCTET_STREAM)
            .build())

    Each method returns `self` except build() and to_bytes().
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: List[Tuple[ResponseHeader, str]] = []
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, header: ResponseHeader, value: str) -> "ResponseBuilder":
        """Append a header line. Repeating a header appends another line."""
        self._headers.append((header, value))
        return self

    def text(
        self,
        text: str,
        content_type: Optional[ContentType] = None,
    ) -> "ResponseBuilder":
        """Set a text body; Content-Length is the UTF-8 byte length."""
        return self.binary(text.encode("utf-8"), content_type)

    def binary(
        self,
        data: bytes,
        content_type: Optional[ContentType] = None,
    ) -> "ResponseBuilder":
        """Set a raw body with Content-Type and Content-Length headers."""
        content_type = content_type or ContentType.TEXT_PLAIN
        self._body = bytes(data)
        self.header(ResponseHeader.CONTENT_TYPE, str(content_type))
        self.header(ResponseHeader.CONTENT_LENGTH, str(len(self._body)))
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=list(self._headers),
            body=self._body,
        )

    def to_bytes(self) -> bytes:
        return self.build().to_bytes()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One per status the server can produce. Error helpers take an optional
# message; with one, the response carries it as a text/plain body, without
# one, the response is bare framing.
#
# =============================================================================

def _respond(status: HTTPStatus, message: Optional[str] = None) -> HTTPResponse:
    builder = ResponseBuilder().status(status)
    if message is not None:
        builder.text(message)
    return builder.build()


def ok(
    body: Optional[str] = None,
    content_type: Optional[ContentType] = None,
) -> HTTPResponse:
    """
    200 OK. No argument gives the bare "HTTP/1.1 200 OK\\r\\n\\r\\n".
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if body is not None:
        builder.text(body, content_type)
    return builder.build()


def ok_binary(
    data: bytes,
    content_type: ContentType = ContentType.OCTET_STREAM,
) -> HTTPResponse:
    """200 OK carrying raw bytes, application/octet-stream by default."""
    return ResponseBuilder().status(HTTPStatus.OK).binary(data, content_type).build()


def created() -> HTTPResponse:
    """201 Created with an empty body."""
    return _respond(HTTPStatus.CREATED)


def bad_request(message: Optional[str] = None) -> HTTPResponse:
    return _respond(HTTPStatus.BAD_REQUEST, message)


def not_found(message: Optional[str] = None) -> HTTPResponse:
    return _respond(HTTPStatus.NOT_FOUND, message)


def conflict(message: Optional[str] = None) -> HTTPResponse:
    return _respond(HTTPStatus.CONFLICT, message)


def internal_error(message: Optional[str] = None) -> HTTPResponse:
    """
    500 Internal Server Error.

    Keep the message generic; details belong in the server log.
    """
    return _respond(HTTPStatus.INTERNAL_SERVER_ERROR, message)
