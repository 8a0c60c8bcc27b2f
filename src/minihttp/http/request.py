"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes read from a connection into an HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ HEAD ─────────────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    POST /files/report.bin HTTP/1.1\r\n    ← request line       │ │
    │  │    Host: localhost:4221\r\n               ← header lines       │ │
    │  │    Content-Type: application/octet-stream\r\n                  │ │
    │  │    Content-Length: 5\r\n                                        │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │    \r\n                                      ← empty line           │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    hello                                  ← raw bytes, as is   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. HEAD / BODY SPLIT
   The buffer is split at the FIRST "\r\n\r\n". Without one, the whole
   buffer is the head and the request has no body (body is None, which
   is not the same as an empty body b"").

2. REQUEST LINE
   Split on whitespace into exactly three tokens. The method must be one
   of GET/POST/PUT/DELETE and the version one of HTTP/1.0, HTTP/1.1.
   Anything else raises HTTPParseError (400). The path is kept verbatim:
   no percent-decoding, no normalization, query string included.

3. HEADERS
   Handed to HeaderCollection, which keeps the recognized ones and
   silently skips the rest.

4. BODY
   Preserved byte for byte. It is NOT checked against Content-Length;
   the connection reader already used Content-Length to decide how much
   to read.

Version policy (only HTTP/1.1 is served) is applied by the server, not
here: an HTTP/1.0 request parses fine.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, List, Tuple

from .headers import ContentType, HeaderCollection, RequestHeader


HEAD_TERMINATOR = b"\r\n\r\n"


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the status code to answer with. Every parse failure in this
    server maps to 400 Bad Request.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class Method(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class HTTPVersion(Enum):
    HTTP_1_0 = "HTTP/1.0"
    HTTP_1_1 = "HTTP/1.1"


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed request.

    Frozen: built once per connection and only read afterwards. The router
    attaches path parameters by making a copy (dataclasses.replace), never
    by mutating the request it was given.

    Attributes:
        method:         Method enum member.
        path:           Raw request target exactly as sent.
        version:        HTTPVersion enum member.
        headers:        Recognized headers in arrival order.
        body:           Raw body bytes, or None when the request had no
                        header terminator at all.
        path_params:    Values captured by the matched route (e.g. the
                        "*value" part of "/echo/*value").
        client_address: (ip, port) of the peer, for logging.
    """

    method: Method
    path: str
    version: HTTPVersion = HTTPVersion.HTTP_1_1
    headers: HeaderCollection = field(default_factory=HeaderCollection)
    body: Optional[bytes] = None
    path_params: Dict[str, str] = field(default_factory=dict)
    client_address: Tuple[str, int] = ("", 0)

    @property
    def request_line(self) -> str:
        """Reassembled request line, e.g. "GET /echo/abc HTTP/1.1"."""
        return f"{self.method.value} {self.path} {self.version.value}"

    @property
    def has_body(self) -> bool:
        return self.body is not None

    @property
    def user_agent(self) -> Optional[str]:
        return self.headers.get(RequestHeader.USER_AGENT)

    @property
    def content_type(self) -> Optional[ContentType]:
        return self.headers.content_type()

    @property
    def content_length(self) -> Optional[int]:
        """Declared Content-Length, or None if missing or not a number."""
        value = self.headers.get(RequestHeader.CONTENT_LENGTH)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    def is_content_type(self, content_type: ContentType) -> bool:
        return self.headers.is_content_type(content_type)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

        Raw bytes
            │
            ▼
        split at first \\r\\n\\r\\n ──► head (text)      body (bytes or None)
            │
            ▼
        head.split("\\n") ──► [request line, header line, header line, ...]
            │
            ├──► parse_request_line()  → (Method, path, HTTPVersion)
            │                            HTTPParseError on bad shape
            └──► HeaderCollection.parse() → skips unknown/malformed lines

    The parser is stateless; one instance can be shared by all workers.
    """

    METHODS = {m.value: m for m in Method}
    VERSIONS = {v.value: v for v in HTTPVersion}

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse one request.

        Args:
            data: Raw request bytes.
            client_address: Peer address, stored on the request.

        Returns:
            The parsed HTTPRequest.

        Raises:
            HTTPParseError: If the request line is malformed.
        """
        head_bytes, body = split_head_and_body(data)

        # Decoding the head never fails: invalid bytes become U+FFFD and the
        # request line check below rejects anything that matters.
        head = head_bytes.decode("utf-8", errors="replace")
        lines = split_lines(head)

        request_line = lines[0] if lines else ""
        method, path, version = self.parse_request_line(request_line)

        headers = HeaderCollection.from_lines(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body,
            client_address=client_address,
        )

    def parse_request_line(self, line: str) -> Tuple[Method, str, HTTPVersion]:
        """
        Parse "METHOD SP PATH SP VERSION".

        Any run of whitespace separates tokens, so "GET  /  HTTP/1.1" is
        accepted. Exactly three tokens are required.

        Raises:
            HTTPParseError: wrong token count, unknown method or version.
        """
        parts = line.split()
        if len(parts) != 3:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method_token, path, version_token = parts

        method = self.METHODS.get(method_token)
        if method is None:
            raise HTTPParseError(f"Unsupported method: {method_token!r}")

        version = self.VERSIONS.get(version_token)
        if version is None:
            raise HTTPParseError(f"Unsupported HTTP version: {version_token!r}")

        return method, path, version


# =============================================================================
# HELPERS
# =============================================================================

def split_head_and_body(data: bytes) -> Tuple[bytes, Optional[bytes]]:
    """
    Split at the first empty line.

        b"GET / HTTP/1.1\\r\\n\\r\\n"      → (b"GET / HTTP/1.1", b"")
        b"GET / HTTP/1.1\\r\\n"            → (b"GET / HTTP/1.1\\r\\n", None)
    """
    head, sep, body = data.partition(HEAD_TERMINATOR)
    if not sep:
        return data, None
    return head, body


def split_lines(text: str) -> List[str]:
    """Split on "\\n", dropping one trailing "\\r" per line."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_request(
    data: bytes,
    client_address: Tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """Parse a request with a throwaway RequestParser."""
    return RequestParser().parse(data, client_address)
