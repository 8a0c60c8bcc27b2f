"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between raw bytes and handler functions. No sockets here; this
layer is pure and can be exercised with byte strings alone.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ headers.py       closed header vocabulary, ContentType,             │
    │                  HeaderCollection                                    │
    │ request.py       bytes → HTTPRequest (HTTPParseError on bad shape)  │
    │ response.py      HTTPResponse / ResponseBuilder → bytes             │
    │ router.py        (Method, path) → handler, first match wins         │
    │ status_codes.py  the six status codes the server produces           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .headers import ContentType, HeaderCollection, RequestHeader, ResponseHeader
from .request import (
    HTTPParseError,
    HTTPRequest,
    HTTPVersion,
    Method,
    RequestParser,
    parse_request,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,             # 200 OK, text
    ok_binary,      # 200 OK, raw bytes
    created,        # 201 Created
    bad_request,    # 400 Bad Request
    not_found,      # 404 Not Found
    conflict,       # 409 Conflict
    internal_error, # 500 Internal Server Error
)
from .router import Route, Router
from .status_codes import HTTPStatus

__all__ = [
    # Header vocabulary
    "ContentType",
    "HeaderCollection",
    "RequestHeader",
    "ResponseHeader",

    # Request parsing
    "HTTPParseError",
    "HTTPRequest",
    "HTTPVersion",
    "Method",
    "RequestParser",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "ok_binary",
    "created",
    "bad_request",
    "not_found",
    "conflict",
    "internal_error",

    # Routing
    "Route",
    "Router",

    # Status codes
    "HTTPStatus",
]
