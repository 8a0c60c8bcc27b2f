"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server answers with exactly six outcomes. Nothing else is ever put on
the wire, so the enum is closed on purpose:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK            - echo, user-agent, file read, index    │
    │        │ 201 Created       - file written                          │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request   - malformed request, HTTP/1.0,          │
    │        │                     wrong content type, missing body      │
    │        │ 404 Not Found     - no route, no user agent, no file      │
    │        │ 409 Conflict      - file already exists                   │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Server Error - storage failure or a handler  │
    │        │                             that raised                   │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes produced by the server, with their reason phrases.

        >>> HTTPStatus.CONFLICT == 409
        True
        >>> HTTPStatus.CONFLICT.phrase
        'Conflict'
    """

    OK = 200
    CREATED = 201

    BAD_REQUEST = 400
    NOT_FOUND = 404
    CONFLICT = 409

    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """
        Reason phrase used in the status line:

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES[self]

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return self >= 500



_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.CONFLICT: "Conflict",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
