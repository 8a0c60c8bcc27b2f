"""
=============================================================================
HEADER VOCABULARY
=============================================================================

The server only understands a handful of headers. Everything it cares about
is spelled out here as closed enumerations, each member carrying the
canonical wire string:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST HEADERS (RequestHeader)                                     │
    │ ─────────────────────────────────────────────────────────────────── │
    │   User-Agent, Host, Accept, Content-Type, Content-Length            │
    │                                                                      │
    │   Matched case-insensitively: "user-agent" == "USER-AGENT".         │
    │   Anything else (Connection, Cookie, X-Foo, ...) is dropped while   │
    │   parsing. It is not stored and it is not an error.                 │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE HEADERS (ResponseHeader)                                   │
    │ ─────────────────────────────────────────────────────────────────── │
    │   Content-Type, Content-Length                                      │
    │                                                                      │
    │   Each has a fixed wire prefix that already includes ": ", so a     │
    │   header line is just prefix + value.                               │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ CONTENT TYPES (ContentType)                                         │
    │ ─────────────────────────────────────────────────────────────────── │
    │   text/plain                  named                                 │
    │   application/octet-stream    named                                 │
    │   <anything else>             catch-all, keeps the lowercased text  │
    │                                                                      │
    │   Equality is structural: ContentType.parse("TEXT/PLAIN") equals    │
    │   ContentType.TEXT_PLAIN.                                           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HEADER LINE FORMAT
=============================================================================

    User-Agent: curl/8.4.0\r\n
    ──────────  ──────────
        │           │
       name       value (trimmed)

The name/value separator is the first ": " on the line. A line without it
("Garbage", "Host:nospace") is skipped, not rejected.

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable, Iterator, List, Optional, Tuple


HEADER_SEPARATOR = ": "


class RequestHeader(Enum):
    """Request headers the parser keeps."""

    USER_AGENT = "User-Agent"
    HOST = "Host"
    ACCEPT = "Accept"
    CONTENT_TYPE = "Content-Type"
    CONTENT_LENGTH = "Content-Length"

    @property
    def wire_name(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> Optional["RequestHeader"]:
        """
        Look up a header by name, ignoring case.

        Returns None for headers outside the vocabulary so callers can
        skip them.
        """
        return _REQUEST_HEADERS_BY_LOWER_NAME.get(name.lower())


_REQUEST_HEADERS_BY_LOWER_NAME = {h.value.lower(): h for h in RequestHeader}


class ResponseHeader(Enum):
    """Headers the response builder can emit."""

    CONTENT_TYPE = "Content-Type"
    CONTENT_LENGTH = "Content-Length"

    @property
    def prefix(self) -> str:
        """Wire prefix, e.g. "Content-Length: "."""
        return self.value + HEADER_SEPARATOR

    def line(self, value: str) -> str:
        """Render one header line without the trailing CRLF."""
        return self.prefix + value


@dataclass(frozen=True)
class ContentType:
    """
    A media type, normalized to lowercase.

    Two values are known by name (TEXT_PLAIN and OCTET_STREAM). Any other
    string is kept as is, so an unexpected Content-Type never breaks
    parsing; it just won't compare equal to the named ones.
    """

    mime: str

    TEXT_PLAIN: ClassVar["ContentType"]
    OCTET_STREAM: ClassVar["ContentType"]

    @classmethod
    def parse(cls, value: str) -> "ContentType":
        return cls(value.lower())

    def __str__(self) -> str:
        return self.mime


ContentType.TEXT_PLAIN = ContentType("text/plain")
ContentType.OCTET_STREAM = ContentType("application/octet-stream")


class HeaderCollection:
    """
    Ordered (RequestHeader, value) pairs parsed from a request.

    =========================================================================
    DUPLICATE HEADERS
    =========================================================================

    Every recognized line is kept, in arrival order. When a header repeats,
    lookups return the FIRST occurrence:

        Accept: text/plain
        Accept: */*           <- stored, but get(ACCEPT) == "text/plain"

    =========================================================================
    """

    def __init__(self, headers: Optional[Iterable[Tuple[RequestHeader, str]]] = None):
        self._headers: List[Tuple[RequestHeader, str]] = list(headers or [])

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "HeaderCollection":
        collection = cls()
        collection.parse(lines)
        return collection

    def parse(self, lines: Iterable[str]) -> None:
        """
        Append every recognized header from `lines`.

        Never raises. Lines without ": " and unknown header names are
        skipped.
        """
        for line in lines:
            name, sep, value = line.partition(HEADER_SEPARATOR)
            if not sep:
                continue

            header = RequestHeader.from_name(name)
            if header is None:
                continue

            self._headers.append((header, value.strip()))

    def get(self, header: RequestHeader) -> Optional[str]:
        """Value of the first `header` line, or None."""
        for name, value in self._headers:
            if name is header:
                return value
        return None

    def content_type(self) -> Optional[ContentType]:
        value = self.get(RequestHeader.CONTENT_TYPE)
        if value is None:
            return None
        return ContentType.parse(value)

    def is_content_type(self, content_type: ContentType) -> bool:
        """True only if a Content-Type header is present and equal."""
        return self.content_type() == content_type

    def __iter__(self) -> Iterator[Tuple[RequestHeader, str]]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderCollection):
            return NotImplemented
        return self._headers == other._headers

    def __repr__(self) -> str:
        pairs = ", ".join(f"{name.value}={value!r}" for name, value in self._headers)
        return f"HeaderCollection({pairs})"
