"""
=============================================================================
FILE HANDLER
=============================================================================

Reads and writes whole files under the storage root.

    GET  /files/{name}    → 200 application/octet-stream, file bytes
    POST /files/{name}    → 201, body stored as a new file

=============================================================================
WRITE CHECKS (in this order)
=============================================================================

    ┌──────────────────────────────────────────┬────────────────────────┐
    │ Check                                    │ On failure             │
    ├──────────────────────────────────────────┼────────────────────────┤
    │ Content-Type is application/octet-stream │ 400 unexpected content │
    │                                          │     type               │
    │ key stays under root (confine mode only) │ 400                    │
    │ key does not exist yet                   │ 409 file already       │
    │                                          │     exists.            │
    │ request has a body                       │ 400 No body provided   │
    │ create + write succeed                   │ 500 failed to create / │
    │                                          │     write to file.     │
    └──────────────────────────────────────────┴────────────────────────┘

The exists() check only gives the early answer. The write itself is
create-if-absent, so a writer that loses a race after passing the check
still gets 409 and the winner's file is untouched.

An empty body (b"") is a body: it creates an empty file.

Reads turn every failure (missing file, directory, permission, a name the
OS rejects such as one with a NUL byte, escape in confine mode) into a bare
404. A name the OS rejects on write is a create failure (500).

=============================================================================
"""

from typing import Optional
import logging

from ..http.headers import ContentType
from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    bad_request,
    conflict,
    created,
    internal_error,
    not_found,
    ok_binary,
)
from ..storage import BlobStore, BlobWriteError, FileSystemBlobStore, PathEscapeError, confine


logger = logging.getLogger(__name__)


UNEXPECTED_CONTENT_TYPE = "unexpected content type"
FILE_EXISTS = "file already exists."
NO_BODY = "No body provided"
PATH_ESCAPES_ROOT = "path escapes storage root"
CREATE_FAILED = "failed to create file."
WRITE_FAILED = "failed to write to file."


class FileHandler:
    """
    Serves GET/POST /files/* against a BlobStore.

    Args:
        root: Storage root, prepended verbatim to the request remainder.
        store: Backing store, the local filesystem by default.
        confine_to_root: Reject keys that resolve outside `root`.
    """

    def __init__(
        self,
        root: str,
        store: Optional[BlobStore] = None,
        confine_to_root: bool = False,
    ):
        self.root = root
        self.store = store or FileSystemBlobStore()
        self.confine_to_root = confine_to_root

    def key_for(self, request: HTTPRequest) -> str:
        """
        Storage key for a request.

        Raises:
            PathEscapeError: confine mode is on and the key leaves the root.
        """
        key = self.root + request.path_params.get("name", "")
        if self.confine_to_root:
            confine(self.root, key)
        return key

    def read(self, request: HTTPRequest) -> HTTPResponse:
        try:
            key = self.key_for(request)
        except PathEscapeError as e:
            logger.warning(f"Rejected read: {e}")
            return not_found()

        try:
            data = self.store.read(key)
        except (OSError, ValueError) as e:  # ValueError: embedded null byte
            logger.debug(f"Read of {key!r} failed: {e}")
            return not_found()

        return ok_binary(data, ContentType.OCTET_STREAM)

    def write(self, request: HTTPRequest) -> HTTPResponse:
        if not request.is_content_type(ContentType.OCTET_STREAM):
            return bad_request(UNEXPECTED_CONTENT_TYPE)

        try:
            key = self.key_for(request)
        except PathEscapeError as e:
            logger.warning(f"Rejected write: {e}")
            return bad_request(PATH_ESCAPES_ROOT)

        if self.store.exists(key):
            return conflict(FILE_EXISTS)

        if request.body is None:
            return bad_request(NO_BODY)

        try:
            self.store.write_new(key, request.body)
        except FileExistsError:
            logger.info(f"Lost create race for {key}")
            return conflict(FILE_EXISTS)
        except BlobWriteError:
            logger.exception(f"Writing {key!r} failed")
            return internal_error(WRITE_FAILED)
        except (OSError, ValueError):
            logger.exception(f"Creating {key!r} failed")
            return internal_error(CREATE_FAILED)

        logger.info(f"Stored {len(request.body)} bytes at {key}")
        return created()
