"""
=============================================================================
BLOB STORE
=============================================================================

The file routes read and write whole files by key. A key is the storage
root with the request remainder appended, as plain strings:

    root = "/tmp/data/"      request = GET /files/a/b.bin
    key  = "/tmp/data/a/b.bin"

No joining, no normalization. A root without a trailing separator gives
"/tmp/dataa/b.bin"; pass the root the way you want it concatenated.

=============================================================================
WRITE SEMANTICS
=============================================================================

Writes are create-if-absent and all-or-nothing:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  1. write the payload to a temp file next to the target            │
    │         .minihttp-XXXX.part                                        │
    │  2. os.link(temp, key)                                              │
    │         ├── key exists      → FileExistsError, nothing changed     │
    │         └── ok              → key appears with the full payload    │
    │  3. remove the temp file                                            │
    └─────────────────────────────────────────────────────────────────────┘

Two concurrent writers to the same new key cannot both win: link() is
atomic and fails when the name is taken. A reader never sees a half
written file under the key.

On filesystems without hard links the store falls back to an exclusive
open (O_CREAT | O_EXCL) and removes the partial file if the write fails.

=============================================================================
CONFINEMENT
=============================================================================

confine(root, key) is an opt-in check that the key, after resolving "..",
symlinks and the like, still lies inside the root. Raises PathEscapeError
otherwise.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Tuple
import errno
import logging
import os
import uuid


logger = logging.getLogger(__name__)


TEMP_PREFIX = ".minihttp-"
TEMP_SUFFIX = ".part"

# link() errors that mean "this filesystem can't do it", not "it failed"
_LINK_UNSUPPORTED = {errno.EPERM, errno.EXDEV, errno.ENOTSUP, errno.EOPNOTSUPP}

_TEMP_FLAGS = os.O_CREAT | os.O_EXCL | os.O_WRONLY | getattr(os, "O_CLOEXEC", 0)


class PathEscapeError(ValueError):
    """Raised when a key resolves outside the storage root."""

    def __init__(self, root: str, key: str):
        super().__init__(f"{key!r} resolves outside {root!r}")
        self.root = root
        self.key = key


class BlobWriteError(OSError):
    """
    The target was created but the payload could not be written.

    Raised by write_new after cleaning up, so the key is absent again.
    """


class BlobStore(ABC):
    """Whole-file storage keyed by path strings."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def read(self, key: str) -> bytes:
        """Read the whole blob. Raises OSError (FileNotFoundError, ...)."""

    @abstractmethod
    def create_new(self, key: str) -> BinaryIO:
        """Open a new blob for writing. Raises FileExistsError if taken."""

    @abstractmethod
    def write_new(self, key: str, data: bytes) -> None:
        """
        Create `key` holding exactly `data`.

        Raises:
            FileExistsError: The key already exists. Nothing was written.
            BlobWriteError: Writing failed. Nothing is left behind.
            OSError: The blob could not be created.
        """


class FileSystemBlobStore(BlobStore):
    """BlobStore on the local filesystem. Keys are filesystem paths."""

    def exists(self, key: str) -> bool:
        return os.path.lexists(key)

    def read(self, key: str) -> bytes:
        with open(key, "rb") as f:
            return f.read()

    def create_new(self, key: str) -> BinaryIO:
        return open(key, "xb")

    def write_new(self, key: str, data: bytes) -> None:
        directory = os.path.dirname(key) or os.curdir

        fd, temp_path = self._create_temp(directory)
        try:
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
            except OSError as e:
                raise BlobWriteError(e.errno, f"failed to write {key!r}: {e}") from e

            try:
                os.link(temp_path, key)
            except OSError as e:
                if e.errno not in _LINK_UNSUPPORTED:
                    raise
                logger.debug(f"Hard links unavailable in {directory}, using exclusive create")
                self._write_exclusive(key, data)
        finally:
            os.unlink(temp_path)

    def _create_temp(self, directory: str) -> Tuple[int, str]:
        """
        Open a fresh temp file in `directory`.

        Created with mode 0o666 so the umask applies, the same as a plain
        open(key, "xb"); the stored file keeps this mode after link().
        """
        while True:
            path = os.path.join(directory, f"{TEMP_PREFIX}{uuid.uuid4().hex}{TEMP_SUFFIX}")
            try:
                return os.open(path, _TEMP_FLAGS, 0o666), path
            except FileExistsError:
                continue

    def _write_exclusive(self, key: str, data: bytes) -> None:
        f = self.create_new(key)
        try:
            with f:
                f.write(data)
        except OSError as e:
            os.unlink(key)
            raise BlobWriteError(e.errno, f"failed to write {key!r}: {e}") from e


def confine(root: str, key: str) -> str:
    """
    Resolve `key` and make sure it stays under `root`.

    Returns:
        The resolved absolute path.

    Raises:
        PathEscapeError: The resolved path is outside the resolved root,
            or cannot be resolved at all (e.g. it holds a NUL byte).
    """
    real_root = os.path.realpath(root)
    try:
        real_key = os.path.realpath(key)
    except ValueError as e:
        raise PathEscapeError(root, key) from e

    if os.path.commonpath([real_root, real_key]) != real_root:
        raise PathEscapeError(root, key)

    return real_key
