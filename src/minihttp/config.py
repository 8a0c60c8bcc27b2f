"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── minihttp --directory /tmp/data/ --port 4221                │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── MINIHTTP_PORT=4221 minihttp                                │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The storage root lives here too. The file handler is handed
`config.directory` at construction; nothing below the CLI looks at
process arguments.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_PORT = 4221

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    HTTP SETTINGS
    - max_request_size

    THREADING SETTINGS
    - min_workers, max_workers, queue_size

    FILE STORAGE
    - directory, confine_to_root

    LOGGING
    - log_level, log_format
    """

    # =========================================================================
    # NETWORK SETTINGS
    # =========================================================================

    host: str = "127.0.0.1"

    port: int = DEFAULT_PORT
    """Port to listen on. 0 lets the OS pick one (handy in tests)."""

    backlog: int = 128

    buffer_size: int = 1024
    """Bytes asked of each recv() call."""

    timeout: Optional[float] = 30.0
    """Per-connection socket timeout in seconds. None blocks forever."""

    # =========================================================================
    # HTTP SETTINGS
    # =========================================================================

    max_request_size: int = 1024 * 1024  # 1 MiB
    """
    Upper bound on head + body bytes read for one request. Larger
    requests are answered 400 without being read to the end.
    """

    # =========================================================================
    # THREADING SETTINGS
    # =========================================================================

    min_workers: int = 4

    max_workers: int = 16

    queue_size: int = 100
    """Accepted connections waiting for a worker before new ones are refused."""

    # =========================================================================
    # FILE STORAGE
    # =========================================================================

    directory: Optional[str] = None
    """
    Storage root for /files/*. The request remainder is appended to it as
    a string, so it normally ends with a path separator. The file routes
    are only mounted when this is set.
    """

    confine_to_root: bool = False
    """Reject file keys that resolve outside `directory`."""

    # =========================================================================
    # LOGGING
    # =========================================================================

    log_level: str = "INFO"

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

            MINIHTTP_HOST       bind address      (default: 127.0.0.1)
            MINIHTTP_PORT       listen port       (default: 4221)
            MINIHTTP_WORKERS    max workers       (default: 16)
            MINIHTTP_TIMEOUT    socket timeout    (default: 30)
            MINIHTTP_DIRECTORY  storage root      (default: unset)
            MINIHTTP_LOG_LEVEL  logging level     (default: INFO)

        Raises:
            ValueError: A numeric variable does not parse.
        """
        max_workers = int(os.getenv("MINIHTTP_WORKERS", "16"))
        return cls(
            host=os.getenv("MINIHTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("MINIHTTP_PORT", str(DEFAULT_PORT))),
            min_workers=min(cls.min_workers, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("MINIHTTP_TIMEOUT", "30")),
            directory=os.getenv("MINIHTTP_DIRECTORY"),
            log_level=os.getenv("MINIHTTP_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """
        Check every value once, at startup.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level!r}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        if self.directory is not None and not os.path.isdir(self.directory):
            raise ValueError(f"Storage directory does not exist: {self.directory}")

        if self.confine_to_root and self.directory is None:
            raise ValueError("confine_to_root requires a directory")
