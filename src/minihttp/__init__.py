"""
=============================================================================
MINIHTTP - Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

A small HTTP/1.1 server with a fixed set of routes:

    GET  /               200, empty
    GET  /echo/{value}   200, the value as text/plain
    GET  /user-agent     200, the User-Agent header (404 without one)
    GET  /files/{name}   200, file bytes as application/octet-stream
    POST /files/{name}   201, body stored as a new file

One request per connection; the connection is closed after the response.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m minihttp)
    ├── server.py            # HTTPServer, create_app()
    ├── config.py            # ServerConfig dataclass
    ├── storage.py           # BlobStore, atomic create-if-absent writes
    ├── core/                # Transport
    │   ├── socket_server.py # Listening socket and accept loop
    │   ├── connection.py    # Incremental request reader
    │   └── thread_pool.py   # Worker threads
    ├── http/                # Protocol (no sockets)
    │   ├── headers.py       # Header vocabulary and ContentType
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response building
    │   ├── router.py        # URL routing
    │   └── status_codes.py  # HTTP status enum
    ├── middleware/
    │   ├── base.py          # Middleware ABC and pipeline
    │   └── logging.py       # Access log
    └── handlers/
        ├── basic.py         # index, echo, user-agent
        └── files.py         # file read/write

=============================================================================
QUICK START
=============================================================================

    from minihttp import ServerConfig, create_app

    app = create_app(ServerConfig(directory="/tmp/data/"))
    app.run()

Or without sockets at all:

    response = app.respond(b"GET /echo/abc HTTP/1.1\\r\\n\\r\\n")
    response.to_bytes()
    # b"HTTP/1.1 200 OK\\r\\nContent-Type: text/plain\\r\\nContent-Length: 3\\r\\n\\r\\nabc"

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer, create_app

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
