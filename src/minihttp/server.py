"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ── accept ──► Connection ── submit ──► ThreadPool    │
    │                                                           │          │
    │                                                           ▼          │
    │                                          _process_connection(conn)   │
    │                                                           │          │
    │            raw = conn.read_request()  ◄───────────────────┘          │
    │                       │                                              │
    │                       ▼                                              │
    │   respond(raw) ─────────────────────────────────────────────────┐    │
    │     │                                                           │    │
    │     ├── RequestParser.parse()     HTTPParseError ──► 400        │    │
    │     ├── version != HTTP/1.1  ──────────────────────► 400        │    │
    │     └── middleware ─► Router.handle()                           │    │
    │                           └── handler raised ──────► 500        │    │
    │                                                                 │    │
    │                       ◄─────────────────── HTTPResponse ────────┘    │
    │                       │                                              │
    │   conn.send_response(response.to_bytes()); conn.close()             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

respond() is the whole protocol core: bytes in, response out, no socket.
Every failure inside it becomes a response; nothing escapes to the worker.

=============================================================================
"""

import logging
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import Connection, RequestTooLargeError, SocketServer, ThreadPool
from .handlers import install_routes
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPVersion,
    RequestParser,
    Router,
    bad_request,
    internal_error,
)
from .middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


UNSUPPORTED_VERSION = "this server only supports HTTP version 1.1."
REQUEST_TOO_LARGE = "request too large"
SERVER_OVERLOADED = "server overloaded"

SHUTDOWN_TIMEOUT = 30.0


class HTTPServer:
    """
    One-request-per-connection HTTP/1.1 server.

        server = HTTPServer(ServerConfig(port=4221))

        @server.get("/echo/*value")
        def echo(request):
            return ok(request.path_params["value"])

        server.run()

    create_app() builds one with the standard routes already mounted.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )

        self._parser = RequestParser()
        self._router = Router()
        self._middleware = MiddlewarePipeline()
        self._handler: Callable[[HTTPRequest], HTTPResponse] = self._router.handle

    # =========================================================================
    # ROUTES AND MIDDLEWARE
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add a middleware layer. First added runs outermost."""
        self._middleware.add(middleware)
        self._handler = self._middleware.wrap(self._router.handle)
        return self

    @property
    def router(self) -> Router:
        return self._router

    def get(self, path: str, **kwargs):
        return self._router.get(path, **kwargs)

    def post(self, path: str, **kwargs):
        return self._router.post(path, **kwargs)

    def put(self, path: str, **kwargs):
        return self._router.put(path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self._router.delete(path, **kwargs)

    # =========================================================================
    # PROTOCOL CORE
    # =========================================================================

    def respond(
        self,
        raw: bytes,
        client_address: Tuple[str, int] = ("", 0),
    ) -> HTTPResponse:
        """
        Turn one raw request into a response.

        Never raises: parse failures and unsupported versions become 400,
        a handler exception becomes 500.
        """
        try:
            request = self._parser.parse(raw, client_address)
        except HTTPParseError as e:
            logger.info(f"Bad request from {client_address[0] or '-'}: {e}")
            return bad_request(str(e))

        if request.version is not HTTPVersion.HTTP_1_1:
            logger.info(f"Rejected {request.version.value} from {client_address[0] or '-'}")
            return bad_request(UNSUPPORTED_VERSION)

        try:
            return self._handler(request)
        except Exception:
            logger.exception(f"Handler error for {request.request_line}")
            return internal_error()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    def run(self) -> None:
        """Serve until shutdown() or SIGINT/SIGTERM. Blocks."""
        self._setup_logging()
        self._thread_pool.start()

        logger.info(
            f"Starting HTTP server on {self.config.host}:{self.config.port} "
            f"({self.config.min_workers}-{self.config.max_workers} workers, "
            f"storage root {self.config.directory or 'not set'})"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self) -> None:
        """Ask a running server to stop; run() returns shortly after."""
        self._socket_server.shutdown()

    def _setup_logging(self) -> None:
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("minihttp").setLevel(level)

    def _shutdown(self) -> None:
        logger.info("Shutting down server...")
        self._thread_pool.shutdown(wait=True, timeout=SHUTDOWN_TIMEOUT)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        """Called on the accept thread; hands the connection to a worker."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            block=False,
        )
        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            # Runs on the accept thread: answer and close without draining
            conn.send_response(internal_error(SERVER_OVERLOADED).to_bytes())
            conn.close(drain=False)

    def _process_connection(self, conn: Connection) -> None:
        """Read one request, answer it, close. Runs on a worker thread."""
        with conn:
            try:
                raw = conn.read_request()
            except RequestTooLargeError as e:
                logger.warning(f"[{conn.id}] {e}")
                conn.send_response(bad_request(REQUEST_TOO_LARGE).to_bytes())
                return

            if raw is None:
                logger.debug(f"[{conn.id}] Closed without sending a request")
                return

            response = self.respond(raw, conn.address)
            conn.send_response(response.to_bytes())


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Build a server with access logging and the standard routes:

        GET /, GET /echo/*, GET /user-agent, and GET/POST /files/* when
        config.directory is set.
    """
    server = HTTPServer(config)
    server.use(LoggingMiddleware(log_format=server.config.log_format))
    install_routes(server.router, server.config)
    return server
