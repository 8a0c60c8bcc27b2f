"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One line per request on the "minihttp.access" logger, in either format:

    text:  127.0.0.1 - - [17/Oct/2026:10:00:00 +0000] "GET /echo/abc HTTP/1.1" 200 3 0.12ms
    json:  {"request_id": "1f2e3d4c", "method": "GET", "path": "/echo/abc", ...}

Route the access log separately from the application log with the usual
logging machinery:

    logging.getLogger("minihttp.access").addHandler(file_handler)

Server errors (5xx) are logged at ERROR, client errors (4xx) at WARNING,
the rest at the configured level.

=============================================================================
"""

from dataclasses import asdict, dataclass
import json
import logging
import time
import uuid

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("minihttp.access")


@dataclass
class RequestLog:
    """Structured access log entry."""

    request_id: str
    method: str
    path: str
    version: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache-style line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path} {self.version}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware. Add it first so it times the whole chain.

    Args:
        log_format: "text" or "json".
        log_level: Level for successful requests.
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        # Correlates this entry with handler log lines; never sent to the client
        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] Request failed: {request.request_line} - "
                f"{type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        entry = RequestLog(
            request_id=request_id,
            method=request.method.value,
            path=request.path,
            version=request.version.value,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if response.status.is_server_error:
            level = logging.ERROR
        elif response.status.is_client_error:
            level = logging.WARNING
        else:
            level = self.log_level
        if self.log_format == "json":
            logger.log(level, json.dumps(entry.to_dict()))
        else:
            logger.log(level, entry.to_text())

        return response
