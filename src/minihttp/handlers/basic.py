"""
Stateless handlers: index, echo and user-agent reflection.
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, not_found, ok


def index(request: HTTPRequest) -> HTTPResponse:
    """GET / → bare 200, no headers, no body."""
    return ok()


def echo(request: HTTPRequest) -> HTTPResponse:
    """
    GET /echo/{value} → the value as text/plain.

    Everything after "/echo/" is echoed verbatim, slashes included:

        /echo/abc/def  →  "abc/def"
        /echo/         →  ""
    """
    return ok(request.path_params.get("value", ""))


def user_agent(request: HTTPRequest) -> HTTPResponse:
    """GET /user-agent → the User-Agent header value, or 404 without one."""
    agent = request.user_agent
    if agent is None:
        return not_found()
    return ok(agent)
