"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler function.

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Incoming Request                                                   │
    │   GET /echo/abc/def                                                  │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  ROUTER (checked top to bottom, first match wins)           │   │
    │   │                                                              │   │
    │   │   GET  /               → index                               │   │
    │   │   GET  /echo/*value    → echo          ← MATCH!              │   │
    │   │   GET  /user-agent     → user_agent                          │   │
    │   │   GET  /files/*name    → read_file                           │   │
    │   │   POST /files/*name    → write_file                          │   │
    │   │                                                              │   │
    │   │   path_params = {"value": "abc/def"}                         │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   echo(request)                                                      │
    │                                                                      │
    │   No match at all ──► 404 Not Found (empty body)                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ROUTE PATTERNS
=============================================================================

1. STATIC PATHS: exact string match

   Pattern: /user-agent
   Matches: /user-agent
   Doesn't match: /user-agent/, /User-Agent, /user-agent?x=1

2. DYNAMIC PARAMETERS (:param): one path segment

   Pattern: /users/:id
   Matches: /users/123 → {"id": "123"}
   Doesn't match: /users, /users/123/posts

3. WILDCARD (*param): everything after the prefix, slashes included,
   possibly empty. Must be the LAST segment.

   Pattern: /files/*name
   Matches: /files/a/b.bin → {"name": "a/b.bin"}
            /files/        → {"name": ""}
   Doesn't match: /files

Paths are matched exactly as they arrived. There is no normalization
(no trailing-slash stripping, no "//" collapsing, no percent-decoding),
so what a handler sees in path_params is a verbatim slice of the request
target.

A method mismatch is just a miss: "PUT /echo/x" falls through to 404.

=============================================================================
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Tuple
import logging
import re

from .request import HTTPRequest, Method
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """A URL pattern bound to a method and a handler."""

    path: str
    method: Method
    handler: Handler
    name: Optional[str] = None

    _pattern: Optional["re.Pattern[str]"] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """The route that matched and the parameters it captured."""

    route: Route
    params: Dict[str, str]


class Router:
    """
    Ordered route table.

        router = Router()

        @router.get("/echo/*value")
        def echo(request):
            return ok(request.path_params["value"])

    Registration order is precedence order.
    """

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Method,
        name: Optional[str] = None,
    ) -> Route:
        pattern, param_names = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method,
            handler=handler,
            name=name or getattr(handler, "__name__", None),
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)

        logger.debug(f"Registered route {method.value} {path}")
        return route

    def _compile_pattern(self, path: str) -> Tuple["re.Pattern[str]", List[str]]:
        """
        Compile a path pattern into a regex.

            "/files/*name"   →  /files/(?P<name>.*)
            "/users/:id"     →  /users/(?P<id>[^/]+)
            "/"              →  /

        The result is always applied with fullmatch(), never as a prefix.
        """
        if path == "/":
            return re.compile(re.escape("/")), []

        param_names: List[str] = []
        regex_parts: List[str] = []

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                param_name = segment[1:]
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>[^/]+)")

            elif segment.startswith("*"):
                # Wildcard swallows the rest, including slashes and nothing
                param_name = segment[1:] or "wildcard"
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>.*)")
                break

            else:
                regex_parts.append(re.escape(segment))

        return re.compile("".join(regex_parts), re.DOTALL), param_names

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: Method, path: str) -> Optional[RouteMatch]:
        """First route whose method and pattern both match, or None."""
        for route in self._routes:
            if route.method is not method:
                continue

            match = route._pattern.fullmatch(path)
            if match:
                return RouteMatch(route=route, params=match.groupdict())

        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        The handler receives a copy of the request with path_params filled
        in. Unmatched requests get a bare 404.
        """
        match = self.match(request.method, request.path)

        if match is None:
            logger.debug(f"No route for {request.request_line}")
            return not_found()

        return match.route.handler(replace(request, path_params=match.params))

    # =========================================================================
    # DECORATOR-STYLE ROUTE REGISTRATION
    # =========================================================================

    def route(
        self,
        path: str,
        method: Method,
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, Method.GET, name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, Method.POST, name)

    def put(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, Method.PUT, name)

    def delete(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, Method.DELETE, name)

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def routes(self) -> List[Route]:
        """Registered routes in precedence order."""
        return list(self._routes)
