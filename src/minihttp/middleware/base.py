"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

Middleware wraps the router. Each layer sees the request on the way in
and the response on the way out, and may short-circuit by returning a
response without calling `next`.

    pipeline.add(LoggingMiddleware())    # first added = outermost

        ┌─────────────────────────────────────────────────────────┐
        │  LoggingMiddleware                                      │
        │  ┌───────────────────────────────────────────────────┐  │
        │  │                                                   │  │
        │  │              FINAL HANDLER (router.handle)        │  │
        │  │                                                   │  │
        │  └───────────────────────────────────────────────────┘  │
        └─────────────────────────────────────────────────────────┘

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    One layer of the request pipeline.

        class Timing(Middleware):
            def __call__(self, request, next):
                # before
                response = next(request)
                # after
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Process `request`, normally by calling `next(request)`."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """Ordered middleware list that wraps a final handler."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append a layer. Returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around `handler`.

        Given [MW1, MW2] the result calls MW1 → MW2 → handler. Wrapping
        happens in reverse so the first-added layer ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler,
    ) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)
