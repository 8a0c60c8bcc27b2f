"""
=============================================================================
HANDLERS
=============================================================================

The fixed route table. Registration order is dispatch order:

    ┌────┬────────┬────────────────┬───────────────────────────────────┐
    │  # │ Method │ Pattern        │ Handler                           │
    ├────┼────────┼────────────────┼───────────────────────────────────┤
    │  1 │ GET    │ /              │ basic.index                       │
    │  2 │ GET    │ /echo/*value   │ basic.echo                        │
    │  3 │ GET    │ /user-agent    │ basic.user_agent                  │
    │  4 │ GET    │ /files/*name   │ FileHandler.read   (needs a dir)  │
    │  5 │ POST   │ /files/*name   │ FileHandler.write  (needs a dir)  │
    │  - │ *      │ anything else  │ 404 (Router.handle)               │
    └────┴────────┴────────────────┴───────────────────────────────────┘

Without a configured storage directory, /files/* falls through to 404.

=============================================================================
"""

import logging

from ..config import ServerConfig
from ..http.router import Router
from .basic import echo, index, user_agent
from .files import FileHandler


logger = logging.getLogger(__name__)


def install_routes(router: Router, config: ServerConfig) -> Router:
    """Register the fixed routes on `router` and return it."""
    router.get("/", name="index")(index)
    router.get("/echo/*value", name="echo")(echo)
    router.get("/user-agent", name="user_agent")(user_agent)

    if config.directory is not None:
        files = FileHandler(
            root=config.directory,
            confine_to_root=config.confine_to_root,
        )
        router.get("/files/*name", name="read_file")(files.read)
        router.post("/files/*name", name="write_file")(files.write)
    else:
        logger.info("No storage directory configured; /files routes disabled")

    return router


__all__ = [
    "FileHandler",
    "echo",
    "index",
    "install_routes",
    "user_agent",
]
