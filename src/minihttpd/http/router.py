"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler.

    GET  /              → root()
    GET  /user-agent    → user_agent()
    GET  /echo/...      → echo()            (prefix route)
    *    /files/...     → FileHandler       (prefix route, any method)

Two kinds of route:

    exact   path must equal the pattern         "/user-agent"
    prefix  path must start with the pattern    "/echo/"

Routes are tried in registration order and the first match wins, so
registration order IS precedence. A method of None matches any method.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse


# Handler: the signature every endpoint follows
Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass(frozen=True)
class Route:
    """
    A registered route.

        Route(path="/echo/", method="GET", handler=echo, prefix=True)
    """
    path: str
    method: Optional[str]
    handler: Handler
    prefix: bool = False

    def matches(self, method: str, path: str) -> bool:
        if self.method is not None and self.method != method:
            return False
        if self.prefix:
            return path.startswith(self.path)
        return path == self.path


class Router:
    """
    Ordered route table.

        router = Router()

        @router.get("/")
        def root(request):
            return ok()

        router.add_route("/files/", files.handle, prefix=True)

        route = router.match("GET", "/")     # Route or None
    """

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        prefix: bool = False,
    ) -> Route:
        """
        Register a route.

        Args:
            path: Exact path, or the leading part of the path when prefix=True.
            handler: Callable taking the request, returning a response.
            method: Required method, or None for any method.
            prefix: Match by path prefix instead of equality.
        """
        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            prefix=prefix,
        )
        self._routes.append(route)
        return route

    def route(self, path: str, method: Optional[str] = None, prefix: bool = False):
        """Decorator form of add_route()."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method=method, prefix=prefix)
            return handler
        return decorator

    def get(self, path: str, prefix: bool = False):
        return self.route(path, method="GET", prefix=prefix)

    def post(self, path: str, prefix: bool = False):
        return self.route(path, method="POST", prefix=prefix)

    @property
    def routes(self) -> List[Route]:
        return list(self._routes)

    # =========================================================================
    # MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[Route]:
        """First route matching the method and path, or None."""
        for route in self._routes:
            if route.matches(method, path):
                return route
        return None

    def __len__(self) -> int:
        return len(self._routes)
