"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Defines the middleware protocol and the pipeline that chains stages
around a terminal handler (Chain of Responsibility).

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     REQUEST / RESPONSE FLOW                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Request ──────────────────────────────────────────────►           │
    │                                                                     │
    │   ┌─────────┐   ┌─────────┐   ┌─────────────┐   ┌─────────┐   ┌───┐ │
    │   │ Version │──►│ Method  │──►│ Compression │──►│ Routing │──►│404│ │
    │   └─────────┘   └─────────┘   └─────────────┘   └─────────┘   └───┘ │
    │       │             │               ▲                │              │
    │    426 ◄┘        405 ◄┘             └── gzip body ◄──┘              │
    │                                                                     │
    │   ◄────────────────────────────────────────────── Response          │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Each stage may answer on its own (short-circuit) or call `next(request)`
and post-process what comes back.

=============================================================================
NO CLOSURES
=============================================================================

The pipeline keeps its stages in a tuple and walks it by index. `next`
is a tiny callable object holding (chain, index). Nothing captures
mutable state, and the stage list can be inspected or reordered before
wrap() without surprises.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Tuple
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware or the final handler
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class MyMiddleware(Middleware):
            def __call__(self, request, next):
                if not acceptable(request):
                    return bad_request()      # short-circuit
                response = next(request)      # continue the chain
                response.headers["X-Seen"] = "1"
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming request.
            next: The rest of the chain. Call it to continue.

        Returns:
            The response, from next() or produced here.
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered list of middleware; first added is outermost.

        pipeline = MiddlewarePipeline()
        pipeline.use(HTTPVersionMiddleware(), MethodMiddleware())
        handler = pipeline.wrap(not_found_handler)
        response = handler(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> "MiddlewareChain":
        """
        Freeze the current stage list around a terminal handler.

        Stages added afterwards do not affect chains already built.
        """
        return MiddlewareChain(tuple(self._middleware), handler)

    def __len__(self) -> int:
        return len(self._middleware)


class MiddlewareChain:
    """
    A built chain: callable as a plain handler.

    Dispatch for [A, B] around handler H:

        chain(req)
          └─► A(req, next=_Next(chain, 1))
                └─► B(req, next=_Next(chain, 2))
                      └─► H(req)
    """

    def __init__(self, stages: Tuple[Middleware, ...], terminal: NextHandler):
        self._stages = stages
        self._terminal = terminal

    @property
    def stages(self) -> Tuple[Middleware, ...]:
        return self._stages

    def __call__(self, request: HTTPRequest) -> HTTPResponse:
        return self._dispatch(request, 0)

    def _dispatch(self, request: HTTPRequest, index: int) -> HTTPResponse:
        if index >= len(self._stages):
            return self._terminal(request)
        return self._stages[index](request, _Next(self, index + 1))


class _Next:
    """Handle to the remainder of a chain, starting at `index`."""

    __slots__ = ("_chain", "_index")

    def __init__(self, chain: MiddlewareChain, index: int):
        self._chain = chain
        self._index = index

    def __call__(self, request: HTTPRequest) -> HTTPResponse:
        return self._chain._dispatch(request, self._index)
