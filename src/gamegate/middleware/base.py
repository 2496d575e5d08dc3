"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Middleware wraps the gateway's front door (Chain of Responsibility): each
stage sees the request on the way in and the response on the way out, and
may short-circuit by returning a response without calling ``next``.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   Request ─────────────────────────────────────────────►            │
    │                                                                     │
    │   ┌──────────┐    ┌──────────┐    ┌──────────────────────────┐      │
    │   │ Logging  │───►│  (yours) │───►│ Gateway.handle           │      │
    │   │    MW    │    │    MW    │    │ route → method → auth →  │      │
    │   └──────────┘    └──────────┘    │ API | static             │      │
    │                                   └──────────────────────────┘      │
    │   ◄───────────────────────────────────────────── Response           │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

By the time a response reaches middleware, gateway errors have already been
turned into ``{"error": ...}`` responses, so middleware always sees a
response and never a GatewayError.

=============================================================================
"""

from abc import ABC, abstractmethod
from functools import partial
from typing import Callable, List, Optional, Union
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware, or the final handler
NextHandler = Callable[[HTTPRequest], HTTPResponse]
MiddlewareFunc = Callable[[HTTPRequest, NextHandler], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class StampMiddleware(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Gateway", "gamegate")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Process the request, normally by calling ``next(request)``."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered middleware list; first added is outermost.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        pipeline.add(stamp)                  # plain (request, next) function
        handler = pipeline.wrap(gateway.handle)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Union[Middleware, MiddlewareFunc]) -> "MiddlewarePipeline":
        if not isinstance(middleware, Middleware):
            middleware = FunctionMiddleware(middleware)
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around ``handler``.

        [MW1, MW2] + handler  →  MW1 → MW2 → handler
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = partial(_call_middleware, middleware, current)
        return current


def _call_middleware(
    middleware: Middleware, next_handler: NextHandler, request: HTTPRequest
) -> HTTPResponse:
    return middleware(request, next_handler)


class FunctionMiddleware(Middleware):
    """Wraps a plain ``(request, next) -> response`` function as middleware."""

    def __init__(
        self,
        func: MiddlewareFunc,
        name: Optional[str] = None
    ):
        self._func = func
        self._name = name or getattr(func, "__name__", type(func).__name__)

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        return self._func(request, next)

    @property
    def name(self) -> str:
        return self._name
