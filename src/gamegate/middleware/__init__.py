"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting stages wrapped around the gateway's front door.

    base.py      Middleware, MiddlewarePipeline, FunctionMiddleware
    logging.py   LoggingMiddleware: one access-log line per exchange

The gateway installs LoggingMiddleware itself; extra stages are added with
``Gateway.use(...)`` before start(): a Middleware instance or a plain
``(request, next)`` function.

=============================================================================
"""

from .base import (
    Middleware,
    MiddlewarePipeline,
    NextHandler,
    FunctionMiddleware,
)
from .logging import LoggingMiddleware, RequestLog, redact_query

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "FunctionMiddleware",
    "LoggingMiddleware",
    "RequestLog",
    "redact_query",
]
