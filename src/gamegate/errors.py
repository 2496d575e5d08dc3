"""
=============================================================================
GATEWAY ERRORS
=============================================================================

Every way a request can fail is an exception carrying the HTTP status and
the message that goes into the ``{"error": ...}`` body. Handlers raise, the
front door (server.py) catches GatewayError once and writes the response.

    ┌────────────────────┬────────┬─────────────────────────────────────┐
    │ Exception          │ Status │ Raised when                          │
    ├────────────────────┼────────┼─────────────────────────────────────┤
    │ RouteNotFound      │  404   │ no configured route matches the path │
    │ MethodNotAllowed   │  405   │ method not in the route's allow-list │
    │ Unauthorized       │  401   │ credential missing or rejected       │
    │ MissingParameter   │  400   │ required query parameter absent      │
    │ EntityNotFound     │  404   │ unknown player, file, or index       │
    │ AccessDenied       │  404   │ path escapes the route's directory   │
    │ HandlerFailure     │  500   │ a handler or host adapter raised     │
    └────────────────────┴────────┴─────────────────────────────────────┘

ConfigError is separate: it is raised while loading routes/keys at startup
and never reaches a client.

=============================================================================
"""

from typing import Iterable

from .http.status_codes import HTTPStatus


class GatewayError(Exception):
    """Base class for errors that map onto an HTTP error response."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class RouteNotFound(GatewayError):
    status = HTTPStatus.NOT_FOUND
    default_message = "Route not found"


class MethodNotAllowed(GatewayError):
    """
    The route exists but does not accept this method.

    Keeps the allow-list so the response can carry an Allow header.
    """

    status = HTTPStatus.METHOD_NOT_ALLOWED

    def __init__(self, method: str, allowed: Iterable[str]):
        self.method = method
        self.allowed = frozenset(allowed)
        super().__init__(f"Method {method} not allowed")


class Unauthorized(GatewayError):
    status = HTTPStatus.UNAUTHORIZED
    default_message = "Unauthorized"


class MissingParameter(GatewayError):
    status = HTTPStatus.BAD_REQUEST

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing parameter: {name}")


class EntityNotFound(GatewayError):
    status = HTTPStatus.NOT_FOUND
    default_message = "Not found"


class AccessDenied(GatewayError):
    # 404, not 403: a traversal attempt must look like a missing file
    status = HTTPStatus.NOT_FOUND
    default_message = "Access denied"


class HandlerFailure(GatewayError):
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"


class ConfigError(Exception):
    """Invalid or unreadable routes/keys configuration."""
