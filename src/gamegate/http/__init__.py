"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Translates between socket bytes and the gateway's request/response objects,
and holds the per-request decisions that only need a parsed request.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py       bytes → HTTPRequest (method, path, raw query)      │
    │ response.py      HTTPResponse / ResponseBuilder → bytes             │
    │ status_codes.py  the status codes the gateway answers with          │
    │ mime_types.py    extension → Content-Type table                     │
    │ query.py         first-occurrence query parameter lookup            │
    │ router.py        Route, RouteTable (longest-prefix resolve)         │
    │ auth.py          credential extraction and admission               │
    └─────────────────────────────────────────────────────────────────────┘

router and auth are imported from their modules directly
(``from gamegate.http.router import Route``); they depend on
gamegate.errors, which itself imports status_codes from this package.

=============================================================================
"""

from .status_codes import HTTPStatus
from .mime_types import get_content_type, CONTENT_TYPES, DEFAULT_CONTENT_TYPE
from .query import raw_param, decoded_param
from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    json_response,
    error_response,
    method_not_allowed,
)

__all__ = [
    "HTTPStatus",
    "get_content_type",
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "raw_param",
    "decoded_param",
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "HTTPResponse",
    "ResponseBuilder",
    "json_response",
    "error_response",
    "method_not_allowed",
]
