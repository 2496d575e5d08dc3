"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Responses are built once per exchange and serialized with to_bytes():

    HTTP/1.1 200 OK\r\n                              ← status line
    Content-Type: application/json; charset=utf-8\r\n
    Content-Length: 48\r\n                           ← auto-calculated
    Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n          ← auto-added
    Server: gamegate/1.0\r\n                         ← auto-added
    Connection: close\r\n                            ← always, one exchange
    \r\n
    {"success": true, "count": 1, "players": ["Steve"]}

=============================================================================
JSON ENVELOPE
=============================================================================

Every JSON body is UTF-8 with non-ASCII characters left unescaped, so
player names like "Störtebeker" arrive readable. Errors always use the same
one-field shape:

    {"error": "<message>"}

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Union, Iterable
import json

from .status_codes import HTTPStatus
from .mime_types import get_content_type


JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    An HTTP response to be written to the client.

    Use ResponseBuilder or the helpers at the bottom of this module rather
    than constructing one field by field.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Status line, e.g. ``HTTP/1.1 404 Not Found``."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    @property
    def json(self) -> Any:
        """Decode a JSON body (used by tests and the access log)."""
        return json.loads(self.body.decode("utf-8"))

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "gamegate/1.0") -> bytes:
        """
        Serialize the response for ``socket.sendall()``.

        Content-Length, Date and Server are filled in when absent. The
        instance itself is not modified.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json({"success": True, "count": 0, "players": []})
            .build())

    Each method returns ``self`` except build().
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a raw body (strings are UTF-8 encoded)."""
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Set a JSON body and Content-Type.

        ensure_ascii=False keeps non-ASCII player names and command output
        readable instead of \\uXXXX-escaped.
        """
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = JSON_CONTENT_TYPE
        return self

    def file(self, content: bytes, filename: str) -> "ResponseBuilder":
        """Set a file body with Content-Type derived from ``filename``."""
        self._body = content
        self._headers["Content-Type"] = get_content_type(filename)
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Mon, 19 Oct 2026 12:00:00 GMT

    Built by hand because strftime's %a/%b follow the process locale.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def json_response(data: Any, status: HTTPStatus = HTTPStatus.OK) -> HTTPResponse:
    """Create a JSON response with the given status (200 by default)."""
    return ResponseBuilder().status(status).json(data).build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Create the uniform ``{"error": message}`` response."""
    return json_response({"error": message}, status)


def method_not_allowed(method: str, allowed: Iterable[str]) -> HTTPResponse:
    """
    Create a 405 response.

    Includes the Allow header listing the route's methods (RFC 7231).
    """
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(sorted(allowed)))
        .json({"error": f"Method {method} not allowed"})
        .build())
