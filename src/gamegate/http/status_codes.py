"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes the gateway actually emits, with their reason phrases.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    GATEWAY STATUS MAP                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   200 OK                    File served / API call succeeded        │
    │   400 Bad Request           Missing parameter, malformed request    │
    │   401 Unauthorized          Credential missing or rejected          │
    │   404 Not Found             Route, file or player unknown;          │
    │                             traversal attempts also land here       │
    │   405 Method Not Allowed    Method not in the route's allow-list    │
    │   408 Request Timeout       Client stalled while sending            │
    │   413 Payload Too Large     Request exceeds max_request_size        │
    │   500 Internal Server Error Handler raised                          │
    │   503 Service Unavailable   Worker queue full                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Traversal attempts answer 404 rather than 403 so a client cannot tell an
existing-but-protected path from a missing one.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an IntEnum.

    Members compare equal to their integer value, so both
    ``response.status == 404`` and ``response.status == HTTPStatus.NOT_FOUND``
    work in handlers and tests.

        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx
    OK = 200

    # 4xx
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    # 5xx
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line (``HTTP/1.1 200 OK``)."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
