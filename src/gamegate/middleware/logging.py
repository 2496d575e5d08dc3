"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per exchange on the ``gamegate.access`` logger.

    text:
        10.0.0.7 - - [19/Oct/2026:12:00:00 +0000] "GET /api/players" 200 52 0.41ms

    json:
        {"request_id": "1a2b3c4d", "method": "GET", "path": "/api/players",
         "query": "", "client_ip": "10.0.0.7", "user_agent": "curl/8.0",
         "status_code": 200, "content_length": 52, "duration_ms": 0.41,
         "timestamp": "19/Oct/2026:12:00:00 +0000"}

The request id is echoed to the client as ``X-Request-ID`` so an operator
can find the line for a reported failure.

Credentials never reach the log: the ``key`` query parameter is replaced
with ``***`` and the Authorization header is not logged at all.

Route it elsewhere like any other logger:

    logging.getLogger("gamegate.access").addHandler(file_handler)

=============================================================================
"""

import time
import json
import uuid
import logging
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("gamegate.access")


def redact_query(query: str) -> str:
    """Mask every ``key=`` value in a raw query string."""
    if not query:
        return ""

    pairs = []
    for pair in query.split("&"):
        if pair.startswith("key="):
            pair = "key=***"
        pairs.append(pair)
    return "&".join(pairs)


@dataclass
class RequestLog:
    """One access-log entry."""

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache-like common log line, plus the duration."""
        target = f"{self.path}?{self.query}" if self.query else self.path
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware. Put it FIRST so it also sees requests that
    later stages reject.

        pipeline.add(LoggingMiddleware(log_format="json"))
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
    ):
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            query=redact_query(request.query_string),
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict(), ensure_ascii=False))
        else:
            logger.log(self.log_level, entry.to_text())

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        return response
