"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read from a client socket into an HTTPRequest.

=============================================================================
WHAT THE GATEWAY NEEDS FROM A REQUEST
=============================================================================

    GET /api/player/inventory?name=Steve&key=s3cr3t HTTP/1.1\r\n
    ─┬─ ───────────┬───────── ──────────┬────────── ────┬───
     │             │                    │               │
   method        path            raw query string    version

    Host: game.example:8080\r\n
    Authorization: Bearer s3cr3t\r\n      ← credential, checked per route
    \r\n

The pipeline only ever reads the method, the URL-decoded path, the RAW query
string (credentials are matched undecoded, see query.py) and the headers.
The body is parsed for completeness but no endpoint consumes it.

=============================================================================
WHAT THE PARSER DOES NOT DO
=============================================================================

It does NOT reject ".." in the path. Traversal is decided by the static
handler against the canonical filesystem location, which is the only place
that can tell "/static/a/../b.css" (harmless) from "/static/../../etc/passwd"
(escape). Rejecting here would also turn the latter into a 400 instead of the
uniform 404 every other denied file gets.

It does NOT restrict the method token to a fixed list. Whether "DELETE" or
"PURGE" is acceptable is the matched route's decision (405 from its
allow-list), and the token is upper-cased so "get" and "GET" are the same.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, List
from urllib.parse import unquote
import re

from .query import decoded_param, raw_param


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code to answer with:

        400 Bad Request                 - Malformed request syntax
        413 Payload Too Large           - Request exceeds size limit
        505 HTTP Version Not Supported  - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    One instance exists per exchange and is owned by the worker handling it.

    Attributes:
        method:         Upper-cased method token ("GET", "POST", ...)
        path:           URL-decoded path without the query string
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        Header map with LOWERCASE names (repeats folded)
        header_lists:   Every value of each header, in arrival order
        query_string:   Raw query string exactly as sent (no leading "?")
        body:           Raw body bytes (Content-Length bounded)
        client_address: (ip, port) of the peer, for logging
        raw:            Original request bytes
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    header_lists: Dict[str, List[str]] = field(default_factory=dict, repr=False)
    query_string: str = ""
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)
    raw: bytes = field(default=b"", repr=False)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup).

        Example:
            auth = request.get_header("Authorization")
        """
        return self.headers.get(name.lower(), default)

    def header_values(self, name: str) -> List[str]:
        """
        Every value sent for a header, unfolded, in arrival order.

        Example:
            # Authorization: Basic dXNlcjpwdw==
            # Authorization: Bearer s3cr3t
            request.header_values("authorization")
            # Returns ["Basic dXNlcjpwdw==", "Bearer s3cr3t"]
        """
        name = name.lower()
        if name in self.header_lists:
            return list(self.header_lists[name])
        if name in self.headers:
            return [self.headers[name]]
        return []

    def get_query(self, name: str) -> Optional[str]:
        """
        Get the URL-decoded value of the first ``name=`` query pair.

        Example:
            # URL: /api/player/isadmin?name=Steve%20Jr
            request.get_query("name")  # Returns "Steve Jr"
        """
        return decoded_param(self.query_string, name)

    def get_raw_query(self, name: str) -> Optional[str]:
        """Get the undecoded value of the first ``name=`` query pair."""
        return raw_param(self.query_string, name)


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSING STEPS
    ==========================================================================

        1. Size check                  too large → HTTPParseError(413)
        2. Split at \\r\\n\\r\\n           missing → HTTPParseError(400)
        3. Request line                METHOD SP URI SP VERSION
        4. Headers                     "Name: Value", names lower-cased
        5. Body                        exactly Content-Length bytes

    ==========================================================================
    """

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Za-z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from socket.
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_string, version = self._parse_request_line(lines[0])
        header_lists = self._parse_headers(lines[1:])
        headers = {name: ", ".join(values) for name, values in header_lists.items()}

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")

        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            header_lists=header_lists,
            query_string=query_string,
            body=body[:content_length],
            client_address=client_address,
            raw=data,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str, str]:
        """
        Parse the request line into (method, path, raw query, version).

        The URI is split on the FIRST "?" only; the path is URL-decoded,
        the query string is kept byte-for-byte.
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        # Fragments never reach a server, but tolerate clients that send them
        uri = uri.split("#", 1)[0]
        raw_path, _, query_string = uri.partition("?")

        path = unquote(raw_path, encoding="utf-8", errors="replace")
        if not path.startswith("/"):
            raise HTTPParseError(f"Invalid request target: {uri}")

        return method.upper(), path, query_string, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, List[str]]:
        """
        Parse header lines into lowercase name → list of values.

        Repeated headers keep one entry per occurrence; parse() folds them
        into the comma-separated ``headers`` view (RFC 7230). Obsolete line
        folding (continuation lines starting with whitespace) is appended to
        the previous value. Malformed lines are skipped.
        """
        headers: Dict[str, List[str]] = {}
        current: Optional[List[str]] = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current is not None:
                    current[-1] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            current = headers.setdefault(name.strip().lower(), [])
            current.append(value.strip())

        return headers
