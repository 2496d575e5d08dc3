"""
=============================================================================
CONTENT TYPE DETECTION
=============================================================================

Maps a served file's extension to the Content-Type header value.

The table is deliberately small: the gateway serves web panels for a game
server (HTML, stylesheets, scripts, a handful of images). Anything else is
sent as UTF-8 plain text rather than application/octet-stream, so config
dumps and logs placed in a static directory open in the browser instead of
downloading.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   EXTENSION        CONTENT-TYPE                                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │   .html .htm       text/html; charset=utf-8                         │
    │   .css             text/css; charset=utf-8                          │
    │   .js              application/javascript; charset=utf-8            │
    │   .png             image/png                                        │
    │   .jpg .jpeg       image/jpeg                                       │
    │   .gif             image/gif                                        │
    │   .svg             image/svg+xml                                    │
    │   (anything else)  text/plain; charset=utf-8                        │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from pathlib import Path
from typing import Union


CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".htm": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}

DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"


def get_content_type(path: Union[str, Path]) -> str:
    """
    Get the Content-Type header value for a file.

    Matching is on the final suffix only and is case-sensitive, so
    ``INDEX.HTML`` falls through to the plain-text default.

    Examples:
        >>> get_content_type("web/index.html")
        'text/html; charset=utf-8'

        >>> get_content_type("logo.svg")
        'image/svg+xml'

        >>> get_content_type("server.properties")
        'text/plain; charset=utf-8'
    """
    if isinstance(path, str):
        path = Path(path)

    return CONTENT_TYPES.get(path.suffix, DEFAULT_CONTENT_TYPE)
