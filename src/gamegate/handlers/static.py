"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves files from a route's directory under the gateway's data folder.

=============================================================================
FROM URL TO FILE
=============================================================================

    data_dir = /srv/game/plugins/gamegate
    route    = Route("/static", dir="public", index="index.html")

    GET /static/css/site.css
        relative  = "/css/site.css"               (route prefix stripped)
        base      = /srv/game/plugins/gamegate/public
        target    = base / "css/site.css"

    GET /static   or   GET /static/
        relative  = "/index.html"                 (route's index file)

    GET /static   on a route without an index
        → 404 {"error": "Index file not defined for /static"}

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

A request can try to climb out of the route's directory:

    GET /static/../../../etc/passwd
    GET /static/%2e%2e/%2e%2e/etc/passwd          (decoded by the parser)
    GET /static/link-to-root/etc/passwd           (symlink inside base)

The guard is the same in every case: resolve the target (normalizes ".."
and follows symlinks), then require it to still be inside the resolved base:

    full_path = (base / relative).resolve()
    full_path.relative_to(base.resolve())   # Raises if outside base!

An escape is answered with 404 "Access denied", never 403, so a client cannot
tell "exists but forbidden" from "does not exist".

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..errors import AccessDenied, EntityNotFound, HandlerFailure
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.router import Route
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Serves static files for routes in static mode.

    Usage:
        handler = StaticFileHandler("/srv/gamegate", max_file_size=10 * 1024 * 1024)
        response = handler.serve(route, "/static/app.js")

    Files are read fully into memory. ``max_file_size`` (bytes) caps what
    will be buffered; None means no ceiling.

    Raises from serve():
        EntityNotFound  - no index configured, missing file, or a directory
        AccessDenied    - target resolves outside the route's directory
        HandlerFailure  - read error, or file above max_file_size
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        max_file_size: Optional[int] = None,
    ):
        self.data_dir = Path(data_dir)
        self.max_file_size = max_file_size

    def base_dir(self, route: Route) -> Path:
        """The route's directory ("" means the data folder itself)."""
        return self.data_dir / route.dir if route.dir else self.data_dir

    def serve(self, route: Route, request_path: str) -> HTTPResponse:
        """
        Serve the file ``request_path`` maps to under ``route``.

        Args:
            route: The matched route.
            request_path: URL-decoded request path (without query).

        Returns:
            200 response with the file bytes and its Content-Type.
        """
        relative = self._relative_path(route, request_path)
        base = self.base_dir(route)

        # ─────────────────────────────────────────────────────────────────
        # SECURITY: PATH TRAVERSAL CHECK
        # ─────────────────────────────────────────────────────────────────
        # The leading "/" is dropped so the remainder can never act as an
        # absolute path that replaces base.
        try:
            if "\x00" in relative:
                raise ValueError("embedded null byte")
            full_path = (base / relative.lstrip("/")).resolve()
            full_path.relative_to(base.resolve())
        except ValueError:
            # Outside base, or unrepresentable (e.g. embedded NUL byte)
            logger.warning(f"Path traversal attempt on {route.path}: {request_path!r}")
            raise AccessDenied()
        except OSError as e:
            # Name the filesystem cannot hold (ENAMETOOLONG, ELOOP, ...)
            logger.debug(f"Unresolvable path on {route.path}: {e}")
            raise EntityNotFound(f"File not found: {relative}")

        try:
            is_file = full_path.is_file()
        except OSError as e:
            logger.debug(f"Cannot stat {full_path}: {e}")
            is_file = False

        if not is_file:
            raise EntityNotFound(f"File not found: {relative}")

        content = self._read(full_path)

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .file(content, full_path.name)
            .build())

    def _relative_path(self, route: Route, request_path: str) -> str:
        relative = request_path[len(route.path):]

        if relative in ("", "/"):
            if not route.index:
                raise EntityNotFound(f"Index file not defined for {route.path}")
            relative = "/" + route.index

        return relative

    def _read(self, path: Path) -> bytes:
        try:
            if self.max_file_size is not None:
                size = path.stat().st_size
                if size > self.max_file_size:
                    logger.warning(
                        f"Refusing to buffer {path} ({size} bytes > {self.max_file_size})"
                    )
                    raise HandlerFailure("File too large")

            return path.read_bytes()

        except OSError as e:
            logger.error(f"Error serving file {path}: {e}")
            raise HandlerFailure("Failed to read file") from e
