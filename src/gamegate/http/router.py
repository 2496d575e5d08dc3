"""
=============================================================================
ROUTE TABLE
=============================================================================

Maps a request path to the ONE configured route responsible for it.

=============================================================================
PREFIX MATCHING
=============================================================================

Routes are path prefixes, not patterns. A route matches when the request
path IS the prefix, or continues it at a segment boundary:

    route "/static" matches:   /static
                               /static/
                               /static/css/site.css
    but not:                   /staticfiles          (no "/" boundary)

The root route "/" matches every non-empty path, which makes it the
catch-all for a site served from the top level.

When several routes match, the LONGEST prefix wins:

    routes:  "/"   "/api"   "/api/players"

    /api/players          → "/api/players"
    /api/player/isadmin   → "/api"
    /index.html           → "/"

Two routes with the same prefix would both match exactly the same paths,
so the table refuses to hold duplicates (see RouteTable.__init__). That
keeps the winner independent of configuration order.

=============================================================================
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, Optional

from ..errors import ConfigError


@dataclass(frozen=True)
class Route:
    """
    A configured route.

    Immutable once loaded; every worker reads the same instances.

    Attributes:
        path:   URL prefix ("/static", "/api/players", "/")
        dir:    Directory under the data folder for static serving
                ("" = the data folder itself)
        index:  File served for the route's root, or None
        allow:  Upper-case method tokens this route accepts
        auth:   Whether a credential is required
        key:    Route-specific credential; replaces the global key set
    """

    path: str
    dir: str = ""
    index: Optional[str] = None
    allow: FrozenSet[str] = frozenset({"GET"})
    auth: bool = False
    key: Optional[str] = None

    def matches(self, path: str) -> bool:
        """Check whether this route is responsible for ``path``."""
        if path == self.path or path.startswith(self.path + "/"):
            return True
        return self.path == "/" and bool(path)

    def allows(self, method: str) -> bool:
        """Case-insensitive method check against the allow-list."""
        return method.upper() in self.allow


class RouteTable:
    """
    Ordered, read-only collection of routes.

    Usage:
        table = RouteTable([
            Route("/", dir="web", index="index.html"),
            Route("/api/players", auth=True),
        ])

        route = table.resolve("/api/players")   # → the API route
        route = table.resolve("/missing")       # → the "/" route
    """

    def __init__(self, routes: Iterable[Route] = ()):
        self._routes: List[Route] = []
        seen = set()

        for route in routes:
            if not route.path or not route.path.startswith("/"):
                raise ConfigError(f"Route path must start with '/': {route.path!r}")
            if route.path in seen:
                raise ConfigError(f"Duplicate route path: {route.path}")
            seen.add(route.path)
            self._routes.append(route)

    def resolve(self, path: str) -> Optional[Route]:
        """
        Find the best (longest-prefix) route for ``path``.

        Returns:
            The matching Route, or None when nothing matches.
        """
        best: Optional[Route] = None

        for route in self._routes:
            if not route.matches(path):
                continue
            if best is None or len(route.path) > len(best.path):
                best = route

        return best

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def describe(self) -> List[str]:
        """
        One line per route, for the startup log.

        Example:
            GET,POST   /server/console/execute  auth=key
            GET        /                        dir=web index=index.html
        """
        lines = []
        for route in self._routes:
            methods = ",".join(sorted(route.allow)) or "-"
            details = []
            if route.auth:
                details.append("auth=key" if route.key else "auth=global")
            if route.dir:
                details.append(f"dir={route.dir}")
            if route.index:
                details.append(f"index={route.index}")
            lines.append(f"{methods:10} {route.path:24} {' '.join(details)}".rstrip())
        return lines
