"""
=============================================================================
GATEWAY CONFIGURATION
=============================================================================

Two layers of configuration:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     CONFIGURATION SOURCES                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   GatewayConfig (this dataclass)                                    │
    │     └── how the process runs: port, workers, timeouts, logging      │
    │         from code, GAMEGATE_* environment variables, or CLI flags   │
    │                                                                     │
    │   <data_dir>/routes.yml, <data_dir>/keys.yml                        │
    │     └── what the gateway serves and who may use it                  │
    │         loaded ONCE at startup, read-only afterwards                │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
routes.yml
=============================================================================

    routes:
      - path: /                      # URL prefix (required)
        dir: web                     # directory under data_dir ("" = data_dir)
        index: index.html            # served for the route's root
        allow: [GET]                 # methods (required, any case)
      - path: /api/players
        allow: [GET]
        auth: true                   # credential required
        key: only-this-one           # optional; replaces keys.yml for this route

Entries without ``path`` or ``allow`` are skipped with a warning.

=============================================================================
keys.yml
=============================================================================

    keys:
      - 3f9a1c...
      - another-key

Missing files are created with the defaults below, so a fresh install
serves ``web/index.html`` and locks every API route behind an (empty, so
unusable) key list until an operator adds a key.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, FrozenSet, Optional, Union

import yaml

from .errors import ConfigError
from .http.router import Route, RouteTable


logger = logging.getLogger(__name__)


DEFAULT_ROUTES_YAML = """\
# Routes served by gamegate. The longest matching path wins.
routes:
  - path: /
    dir: web
    index: index.html
    allow: [GET]
    auth: false

  - path: /server/console/execute
    allow: [GET, POST]
    auth: true

  - path: /api/players
    allow: [GET]
    auth: true

  - path: /api/player/inventory
    allow: [GET]
    auth: true

  - path: /api/player/isadmin
    allow: [GET]
    auth: true
"""

DEFAULT_KEYS_YAML = """\
# Credentials accepted on routes with auth: true (and no route-specific key).
# Send as "Authorization: Bearer <key>" or "?key=<key>".
keys: []
"""


@dataclass
class GatewayConfig:
    """
    Process-level settings for the gateway.

    Development:
        GatewayConfig(host="127.0.0.1", data_dir="./data", log_level="DEBUG")

    Inside a game server:
        GatewayConfig(port=8080, data_dir="plugins/gamegate")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    port: int = 8080

    backlog: int = 128
    """Maximum number of queued connections."""

    buffer_size: int = 8192
    """Size of each socket read in bytes."""

    timeout: Optional[float] = 30.0
    """
    Socket read timeout in seconds (None = block forever).
    A client that sends nothing for this long gets 408.
    """

    max_request_size: int = 1024 * 1024
    """Largest request (headers + body) accepted; larger → 413."""

    # ─────────────────────────────────────────────────────────────────────
    # DATA
    # ─────────────────────────────────────────────────────────────────────

    data_dir: str = "."
    """Base folder: holds routes.yml, keys.yml and every route's dir."""

    routes_file: str = "routes.yml"
    keys_file: str = "keys.yml"

    max_file_size: Optional[int] = None
    """Largest static file buffered in memory (None = no ceiling)."""

    # ─────────────────────────────────────────────────────────────────────
    # WORKERS
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 1
    """Requests handled concurrently. 1 serializes every request."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    server_name: str = "gamegate/1.0"
    """Value of the Server response header."""

    @property
    def routes_path(self) -> Path:
        return Path(self.data_dir) / self.routes_file

    @property
    def keys_path(self) -> Path:
        return Path(self.data_dir) / self.keys_file

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """
        Create configuration from environment variables.

            GAMEGATE_HOST           bind address (default: 0.0.0.0)
            GAMEGATE_PORT           port (default: 8080)
            GAMEGATE_DATA_DIR       data folder (default: .)
            GAMEGATE_WORKERS        worker threads (default: 1)
            GAMEGATE_TIMEOUT        read timeout in seconds (default: 30)
            GAMEGATE_MAX_FILE_SIZE  static file ceiling in bytes (default: none)
            GAMEGATE_LOG_LEVEL      logging level (default: INFO)
            GAMEGATE_LOG_FORMAT     text or json (default: text)

        Example:
            GAMEGATE_PORT=9000 GAMEGATE_DATA_DIR=/srv/gate python -m gamegate
        """
        max_file_size = os.getenv("GAMEGATE_MAX_FILE_SIZE")

        return cls(
            host=os.getenv("GAMEGATE_HOST", "0.0.0.0"),
            port=int(os.getenv("GAMEGATE_PORT", "8080")),
            data_dir=os.getenv("GAMEGATE_DATA_DIR", "."),
            workers=int(os.getenv("GAMEGATE_WORKERS", "1")),
            timeout=float(os.getenv("GAMEGATE_TIMEOUT", "30")),
            max_file_size=int(max_file_size) if max_file_size else None,
            log_level=os.getenv("GAMEGATE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("GAMEGATE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """Fail fast on impossible settings (raises ValueError)."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.workers < 1:
            raise ValueError("workers must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_file_size is not None and self.max_file_size < 0:
            raise ValueError("max_file_size must be >= 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")

        if logging.getLevelName(self.log_level.upper()) not in (
            logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL
        ):
            raise ValueError(f"Unknown log_level: {self.log_level}")


# =============================================================================
# ROUTES AND KEYS
# =============================================================================

def load_routes(path: Union[str, Path]) -> RouteTable:
    """
    Load the route table from ``path``, writing the default file if missing.

    Raises:
        ConfigError: unreadable file, invalid YAML, or an invalid route set
                     (duplicate, empty, or relative paths).
    """
    data = _load_yaml(Path(path), DEFAULT_ROUTES_YAML)
    entries = data.get("routes") or []

    if not isinstance(entries, list):
        raise ConfigError(f"{path}: 'routes' must be a list")

    routes = []
    for position, entry in enumerate(entries):
        route = _parse_route(entry, position, path)
        if route is not None:
            routes.append(route)

    try:
        return RouteTable(routes)
    except ConfigError as e:
        logger.warning(f"Rejected {path}: {e}")
        raise ConfigError(f"{path}: {e}") from e


def load_keys(path: Union[str, Path]) -> FrozenSet[str]:
    """Load the allowed key set from ``path``, writing the default file if missing."""
    data = _load_yaml(Path(path), DEFAULT_KEYS_YAML)
    keys = data.get("keys") or []

    if not isinstance(keys, list):
        raise ConfigError(f"{path}: 'keys' must be a list")

    # Numeric-looking keys come back from YAML as int
    return frozenset(str(key) for key in keys if key is not None and str(key))


def _parse_route(entry: Any, position: int, source: Union[str, Path]) -> Optional[Route]:
    if not isinstance(entry, dict):
        logger.warning(f"{source}: skipping route #{position}: not a mapping")
        return None

    path = entry.get("path")
    allow = entry.get("allow")

    if path is None or allow is None:
        logger.warning(f"{source}: skipping route #{position}: 'path' and 'allow' are required")
        return None

    if isinstance(allow, str):
        allow = [allow]

    auth = entry.get("auth", False)
    if not isinstance(auth, bool):
        raise ConfigError(f"{source}: route {path}: 'auth' must be true or false, got {auth!r}")

    key = entry.get("key")

    return Route(
        path=str(path),
        dir=str(entry.get("dir") or ""),
        index=str(entry["index"]) if entry.get("index") else None,
        allow=frozenset(str(method).upper() for method in allow),
        auth=auth,
        key=str(key) if key is not None else None,
    )


def _load_yaml(path: Path, default_text: str) -> dict:
    """Read a YAML mapping, creating ``path`` from ``default_text`` first if needed."""
    try:
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(default_text, encoding="utf-8")
            logger.info(f"Created default {path}")

        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    return data
