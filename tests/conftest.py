"""
pytest configuration and fixtures.
"""

import socket
from typing import Callable, Dict, Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gamegate import Gateway, GatewayConfig
from gamegate.host import InMemoryHost, ItemStack, Player
from gamegate.http import HTTPRequest, RequestParser
from gamegate.http.router import Route, RouteTable


VALID_KEY = "good-key"
ROUTE_KEY = "secret"

INDEX_HTML = b"<!doctype html><title>panel</title>"
SITE_CSS = b"body { color: #333; }"
APP_JS = b"console.log('gamegate');"


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """
    A data folder laid out like a real install:

        <tmp>/data/web/index.html
        <tmp>/data/public/index.html, css/site.css, js/app.js, notes.txt
        <tmp>/data/public/empty/                (directory)
        <tmp>/outside.txt                       (must never be served)
    """
    root = tmp_path / "data"

    web = root / "web"
    web.mkdir(parents=True)
    (web / "index.html").write_bytes(INDEX_HTML)

    public = root / "public"
    (public / "css").mkdir(parents=True)
    (public / "js").mkdir()
    (public / "empty").mkdir()
    (public / "index.html").write_bytes(INDEX_HTML)
    (public / "css" / "site.css").write_bytes(SITE_CSS)
    (public / "js" / "app.js").write_bytes(APP_JS)
    (public / "notes.txt").write_text("read me", encoding="utf-8")

    (tmp_path / "outside.txt").write_text("top secret", encoding="utf-8")

    return root


@pytest.fixture
def host() -> InMemoryHost:
    """A game with an op (Steve) and a regular player (Alex)."""
    steve = Player("Steve", op=True, inventory={
        0: ItemStack(id=276, damage=0, count=1),
        4: ItemStack(id=364, damage=0, count=32),
        7: ItemStack(id=0, damage=0, count=0),     # air
        40: ItemStack(id=310, damage=5, count=1),  # armor slot, not reported
    })
    alex = Player("Alex")
    return InMemoryHost([steve, alex])


@pytest.fixture
def routes() -> RouteTable:
    return RouteTable([
        Route("/", dir="web", index="index.html"),
        Route("/static", dir="public", index="index.html"),
        Route("/docs", dir="public"),
        Route("/admin", dir="public", index="index.html", auth=True, key=ROUTE_KEY),
        Route("/server/console/execute", allow=frozenset({"GET", "POST"}), auth=True),
        Route("/api/players", auth=True),
        Route("/api/player/inventory", auth=True),
        Route("/api/player/isadmin", auth=True),
    ])


@pytest.fixture
def config(data_dir: Path) -> GatewayConfig:
    """Test configuration: loopback, OS-chosen port, short timeout."""
    return GatewayConfig(
        host="127.0.0.1",
        port=0,
        data_dir=str(data_dir),
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def gateway(config: GatewayConfig, routes: RouteTable, host: InMemoryHost) -> Gateway:
    return Gateway(config, routes, {VALID_KEY}, host)


@pytest.fixture
def live_gateway(gateway: Gateway) -> Generator[Gateway, None, None]:
    """The gateway listening on a free port."""
    gateway.start()
    yield gateway
    gateway.stop()


@pytest.fixture
def make_request() -> Callable[..., HTTPRequest]:
    """
    Build a request the way the server does: from raw bytes.

        make_request("/api/players", headers={"Authorization": "Bearer x"})
    """
    parser = RequestParser()

    def build(
        target: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
    ) -> HTTPRequest:
        lines = [f"{method} {target} HTTP/1.1", "Host: localhost"]
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")
        raw = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
        return parser.parse(raw, ("127.0.0.1", 50000))

    return build


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def bearer(key: str = VALID_KEY) -> Dict[str, str]:
    return {"Authorization": f"Bearer {key}"}
