"""
=============================================================================
GAMEGATE
=============================================================================

An embedded HTTP gateway for a game server: serves static web panels and a
handful of authenticated JSON endpoints over the running game.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   GET /                          → <data_dir>/web/index.html        │
    │   GET /api/players               → {"success": true, "count": 2,    │
    │                                     "players": ["Steve", "Alex"]}   │
    │   GET /api/player/inventory?name=Steve                              │
    │   GET /api/player/isadmin?name=Steve                                │
    │   GET /server/console/execute?command=list                          │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Routes and keys live in ``routes.yml`` and ``keys.yml`` inside the data
folder and are loaded once at startup.

=============================================================================
QUICK START
=============================================================================

    from gamegate import GatewayConfig, InMemoryHost, Player, create_gateway

    host = InMemoryHost([Player("Steve", op=True)])
    gateway = create_gateway(GatewayConfig(port=8080, data_dir="data"), host)
    gateway.start()

    # curl -H "Authorization: Bearer <key from data/keys.yml>" \\
    #      http://localhost:8080/api/players

Inside a game server, implement ``GameHost`` over the game's own objects and
wire the operator's ``/webserver on|off`` command to ``gateway.toggle(args)``.

Standalone:

    python -m gamegate --port 8080 --data-dir data

=============================================================================
"""

__version__ = "1.0.0"

from .server import Gateway, create_gateway
from .config import GatewayConfig, load_routes, load_keys
from .errors import GatewayError, ConfigError
from .host import GameHost, InMemoryHost, Player, ItemStack, CommandCapture

__all__ = [
    "Gateway",
    "create_gateway",
    "GatewayConfig",
    "load_routes",
    "load_keys",
    "GatewayError",
    "ConfigError",
    "GameHost",
    "InMemoryHost",
    "Player",
    "ItemStack",
    "CommandCapture",
    "__version__",
]
