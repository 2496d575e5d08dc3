"""
=============================================================================
ADMINISTRATIVE API
=============================================================================

Four fixed JSON endpoints over the game host:

    ┌───────────────────────────┬──────────────┬───────────────────────────┐
    │ Path                      │ Parameters   │ Response                  │
    ├───────────────────────────┼──────────────┼───────────────────────────┤
    │ /server/console/execute   │ command      │ success, command,         │
    │                           │              │ output, error             │
    │ /api/players              │ -            │ success, count, players   │
    │ /api/player/inventory     │ name         │ success, player,          │
    │                           │              │ inventory                 │
    │ /api/player/isadmin       │ name         │ success, player, isAdmin  │
    └───────────────────────────┴──────────────┴───────────────────────────┘

An endpoint is reached only through a configured route whose path is
EXACTLY the endpoint path, and only after the route's method and auth
checks passed. Parameters are URL-decoded (unlike the ``key`` credential).

Example:
    GET /api/player/inventory?name=Steve

    {"success": true, "player": "Steve", "inventory": [
        {"slot": 0, "id": 276, "damage": 0, "count": 1},
        {"slot": 4, "id": 364, "damage": 0, "count": 32}
    ]}

=============================================================================
"""

import logging
from typing import Callable, Dict, Optional

from ..errors import EntityNotFound, HandlerFailure, MissingParameter
from ..host import CommandCapture, GameHost, INVENTORY_SIZE
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, json_response
from ..http.router import Route


logger = logging.getLogger(__name__)

EndpointHandler = Callable[[HTTPRequest], HTTPResponse]

CONSOLE_EXECUTE = "/server/console/execute"
PLAYERS = "/api/players"
PLAYER_INVENTORY = "/api/player/inventory"
PLAYER_ISADMIN = "/api/player/isadmin"


class ApiDispatcher:
    """
    Routes the built-in endpoint paths to handlers bound to a GameHost.

    Usage:
        api = ApiDispatcher(host)
        if api.handles(route):
            response = api.dispatch(route, request)
    """

    def __init__(self, host: GameHost):
        self.host = host
        self._endpoints: Dict[str, EndpointHandler] = {
            CONSOLE_EXECUTE: self.console_execute,
            PLAYERS: self.players,
            PLAYER_INVENTORY: self.player_inventory,
            PLAYER_ISADMIN: self.player_isadmin,
        }

    def handles(self, route: Route) -> bool:
        """Whether ``route`` is bound to a built-in endpoint."""
        return route.path in self._endpoints

    def dispatch(self, route: Route, request: HTTPRequest) -> HTTPResponse:
        return self._endpoints[route.path](request)

    # ─────────────────────────────────────────────────────────────────────
    # Endpoints
    # ─────────────────────────────────────────────────────────────────────

    def console_execute(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run a console command and return what it printed.

        ``output`` and ``error`` are the trimmed captured text, or null when
        the command wrote nothing to that stream.
        """
        command = _require(request, "command")
        capture = CommandCapture()

        try:
            success = self.host.dispatch_command(command, capture)
        except Exception as e:
            logger.exception(f"Console command failed: {command!r}")
            raise HandlerFailure(f"Command execution failed: {e}") from e

        logger.info(f"Console command {command!r} → success={success}")

        return json_response({
            "success": bool(success),
            "command": command,
            "output": capture.output(),
            "error": capture.error(),
        })

    def players(self, request: HTTPRequest) -> HTTPResponse:
        names = self.host.online_players()
        return json_response({
            "success": True,
            "count": len(names),
            "players": names,
        })

    def player_inventory(self, request: HTTPRequest) -> HTTPResponse:
        name = _require(request, "name")

        player = self.host.get_player(name)
        if player is None:
            raise EntityNotFound("Player not found")

        inventory = []
        for slot in range(INVENTORY_SIZE):
            item = player.get_item(slot)
            if item.is_empty:
                continue
            inventory.append({
                "slot": slot,
                "id": item.id,
                "damage": item.damage,
                "count": item.count,
            })

        return json_response({
            "success": True,
            "player": name,
            "inventory": inventory,
        })

    def player_isadmin(self, request: HTTPRequest) -> HTTPResponse:
        # Offline or unknown players are simply not admins
        name = _require(request, "name")
        return json_response({
            "success": True,
            "player": name,
            "isAdmin": self.host.is_op(name),
        })


def _require(request: HTTPRequest, name: str) -> str:
    """Decoded query parameter ``name``; missing or empty → 400."""
    value: Optional[str] = request.get_query(name)
    if not value:
        raise MissingParameter(name)
    return value
