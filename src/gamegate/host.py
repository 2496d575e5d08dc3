"""
=============================================================================
HOST APPLICATION INTERFACE
=============================================================================

The gateway runs inside a game server and never touches game state
directly. Everything it needs from the game goes through GameHost:

    ┌──────────────────────┐         ┌──────────────────────────────────┐
    │   ApiDispatcher      │ ──────► │  GameHost                        │
    │                      │         │                                  │
    │  /server/console/... │         │  dispatch_command(cmd, capture)  │
    │  /api/players        │         │  online_players()                │
    │  /api/player/...     │         │  get_player(name)                │
    └──────────────────────┘         └──────────────────────────────────┘

A real deployment subclasses GameHost over the game's own objects.
InMemoryHost is a complete implementation backed by plain Python data; the
CLI runs on it and the tests use it as the fake game.

=============================================================================
COMMAND OUTPUT CAPTURE
=============================================================================

Console commands print their results. Instead of swapping sys.stdout for
the whole process, each invocation gets its own CommandCapture and the host
writes into it:

    capture = CommandCapture()
    ok = host.dispatch_command("list", capture)
    capture.output()    # "There are 2 players online: Steve, Alex"
    capture.error()     # None

Two concurrent commands can never see each other's text, and a command that
raises leaves no redirected stream behind.

=============================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional
import io
import threading


# Main inventory slots reported by /api/player/inventory (hotbar + storage)
INVENTORY_SIZE = 36


@dataclass(frozen=True)
class ItemStack:
    """One inventory slot. id 0 (air) or count 0 means the slot is empty."""

    id: int = 0
    damage: int = 0
    count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.id == 0 or self.count <= 0


EMPTY_SLOT = ItemStack()


@dataclass
class Player:
    """
    A connected player as seen by the gateway.

    Attributes:
        name:       Display name
        op:         Whether the player has operator (admin) privileges
        inventory:  Slot index → ItemStack; missing slots are empty
    """

    name: str
    op: bool = False
    inventory: Dict[int, ItemStack] = field(default_factory=dict)

    def get_item(self, slot: int) -> ItemStack:
        return self.inventory.get(slot, EMPTY_SLOT)


class CommandCapture:
    """Per-invocation sink for a console command's output and diagnostics."""

    def __init__(self):
        self.out = io.StringIO()
        self.err = io.StringIO()

    def output(self) -> Optional[str]:
        """Captured output, trimmed; None when nothing was written."""
        return self.out.getvalue().strip() or None

    def error(self) -> Optional[str]:
        """Captured diagnostic text, trimmed; None when nothing was written."""
        return self.err.getvalue().strip() or None


class GameHost(ABC):
    """
    Capabilities the gateway consumes from the game server.

    Implementations are called from worker threads and must be safe to call
    while the game itself keeps running.
    """

    @abstractmethod
    def dispatch_command(self, command: str, capture: CommandCapture) -> bool:
        """
        Run a console command as the server console.

        Output goes to ``capture.out``, diagnostics to ``capture.err``.

        Returns:
            Whether the command was recognized and executed.
        """

    @abstractmethod
    def online_players(self) -> List[str]:
        """Names of the currently connected players."""

    @abstractmethod
    def get_player(self, name: str) -> Optional[Player]:
        """Look up a connected player, or None if not online."""

    def is_op(self, name: str) -> bool:
        """Whether ``name`` is online and has operator privileges."""
        player = self.get_player(name)
        return player is not None and player.op


CommandFunc = Callable[[List[str], CommandCapture, "InMemoryHost"], bool]


class InMemoryHost(GameHost):
    """
    GameHost backed by plain Python data.

    Usage:
        host = InMemoryHost()
        host.add_player(Player("Steve", op=True))

        @host.command("say")
        def say(args, capture, host):
            capture.out.write(" ".join(args))
            return True

    Player lookup is case-insensitive, like most game servers. A few
    built-in commands (list, op, deop, kick) work out of the box.
    """

    def __init__(self, players: Iterable[Player] = ()):
        self._lock = threading.Lock()
        self._players: Dict[str, Player] = {}
        self._commands: Dict[str, CommandFunc] = {
            "list": _cmd_list,
            "op": _cmd_op,
            "deop": _cmd_deop,
            "kick": _cmd_kick,
        }
        for player in players:
            self.add_player(player)

    # ─────────────────────────────────────────────────────────────────────
    # Game state
    # ─────────────────────────────────────────────────────────────────────

    def add_player(self, player: Player) -> Player:
        with self._lock:
            self._players[player.name.lower()] = player
        return player

    def remove_player(self, name: str) -> Optional[Player]:
        with self._lock:
            return self._players.pop(name.lower(), None)

    def command(self, name: str) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator registering a console command."""
        def decorator(func: CommandFunc) -> CommandFunc:
            self._commands[name.lower()] = func
            return func
        return decorator

    # ─────────────────────────────────────────────────────────────────────
    # GameHost
    # ─────────────────────────────────────────────────────────────────────

    def dispatch_command(self, command: str, capture: CommandCapture) -> bool:
        parts = command.strip().lstrip("/").split()
        if not parts:
            return False

        func = self._commands.get(parts[0].lower())
        if func is None:
            capture.err.write(f"Unknown command: {parts[0]}\n")
            return False

        return func(parts[1:], capture, self)

    def online_players(self) -> List[str]:
        with self._lock:
            return [player.name for player in self._players.values()]

    def get_player(self, name: str) -> Optional[Player]:
        with self._lock:
            return self._players.get(name.lower())


# =============================================================================
# BUILT-IN COMMANDS
# =============================================================================

def _cmd_list(args: List[str], capture: CommandCapture, host: InMemoryHost) -> bool:
    names = host.online_players()
    capture.out.write(f"There are {len(names)} players online: {', '.join(names)}\n")
    return True


def _set_op(args, capture, host, value: bool) -> bool:
    if not args:
        capture.err.write("Usage: op|deop <player>\n")
        return False

    player = host.get_player(args[0])
    if player is None:
        capture.err.write(f"Player not found: {args[0]}\n")
        return False

    player.op = value
    verb = "Opped" if value else "De-opped"
    capture.out.write(f"{verb} {player.name}\n")
    return True


def _cmd_op(args, capture, host) -> bool:
    return _set_op(args, capture, host, True)


def _cmd_deop(args, capture, host) -> bool:
    return _set_op(args, capture, host, False)


def _cmd_kick(args, capture, host) -> bool:
    if not args:
        capture.err.write("Usage: kick <player>\n")
        return False

    player = host.remove_player(args[0])
    if player is None:
        capture.err.write(f"Player not found: {args[0]}\n")
        return False

    capture.out.write(f"Kicked {player.name}\n")
    return True
