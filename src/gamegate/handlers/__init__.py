"""
=============================================================================
HANDLERS MODULE
=============================================================================

The two kinds of work a matched route can lead to.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  ROUTE → HANDLER → RESPONSE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   route.path is a built-in endpoint?                                │
    │        │                                                            │
    │        ├── yes ──► ApiDispatcher       JSON over the game host      │
    │        │                                                            │
    │        └── no ───► StaticFileHandler   bytes from route.dir         │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Both raise GatewayError subclasses for every failure; the server turns them
into ``{"error": ...}`` responses.

=============================================================================
"""

from .api import ApiDispatcher
from .static import StaticFileHandler

__all__ = [
    "ApiDispatcher",
    "StaticFileHandler",
]
