"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the gateway.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                               │
    │  • Binds the listening socket, runs the accept() loop               │
    │  • Graceful shutdown on SIGINT/SIGTERM (main thread only)           │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ new connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          WORKER POOL                                │
    │  • Fixed number of workers (default 1: strictly serialized)         │
    │  • Bounded queue; a full queue means 503                            │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ worker picks it up
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                 │
    │  • Buffered read of ONE request, timeout and size limits            │
    │  • sendall() of the response, then close                            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, RequestTooLarge
from .worker_pool import WorkerPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "RequestTooLarge",
    "WorkerPool",
]
