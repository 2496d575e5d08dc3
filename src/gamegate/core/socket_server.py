"""
=============================================================================
SOCKET SERVER
=============================================================================

The listening TCP socket and its accept loop.

    bind()            socket → setsockopt → bind → listen
    serve_forever()   accept → Connection → handler(conn)   (until shutdown)
    shutdown()        stop the loop; the listening socket is closed

Binding is separate from serving so the gateway can report "port in use"
synchronously from start() and then run the loop on a background thread.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR   restart immediately while old connections sit in TIME_WAIT
TCP_NODELAY    send small responses immediately (Nagle off)
accept timeout 1 second, so the loop notices shutdown() promptly

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM trigger a graceful shutdown, but ONLY when the
loop runs on the main thread: Python only allows signal handlers to be
installed there, and inside a game server the gateway must not steal the
host's handlers anyway.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import GatewayConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        server = SocketServer(config)
        server.bind()                           # raises OSError if port busy
        server.serve_forever(handle_connection) # blocks until shutdown()
    """

    def __init__(self, config: GatewayConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        After bind() this is the real port, which matters when the
        configured port is 0 (pick any free port).
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(1.0)
        return sock

    def bind(self) -> None:
        """
        Create the socket, bind and listen.

        Raises:
            OSError: Address in use, permission denied, bad host.
        """
        sock = self._create_socket()

        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise

        self._socket = sock
        self._running = True

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

    def serve_forever(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() is called.

        Binds first if bind() has not been called yet.
        """
        if self._socket is None:
            self.bind()

        self._setup_signals()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _setup_signals(self):
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread; leaving signal handlers alone")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Periodic wake-up to check self._running
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Stop the accept loop. Safe to call more than once, from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def close(self):
        """Shut down and release the listening socket even if never served."""
        self.shutdown()
        self._cleanup()

    def _cleanup(self):
        self._restore_signals()

        if self._socket is not None:
            self._socket.close()
            self._socket = None
            logger.info("Socket server stopped")
