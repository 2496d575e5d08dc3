"""
=============================================================================
GAMEGATE SERVER
=============================================================================

The front door: ties the socket, the worker pool, the route table, access
control and the two handlers into one gateway with a start/stop lifecycle.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. ACCEPT        SocketServer accepts a TCP connection
    2. QUEUE         WorkerPool queues it (full queue → 503)
    3. READ + PARSE  Connection reads one request, RequestParser parses it
                     (timeout → 408, too large → 413, malformed → 400)
    4. MIDDLEWARE    LoggingMiddleware (+ anything added with use())
    5. PIPELINE      Gateway.handle:

         MATCH_ROUTE ──► CHECK_METHOD ──► CHECK_AUTH ──► DISPATCH
              │                │               │          │     │
              ▼                ▼               ▼         API  STATIC
             404              405             401         │     │
        "Route not found"  + Allow header "Unauthorized"  ▼     ▼
                                                         JSON  file

    6. SEND          exactly one response, always ``Connection: close``
    7. CLOSE         the socket is closed on every path

Any stage failing short-circuits straight to SEND with its status.

=============================================================================
LIFECYCLE
=============================================================================

    gateway.start()            bind + accept loop on a daemon thread
    gateway.stop()             stop accepting, drain workers, close socket
    gateway.run()              start() but blocking, with signal handling
    gateway.toggle(["on"])     the operator's "/webserver on|off" command

=============================================================================
"""

import logging
import threading
from typing import AbstractSet, Callable, Optional, Sequence, Union

from .config import GatewayConfig, load_keys, load_routes
from .core import SocketServer, Connection, ConnectionState, RequestTooLarge, WorkerPool
from .errors import (
    GatewayError,
    MethodNotAllowed,
    RouteNotFound,
    Unauthorized,
)
from .handlers import ApiDispatcher, StaticFileHandler
from .host import GameHost, InMemoryHost
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, error_response, method_not_allowed,
)
from .http.auth import authorize
from .http.router import RouteTable
from .middleware import MiddlewarePipeline, Middleware, LoggingMiddleware
from .middleware.base import MiddlewareFunc


logger = logging.getLogger(__name__)

TOGGLE_USAGE = "Usage: /webserver on|off"


class Gateway:
    """
    Embedded HTTP gateway for a game server.

    Usage:
        gateway = create_gateway(GatewayConfig(port=8080, data_dir="data"), host)
        gateway.start()
        ...
        gateway.stop()

    Or, for tests and embedding, build one directly:

        gateway = Gateway(config, RouteTable([...]), {"s3cr3t"}, InMemoryHost())
        response = gateway.process(request)    # no socket involved
    """

    def __init__(
        self,
        config: GatewayConfig,
        routes: RouteTable,
        keys: AbstractSet[str],
        host: GameHost,
    ):
        config.validate()

        self.config = config
        self.routes = routes
        self.keys = frozenset(keys)
        self.host = host

        self._parser = RequestParser(max_request_size=config.max_request_size)
        self._api = ApiDispatcher(host)
        self._static = StaticFileHandler(config.data_dir, max_file_size=config.max_file_size)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=config.log_format))
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

        self._lock = threading.Lock()
        self._socket_server: Optional[SocketServer] = None
        self._pool: Optional[WorkerPool] = None
        self._thread: Optional[threading.Thread] = None

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Union[Middleware, MiddlewareFunc]) -> "Gateway":
        """
        Add middleware (inside the access log). Call before start().

        Accepts a Middleware or a plain ``(request, next) -> response``
        function.
        """
        self._middleware.add(middleware)
        self._handler = None
        return self

    @property
    def is_running(self) -> bool:
        return self._socket_server is not None and self._socket_server.is_running

    @property
    def port(self) -> int:
        """The bound port (useful when configured with port 0)."""
        if self._socket_server is not None:
            return self._socket_server.address[1]
        return self.config.port

    # =========================================================================
    # PIPELINE
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run the front-door pipeline for one request.

        Never raises: every failure becomes its error response.
        """
        try:
            return self._dispatch(request)
        except MethodNotAllowed as e:
            return method_not_allowed(e.method, e.allowed)
        except GatewayError as e:
            return error_response(e.status, e.message)
        except Exception as e:
            logger.exception(f"Unhandled error for {request.method} {request.path}: {e}")
            return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        route = self.routes.resolve(request.path)
        if route is None:
            raise RouteNotFound()

        if not route.allows(request.method):
            raise MethodNotAllowed(request.method, route.allow)

        authorization = request.header_values("authorization")
        if not authorize(route, authorization, request.query_string, self.keys):
            raise Unauthorized()

        if self._api.handles(route):
            return self._api.dispatch(route, request)

        return self._static.serve(route, request.path)

    def process(self, request: HTTPRequest) -> HTTPResponse:
        """Run a request through middleware and the pipeline."""
        if self._handler is None:
            self._handler = self._middleware.wrap(self.handle)
        return self._handler(request)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> bool:
        """
        Start serving in the background.

        Returns:
            True if started, False if it was already running.

        Raises:
            OSError: The socket could not be bound (logged first).
        """
        with self._lock:
            if self.is_running:
                return False

            server = self._open()
            self._thread = threading.Thread(
                target=server.serve_forever,
                args=(self._handle_connection,),
                name="gamegate-accept",
                daemon=True,
            )
            self._thread.start()

        logger.info(f"Gateway started on port {self.port}")
        return True

    def stop(self) -> bool:
        """
        Stop serving. Queued requests are answered before workers exit.

        Returns:
            True if stopped, False if it was not running.
        """
        with self._lock:
            if self._socket_server is None:
                return False

            self._socket_server.shutdown()
            if self._thread is not None:
                self._thread.join(timeout=5.0)
                self._thread = None

            self._close()

        logger.info("Gateway stopped")
        return True

    def run(self):
        """Serve on the calling thread until SIGINT/SIGTERM (or stop())."""
        with self._lock:
            server = self._open()

        logger.info(f"Gateway started on port {self.port}")

        try:
            server.serve_forever(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            with self._lock:
                self._close()
            logger.info("Gateway stopped")

    def toggle(self, args: Union[str, Sequence[str]]) -> str:
        """
        Operator command ``/webserver on|off``.

        Returns:
            The message to show the operator.
        """
        if isinstance(args, str):
            args = args.split()

        action = args[0].lower() if args else ""

        if action == "on":
            try:
                started = self.start()
            except OSError as e:
                return f"Failed to start gateway: {e}"
            if not started:
                return f"Gateway is already running on port {self.port}"
            return f"Gateway enabled on port {self.port}"

        if action == "off":
            if not self.stop():
                return "Gateway is not running"
            return "Gateway disabled"

        return TOGGLE_USAGE

    def _open(self) -> SocketServer:
        """Set up logging, workers and the bound socket (lock held)."""
        self._setup_logging()

        if self._handler is None:
            self._handler = self._middleware.wrap(self.handle)

        for line in self.routes.describe():
            logger.debug(f"route {line}")

        pool = WorkerPool(workers=self.config.workers, queue_size=self.config.backlog)
        pool.start()

        server = SocketServer(self.config)
        try:
            server.bind()
        except OSError as e:
            logger.error(f"Failed to start gateway: {e}")
            pool.shutdown()
            raise

        self._pool = pool
        self._socket_server = server
        return server

    def _close(self):
        """Release the socket and drain the pool (lock held)."""
        if self._socket_server is not None:
            self._socket_server.close()
            self._socket_server = None

        if self._pool is not None:
            logger.debug(f"Worker pool stats: {self._pool.stats}")
            self._pool.shutdown(timeout=self.config.timeout)
            self._pool = None

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # No-op when the host application already configured logging
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("gamegate").setLevel(level)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Queue a connection; answer 503 right away if the queue is full."""
        pool = self._pool
        try:
            submitted = pool is not None and pool.submit(self._process_connection, conn)
        except RuntimeError:
            submitted = False

        if not submitted:
            logger.warning(f"[{conn.id}] Worker queue full, rejecting connection")
            with conn:
                self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")

    def _process_connection(self, conn: Connection):
        """Handle exactly one exchange on ``conn`` (runs on a worker)."""
        with conn:
            try:
                raw_request = conn.read_request()
            except TimeoutError:
                self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                return
            except RequestTooLarge as e:
                self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                return

            if raw_request is None:
                return

            try:
                request = self._parser.parse(raw_request, conn.address)
            except HTTPParseError as e:
                logger.debug(f"[{conn.id}] Parse error: {e}")
                self._send_error(conn, HTTPStatus(e.status_code), str(e))
                return

            conn.state = ConnectionState.PROCESSING
            try:
                response = self.process(request)
            except Exception as e:
                # Only middleware can get here; handle() never raises
                logger.exception(f"[{conn.id}] Middleware error: {e}")
                response = error_response(
                    HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error"
                )

            self._send(conn, response)

    def _send(self, conn: Connection, response: HTTPResponse):
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        self._send(conn, error_response(status, message))


def create_gateway(
    config: Optional[GatewayConfig] = None,
    host: Optional[GameHost] = None,
) -> Gateway:
    """
    Build a gateway from ``config.data_dir``'s routes.yml and keys.yml.

    Missing files are created with defaults. Without a host an empty
    InMemoryHost is used.

    Raises:
        ConfigError: Invalid routes or keys.
    """
    config = config or GatewayConfig()
    routes = load_routes(config.routes_path)
    keys = load_keys(config.keys_path)

    logger.info(f"Loaded {len(routes)} route(s) and {len(keys)} key(s) from {config.data_dir}")

    return Gateway(config, routes, keys, host if host is not None else InMemoryHost())
