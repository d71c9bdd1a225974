"""
=============================================================================
FILE SERVER
=============================================================================

Ties the pieces together: accept a connection, read one request, serve a
file or a listing, close.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   SocketServer.accept()                                             │
    │          │                                                          │
    │          ▼                                                          │
    │   _handle_connection(conn)    hand off: new thread or pool task     │
    │          │                                                          │
    │          ▼                                                          │
    │   _process_connection(conn)   runs in the connection's own thread   │
    │          │                                                          │
    │          ├── conn.read_request()         one recv(buffer_size)      │
    │          ├── parse_request_line()        400 if no path token       │
    │          ├── FileHandler.handle(path)    200 / 404 / 500            │
    │          ├── response.to_bytes()                                    │
    │          ├── conn.send_response()                                   │
    │          └── conn.close()                                           │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Each connection is handled start to finish by one thread and shares
nothing with any other connection. A failure while handling one of them
(bad request, unreadable file, client hanging up mid-write, a bug) is
logged and ends that connection only. The acceptor keeps going.

=============================================================================
CONCURRENCY MODES
=============================================================================

    max_workers=None (default)
        threading.Thread per connection, unbounded.

    max_workers=N
        ThreadPool with N workers and a bounded queue. When every worker is
        busy and the queue is full, the acceptor blocks instead of
        accepting more.

=============================================================================
"""

import sys
import socket
import logging
import threading
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool
from .handlers import FileHandler
from .http import (
    HTTPParseError,
    HTTPResponse,
    HTTPStatus,
    parse_request_line,
    error_response,
    internal_error,
)
from .http.request import first_line


logger = logging.getLogger(__name__)

# One line per request goes here
access_logger = logging.getLogger("fileserver.access")


class FileServer:
    """
    HTTP/1.1 file server.

    Usage:
        server = FileServer(ServerConfig(root="./public"))
        server.run()   # Blocks until Ctrl+C

    In tests, run it in a background thread and stop it with stop().
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Uses the defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._handler = FileHandler(self.config.root, confine_to_root=self.config.confine_to_root)

        self._thread_pool: Optional[ThreadPool] = None
        if self.config.bounded:
            self._thread_pool = ThreadPool(
                max_workers=self.config.max_workers,
                queue_size=self.config.queue_size,
            )

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the configured one before run()."""
        return self._socket_server.address

    @property
    def handler(self) -> FileHandler:
        return self._handler

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from config.log_level.
                           Pass False when the caller owns logging setup.

        Raises:
            OSError: If the listening socket cannot be bound.
        """
        if setup_logging:
            self._setup_logging()

        if self._thread_pool:
            self._thread_pool.start()

        try:
            self._socket_server.start(self._handle_connection, on_listening=self._print_startup_banner)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Ask the server to stop. run() returns shortly after."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config. Log lines go to stdout."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=sys.stdout,
        )

        logging.getLogger("fileserver").setLevel(level)
        # One line per request, even when the rest of the output is quieter
        access_logger.setLevel(min(level, logging.INFO))

    def _print_startup_banner(self, address: Tuple[str, int]):
        host, port = address
        if self._thread_pool:
            mode = f"{self.config.max_workers} worker threads"
        else:
            mode = "one thread per connection"

        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"  🚀 {self.config.server_name} is listening on port {port}")
        print(f"  📍 http://{host}:{port}")
        print(f"  📁 Serving {self._handler.root}")
        print(f"  👷 {mode}")
        print("  Press Ctrl+C to stop")
        print("╚══════════════════════════════════════════════════════════════╝")
        print(flush=True)

    def _shutdown(self):
        logger.info("Shutting down server...")

        if self._thread_pool:
            self._thread_pool.shutdown(wait=True, timeout=5.0)

        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Hand a freshly accepted connection to its own thread of execution.

        Called on the acceptor thread; must not block on the client.
        """
        if self._thread_pool:
            try:
                self._thread_pool.submit(self._process_connection, args=(conn,))
            except RuntimeError:
                # Pool already stopped; we are on our way out
                conn.close()
            return

        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        thread.start()

    def _process_connection(self, conn: Connection):
        """
        Serve exactly one request on ``conn`` and close it.

        Never raises: everything that goes wrong is logged here so the
        thread (or pool worker) ends cleanly.
        """
        with conn:
            try:
                self._serve_one(conn)
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _serve_one(self, conn: Connection):
        try:
            data = conn.read_request()
        except (socket.timeout, TimeoutError):
            logger.warning(f"[{conn.id}] Timed out waiting for request from {conn.client_ip}")
            return

        try:
            request = parse_request_line(data)
        except HTTPParseError as e:
            logger.debug(f"[{conn.id}] Bad request: {e}")
            response = error_response(HTTPStatus(e.status_code), str(e))
            self._respond(conn, first_line(data), response)
            return

        conn.state = ConnectionState.PROCESSING

        try:
            response = self._handler.handle(request.path)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            response = internal_error()

        self._respond(conn, request.raw, response)

    def _respond(self, conn: Connection, request_line: str, response: HTTPResponse):
        payload = response.to_bytes()
        sent = conn.send_response(payload)

        access_logger.info(
            f'{conn.client_ip} "{request_line}" {int(response.status)} '
            f'{response.headers.content_length}'
            + ("" if sent else " (send failed)")
        )
