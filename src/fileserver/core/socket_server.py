"""
=============================================================================
TCP ACCEPTOR
=============================================================================

Owns the listening socket: bind, listen, and an accept loop that hands
every new client to a callback.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. bind()      Reserve host:port. Failure here is fatal for the process.
    3. listen()    OS starts queueing incoming connections (backlog)
    4. accept()    Wait for a client; returns a NEW socket for it
    5. close()     Release the listening socket on shutdown

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘     Never sends/receives data
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │Connection │         │Connection │         │Connection │
    └───────────┘         └───────────┘         └───────────┘
    Each one is handed off immediately; the loop never waits for handlers.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR
    Restarting the server right after stopping it would otherwise fail with
    "Address already in use" while old sockets sit in TIME_WAIT.

    SO_REUSEPORT is deliberately NOT set: it would let a second server bind
    the same port silently instead of failing.

TCP_NODELAY
    Disables Nagle's algorithm so the response goes out immediately.

Accept timeout (1s)
    accept() wakes up once a second to check whether shutdown() was called.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, buffer_size,
                    timeout).

        The socket is not created until start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is bound and listening
        self._ready_event = threading.Event()

        # Restored on cleanup, in case we are embedded in a larger app
        self._original_handlers: dict = {}

        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def address(self) -> Tuple[str, int]:
        """
        The (host, port) actually bound.

        Differs from the configured port when port 0 was requested. Before
        start() this is the configured address.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        """
        Install SIGINT/SIGTERM handlers that trigger shutdown().

        Python only allows this from the main thread. When the server runs
        in a background thread (tests, embedding) the caller is expected to
        call shutdown() itself, so we leave signals alone.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(
        self,
        connection_handler: Callable[[Connection], None],
        on_listening: Optional[Callable[[Tuple[str, int]], None]] = None,
    ):
        """
        Bind, listen and run the accept loop.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called once per accepted connection. Must
                                return quickly (hand off to a thread); the
                                loop cannot accept while it runs.
            on_listening: Called with the bound (host, port) once the
                          socket is listening, before the first accept.

        Raises:
            OSError: If the socket cannot be bound. Nothing can be served
                     without it, so this is left to terminate the caller.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._bound_address = self._socket.getsockname()[:2]
        self._running = True

        self._setup_signals()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            if on_listening:
                on_listening(self._bound_address)
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown.

        Accept errors (e.g. EMFILE when out of file descriptors) are logged
        and the loop carries on; they affect one client, not the server.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running or self._socket.fileno() == -1:
                    break
                logger.error(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            try:
                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    buffer_size=self.config.buffer_size,
                    timeout=self.config.timeout,
                )
            except OSError as e:
                logger.error(f"Could not set up connection from {client_address[0]}: {e}")
                client_socket.close()
                continue

            connection_handler(conn)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket is listening.

        Returns:
            True once ready, False if ``timeout`` expired first.
        """
        return self._ready_event.wait(timeout)

    def shutdown(self):
        """
        Ask the accept loop to stop.

        Safe to call from any thread and more than once. The loop notices
        within the accept timeout (1s).
        """
        logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")
