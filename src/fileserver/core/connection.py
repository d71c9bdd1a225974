"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for exactly one request/response exchange.

=============================================================================
ONE READ, ONE WRITE
=============================================================================

The file server only needs the request line, and a request line fits
comfortably in the first 1024 bytes. So a connection reads ONCE:

    recv(1024)  →  b"GET /notes.txt HTTP/1.1\r\nHost: ...\r\n..."
                       └──────── all we look at ───────┘

TCP is a byte stream, so a client COULD deliver the request line in two
pieces and the single read would only see the first. Real clients send the
request line in one segment; if one does not, the request fails to parse
and gets a 400. There are no retries.

After the response is written the connection is closed; there is no
keep-alive. Closing drains whatever else the client sent for up to 0.5s
(see close()), so a handler thread can outlive its response by that long
when the client keeps its end open waiting to reuse the connection.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► PROCESSING ──────► WRITING
     │             │                                  │
     │             ▼                                  │
     └──────────► CLOSING ◄───────────────────────────┘
                    │
                    ▼
                  CLOSED

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, for logging and debugging."""
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Waiting on the single request read
    PROCESSING = "processing"  # Request line parsed, handler running
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Owned by exactly one handler thread from accept until close; nothing
    else touches the socket.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 1024
    timeout: Optional[float] = None

    def __post_init__(self):
        # None puts the socket in plain blocking mode
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> bytes:
        """
        Read up to ``buffer_size`` bytes in a single call.

        Returns:
            Whatever arrived. Empty bytes if the client closed or reset the
            connection before sending anything.

        Raises:
            TimeoutError: If a timeout is configured and nothing arrives.
        """
        self.state = ConnectionState.READING
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send the whole response.

        Uses sendall(), which keeps writing until every byte is handed to
        the kernel.

        Returns:
            True if the send succeeded, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): flush and send FIN, so the client sees EOF
           right after the body.
        2. Drain: discard anything the client sent beyond our single read.
           Closing with unread data makes the kernel send RST, which can
           destroy the response before the client reads it.
        3. close(): release the file descriptor.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
