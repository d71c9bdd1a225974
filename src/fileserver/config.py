"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the file server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m fileserver --port 3000                           │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── FILESERVER_PORT=3000 python -m fileserver                  │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

There are no configuration files. The defaults reproduce the classic
behavior: loopback, port 8080, the working directory as root, a single
1024-byte read per request, no timeouts, one thread per connection.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    CONCURRENCY
    - max_workers, queue_size

    FILES
    - root, confine_to_root

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind to. Loopback only by default."""

    port: int = 8080
    """Port to listen on. 0 asks the OS for a free port (used by tests)."""

    backlog: int = 128
    """Maximum number of connections queued by the OS before accept()."""

    buffer_size: int = 1024
    """
    Size of the single read that fetches a request.
    Only the request line is needed, so this rarely matters.
    """

    timeout: Optional[float] = None
    """
    Socket timeout for client connections, in seconds.
    None = block forever; a stalled client holds its thread until it goes.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    max_workers: Optional[int] = None
    """
    None = spawn one thread per connection with no upper limit.
    N    = serve connections from a fixed pool of N worker threads.
    """

    queue_size: int = 64
    """
    Connections waiting for a pool worker. When full, the acceptor blocks
    until a worker frees up. Ignored without max_workers.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    root: str = "."
    """Directory to serve. Relative paths are taken from the working dir."""

    confine_to_root: bool = True
    """
    Answer 404 for any path that resolves outside root (via .. or
    symlinks). Set False to hand paths to the filesystem unchecked.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    server_name: str = "PyFileServer"
    """Shown in the startup banner. Never sent on the wire."""

    @property
    def bounded(self) -> bool:
        """True when connections are served by a fixed worker pool."""
        return self.max_workers is not None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILESERVER_HOST       Bind address (default: 127.0.0.1)
        FILESERVER_PORT       Port (default: 8080)
        FILESERVER_ROOT       Directory to serve (default: .)
        FILESERVER_WORKERS    Worker pool size (default: unset = unbounded)
        FILESERVER_TIMEOUT    Client socket timeout in seconds (default: unset)
        FILESERVER_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        workers = os.getenv("FILESERVER_WORKERS")
        timeout = os.getenv("FILESERVER_TIMEOUT")
        return cls(
            host=os.getenv("FILESERVER_HOST", "127.0.0.1"),
            port=int(os.getenv("FILESERVER_PORT", "8080")),
            root=os.getenv("FILESERVER_ROOT", "."),
            max_workers=int(workers) if workers else None,
            timeout=float(timeout) if timeout else None,
            log_level=os.getenv("FILESERVER_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at server construction so bad settings fail at startup, not
        on the first request.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 0:
            raise ValueError("backlog must be >= 0")

        if self.buffer_size < 16:
            raise ValueError("buffer_size must be >= 16")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
