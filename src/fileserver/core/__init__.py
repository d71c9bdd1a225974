"""
=============================================================================
CORE MODULE - Sockets, Connections and Threads
=============================================================================

    socket_server.py   Binds the listener and runs the accept loop
    connection.py      One client socket, one request, one response
    thread_pool.py     Optional bounded pool of worker threads

Connections never share state with each other. Each one is owned by a
single thread from accept until close, so nothing here needs locking except
the pool's own start/stop bookkeeping.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
