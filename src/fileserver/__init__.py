"""
=============================================================================
FILESERVER - Minimal HTTP/1.1 File Server
=============================================================================

Serves a directory tree over HTTP using raw Python sockets. One request per
connection; the response is the file's contents, a plain-text listing of a
directory, or a short error.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    fileserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m fileserver)
    ├── server.py            # FileServer: per-connection request handling
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Sockets and threads
    │   ├── socket_server.py # Bind + accept loop
    │   ├── connection.py    # One client socket
    │   └── thread_pool.py   # Optional bounded worker pool
    ├── http/                # Protocol pieces
    │   ├── request.py       # Request-line parsing
    │   ├── response.py      # Response serialization
    │   ├── status_codes.py  # 200 / 400 / 404 / 500
    │   └── mime_types.py    # Extension → Content-Type
    └── handlers/
        └── files.py         # Path resolution, listings, file reads

=============================================================================
QUICK START
=============================================================================

    $ cd /srv/files && python -m fileserver
    $ curl http://127.0.0.1:8080/
    DIR  images
    FILE notes.txt

    from fileserver import FileServer, ServerConfig

    server = FileServer(ServerConfig(root="/srv/files", max_workers=8))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer
from .config import ServerConfig

__all__ = ["FileServer", "ServerConfig", "__version__"]
