"""
=============================================================================
FILESERVER - Concurrent HTTP File Server on Raw Sockets
=============================================================================

A small HTTP/1.x server that maps request verbs onto file operations under
a working directory:

    GET    /path   → read the file           → 202 + contents  (404 if missing)
    PUT    /path   → overwrite from offset 0 → 202             (404 if missing)
    POST   /path   → create or truncate      → 202
    DELETE /path   → remove (missing is ok)  → 202
    other          → nothing                 → 501

Every accepted connection is handed to its own worker thread straight
away, serves exactly one request and is closed.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    fileserver/
    ├── __init__.py          This file
    ├── __main__.py          CLI: python -m fileserver
    ├── config.py            ServerConfig (+ environment / .env)
    ├── server.py            FileServer: wires everything together
    ├── access_log.py        Per-request access logging
    ├── core/
    │   ├── socket_server.py Listener and accept loop
    │   ├── connection.py    One client socket, one exchange
    │   └── thread_pool.py   Elastic worker pool
    ├── http/
    │   ├── request.py       Parsing, Verb
    │   ├── response.py      Serialisation, helpers
    │   └── status_codes.py  202 / 404 / 500 / 501
    └── handlers/
        └── files.py         Verb → file operation

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer, create_app
from .config import ServerConfig

__all__ = ["FileServer", "ServerConfig", "create_app", "__version__"]
