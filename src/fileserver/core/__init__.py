"""
=============================================================================
CORE NETWORKING AND CONCURRENCY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ──accept()──► Connection ──submit()──► ThreadPool     │
    │   (listener)                 (one socket)             (workers)      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

1. SOCKET SERVER
   Binds once, accepts forever. Accept errors are logged and skipped;
   only a bind error stops the server, before it starts serving.

2. CONNECTION
   Reads one request, writes one response, closes.

3. THREAD POOL
   Elastic: a connection never waits for another connection's handler
   to finish before it starts being handled.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",     # TCP listener and accept loop
    "Connection",       # One client socket, one exchange
    "ConnectionState",  # Connection lifecycle states
    "ThreadPool",       # Elastic worker threads
]
