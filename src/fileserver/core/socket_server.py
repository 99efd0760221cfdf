"""
=============================================================================
LISTENER
=============================================================================

Owns the listening socket. Its only job is to turn accepted sockets into
Connection objects and pass them on as fast as possible.

=============================================================================
WHAT MAY GO WRONG, AND WHAT HAPPENS THEN
=============================================================================

    ┌──────────────┬──────────────────────────────┬────────────────────────┐
    │ Step         │ Typical failure              │ Result                 │
    ├──────────────┼──────────────────────────────┼────────────────────────┤
    │ bind()       │ address in use, no privilege │ logged, OSError raised │
    │ listen()     │ (practically never)          │ OSError raised         │
    │ accept()     │ EMFILE, ECONNABORTED, ...    │ logged, keep accepting │
    │ dispatch     │ callback raised              │ logged, client closed  │
    └──────────────┴──────────────────────────────┴────────────────────────┘

Only a failure before the first accept() ends start(). After that, one bad
accept() costs one client at most.

=============================================================================
STOPPING
=============================================================================

accept() gives up every ACCEPT_POLL_INTERVAL seconds, so a shutdown() from
another thread or a SIGINT/SIGTERM handler is noticed within that time.
Signal handlers can only be installed from the main thread; when the
listener runs elsewhere (tests, embedding) the caller stops it with
shutdown() instead.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ConnectionCallback = Callable[[Connection], None]

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SocketServer:
    """
    Bind, listen, accept, hand off.

        listener = SocketServer(config)
        listener.start(lambda conn: pool.submit(serve, args=(conn,)))   # blocks

    start() returns after shutdown() has been called and the socket closed.
    """

    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._running = False
        self._ready = threading.Event()
        self._previous_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        Where the listener is reachable.

        After start() this is the real address, which matters when port 0
        let the OS choose.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def start(self, on_connection: ConnectionCallback):
        """
        Run the listener until shutdown(). Blocks.

        Args:
            on_connection: Receives every accepted Connection. It is called
                on the accept thread and must not block.

        Raises:
            OSError: The socket could not be bound. Nothing was accepted.
        """
        self._socket = self._listen()
        self._running = True
        self._install_signal_handlers()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")
        self._ready.set()

        try:
            self._accept_loop(on_connection)
        finally:
            self._cleanup()

    def _listen(self) -> socket.socket:
        """Create, bind and listen. Binding errors are fatal."""
        endpoint = (self.config.host, self.config.port)
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)

        try:
            sock.bind(endpoint)
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Cannot listen on {endpoint[0]}:{endpoint[1]}: {e}")
            sock.close()
            raise

        self._bound_address = sock.getsockname()[:2]
        return sock

    def _accept_loop(self, on_connection: ConnectionCallback):
        while self._running:
            try:
                client, peer = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running or self._socket.fileno() == -1:
                    break
                logger.error(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted {peer[0]}:{peer[1]}")
            self._dispatch(client, peer, on_connection)

    def _dispatch(self, client: socket.socket, peer, on_connection: ConnectionCallback):
        try:
            on_connection(Connection(
                socket=client,
                address=peer,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            ))
        except Exception as e:
            logger.exception(f"Could not hand off {peer[0]}:{peer[1]}: {e}")
            client.close()

    def shutdown(self):
        """
        Ask the accept loop to stop.

        Only flips a flag, so it is safe from signal handlers, from other
        threads, and repeatedly.
        """
        logger.info("Listener stopping")
        self._running = False

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait for the socket to be listening. False on timeout."""
        return self._ready.wait(timeout)

    def _install_signal_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Listener not on main thread; signal handlers left alone")
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.shutdown()

        for signum in STOP_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, on_signal)

    def _cleanup(self):
        while self._previous_handlers:
            signum, handler = self._previous_handlers.popitem()
            signal.signal(signum, handler)

        if self._socket is not None:
            self._socket.close()
            self._socket = None

        self._ready.clear()
        logger.info("Listener stopped")
