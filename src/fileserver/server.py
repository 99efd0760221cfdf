"""
=============================================================================
FILE SERVER
=============================================================================

Ties the listener, the worker pool, the request parser and the file handler
together.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    FILE SERVER ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   FileServer    │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  ThreadPool  │    │ FileHandler  │        │
    │    │  (Listener)  │    │  (elastic)   │    │ (verb → op)  │        │
    │    └──────┬───────┘    └──────┬───────┘    └──────┬───────┘        │
    │           │  Connection       │  worker thread    │                │
    │           └──────────────────►└──────────────────►┘                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PER-CONNECTION FLOW (runs in a worker thread)
=============================================================================

    read_request()  ──  None / ValueError / TimeoutError ──► log, close
         │
    parse()         ──  HTTPParseError ──────────────────► log, close
         │
    access.started()    wall-clock timestamp
         │
    handler.handle()    verb → file op → 202 / 404 / 500 / 501
         │              (unexpected exception → 500)
    send_response()     exactly one response
         │
    close()             no keep-alive

Nothing raised while serving one connection reaches the accept loop or any
other connection.

=============================================================================
"""

import logging
from typing import Callable, Optional

from .access_log import AccessLog
from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .core.connection import ConnectionState
from .handlers import FileOperations, FileHandler
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    RequestParser,
    internal_error,
)


logger = logging.getLogger(__name__)


Handler = Callable[[HTTPRequest], HTTPResponse]


class FileServer:
    """
    Concurrent HTTP file server.

    =========================================================================
    USAGE
    =========================================================================

        server = FileServer(ServerConfig(root_dir="/srv/data"))
        server.run()            # blocks until SIGINT/SIGTERM or shutdown()

    Then:

        curl -X POST -d '{"key1":"value1"}' http://127.0.0.1:8080/data
        curl http://127.0.0.1:8080/data
        curl -X DELETE http://127.0.0.1:8080/data

    =========================================================================
    LIFECYCLE
    =========================================================================

    One FileServer owns one listening socket:

        FileServer(config)  → validate config, build components
        run()               → bind (fatal on error), accept until shutdown
        shutdown()          → stop accepting; run() drains the pool and returns

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        handler: Optional[Handler] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults serve "." on 127.0.0.1:8080.
            handler: Request handler override. Defaults to a FileHandler
                     over config.root_dir.

        Raises:
            ValueError: Invalid configuration.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            idle_timeout=self.config.idle_timeout,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._access_log = AccessLog(log_format=self.config.log_format)

        if handler is None:
            handler = FileHandler(
                FileOperations(self.config.root_dir, confine_paths=self.config.confine_paths)
            ).handle
        self._handler: Handler = handler

        self._running = False

    @property
    def address(self):
        """The bound (host, port); valid once the server is ready."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self):
        """
        Start the server (blocking).

        Raises:
            OSError: The address could not be bound. Nothing has been
                     served at that point.
        """
        self._setup_logging()
        self._thread_pool.start()
        self._running = True

        logger.info(
            f"Serving {self.config.root_dir!r} on {self.config.host}:{self.config.port}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Returns immediately."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listener is bound. True if ready."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("fileserver").setLevel(level)

    def _shutdown(self):
        """Stop accepting, then let in-flight connections finish."""
        logger.info("Shutting down server...")
        self._running = False
        stats = self._thread_pool.stats
        logger.info(
            f"Served {stats['tasks']['completed']} connections "
            f"({stats['tasks']['failed']} failed) on {stats['workers']['total']} workers"
        )
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection):
        """
        Hand a connection to the thread pool.

        Called on the accept loop, so it must not block: submit() only
        enqueues (starting a worker if none is idle).
        """
        self._thread_pool.submit(self._process_connection, args=(conn,))

    def _process_connection(self, conn: Connection):
        """
        Serve one request on conn, then close it (runs in a worker thread).
        """
        with conn:
            try:
                raw_request = conn.read_request()
            except (ValueError, TimeoutError) as e:
                logger.warning(f"[{conn.id}] Dropping connection from {conn.client_ip}: {e}")
                return

            if raw_request is None:
                logger.debug(f"[{conn.id}] Client closed before sending a request")
                return

            try:
                request = self._parser.parse(raw_request, conn.address)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Malformed request from {conn.client_ip}: {e}")
                return

            conn.state = ConnectionState.PROCESSING
            started_at = self._access_log.started(request, conn.id)

            try:
                response = self._handler(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                response = internal_error()

            sent = conn.send_response(response.to_bytes(self.config.server_name))
            self._access_log.finished(request, response, started_at, conn.id, sent=sent)


def create_app(config: Optional[ServerConfig] = None) -> FileServer:
    """
    Factory for a FileServer.

    Example:
        app = create_app(ServerConfig(port=3000, root_dir="./data"))
        app.run()
    """
    return FileServer(config)
