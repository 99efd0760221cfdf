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
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m fileserver --port 3000                          │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m fileserver                       │
    │                                                                      │
    │   3. .env file in the current directory (python-dotenv)             │
    │      └── HTTP_ROOT=/srv/data                                        │
    │                                                                      │
    │   4. Defaults in ServerConfig                                       │
    │      └── 127.0.0.1:8080, serving the current directory             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

load_dotenv() never overrides variables that are already set, which gives
the environment priority over the .env file for free.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


LOG_FORMATS = ("text", "json")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_number(name: str, default, cast):
    """Read a numeric environment variable; unset or empty gives default."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout, max_request_size

    FILE SETTINGS
    - root_dir, confine_paths

    THREADING SETTINGS
    - min_workers, max_workers, idle_timeout

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to. Loopback by default.
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """
    Maximum number of queued connections in the kernel accept queue.
    """

    buffer_size: int = 8192
    """
    Size of each recv() call in bytes.
    """

    timeout: Optional[float] = None
    """
    Socket timeout for client connections in seconds.
    None = no timeout: a stalled client holds its worker until it goes away.
    """

    max_request_size: int = 10 * 1024 * 1024  # 10 MB
    """
    Requests larger than this are dropped as malformed.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILE SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """
    Working directory that request paths are relative to.
    """

    confine_paths: bool = False
    """
    Answer 404 for paths that resolve outside root_dir.
    Off by default: such paths are served and a warning is logged.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREADING SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """
    Worker threads started up front and kept alive while idle.
    """

    max_workers: Optional[int] = None
    """
    Upper bound on worker threads. None = unbounded, so every connection
    starts handling immediately however many are in flight.
    """

    idle_timeout: float = 60.0
    """
    Seconds an extra (above min_workers) worker waits for work before exiting.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    log_format: str = "text"
    """
    Access log format: 'text' (Apache style) or 'json'.
    """

    server_name: str = "PyFileServer/1.0"
    """
    Value of the Server response header.
    """

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ServerConfig":
        """
        Create configuration from environment variables (and a .env file).

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST           Server host (default: 127.0.0.1)
        HTTP_PORT           Server port (default: 8080)
        HTTP_ROOT           Working directory (default: .)
        HTTP_WORKERS        Min worker threads (default: 4)
        HTTP_TIMEOUT        Client socket timeout in seconds (default: none)
        HTTP_CONFINE_PATHS  1/true to refuse paths outside HTTP_ROOT
        HTTP_LOG_LEVEL      Logging level (default: INFO)
        HTTP_LOG_FORMAT     text | json (default: text)

        =====================================================================
        """
        load_dotenv(dotenv_path)

        timeout = _env_number("HTTP_TIMEOUT", None, float)

        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=_env_number("HTTP_PORT", 8080, int),
            root_dir=os.getenv("HTTP_ROOT", "."),
            min_workers=_env_number("HTTP_WORKERS", 4, int),
            timeout=timeout,
            confine_paths=os.getenv("HTTP_CONFINE_PATHS", "").lower() in _TRUE_VALUES,
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at server construction so bad values fail before the socket
        is ever bound.

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers is not None and self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")

        if not os.path.isdir(self.root_dir):
            raise ValueError(f"root_dir does not exist: {self.root_dir}")
