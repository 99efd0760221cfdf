"""
=============================================================================
CLIENT CONNECTION
=============================================================================

One accepted socket, owned by one worker thread, good for one exchange:
read a request, write a response, close.

=============================================================================
FRAMING THE REQUEST
=============================================================================

recv() hands back whatever the kernel has, so a single PUT may show up in
several pieces:

    "PUT /da" | "ta HTTP/1.1\r\nContent-Len" | "gth: 3\r\n\r\nab" | "c"

Bytes are collected in two phases:

    phase 1   until the blank line (\r\n\r\n) that ends the headers
    phase 2   until Content-Length body bytes follow it (0 if absent)

Anything the client sends after that is never looked at.

=============================================================================
STATES
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
               │                                      ▲
               └──── unreadable / unparsable ─────────┘
                     (nothing is written back)

There is no way back to READING: keep-alive is not supported, whatever
the client's Connection header says.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional


logger = logging.getLogger(__name__)


HEADER_TERMINATOR = b"\r\n\r\n"


class ConnectionState(Enum):
    """Where a connection is in its single exchange."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client socket plus the bytes read from it so far.

    Attributes:
        socket: Accepted client socket.
        address: Peer (ip, port).
        id: Short random id that ties log lines for this client together.
        state: See ConnectionState.
        created_at: Epoch seconds at accept time.
        buffer_size: Upper bound for a single recv().
        timeout: Per-recv timeout in seconds; None blocks forever.
        max_request_size: Reading stops with an error past this many bytes.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = None
    max_request_size: int = 10 * 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        # Do not inherit the listener's accept-poll timeout
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    def read_request(self) -> Optional[bytes]:
        """
        Collect the bytes of one request: headers, blank line and body.

        Returns:
            The request bytes, or None when the peer hung up before the
            header block was complete (nothing worth answering).

        Raises:
            ValueError: Oversized request, unusable Content-Length, or the
                peer hung up part-way through the body.
            TimeoutError: No data within the configured timeout.
        """
        self.state = ConnectionState.READING

        try:
            if not self._fill(lambda: HEADER_TERMINATOR in self._buffer):
                if self._buffer:
                    logger.debug(f"[{self.id}] Peer hung up inside the header block")
                return None

            body_start = self._buffer.index(HEADER_TERMINATOR) + len(HEADER_TERMINATOR)
            request_end = body_start + self._content_length(self._buffer[:body_start])

            if not self._fill(lambda: len(self._buffer) >= request_end):
                raise ValueError(
                    f"Peer hung up after {len(self._buffer) - body_start} of "
                    f"{request_end - body_start} body bytes"
                )
        except socket.timeout:
            raise TimeoutError(f"No request data within {self.timeout}s")

        return self._buffer[:request_end]

    def _fill(self, complete: Callable[[], bool]) -> bool:
        """
        recv() into the buffer until complete() holds.

        Returns False if the peer closed the stream first.
        """
        while not complete():
            try:
                chunk = self.socket.recv(self.buffer_size)
            except (ConnectionResetError, BrokenPipeError):
                chunk = b""
            if not chunk:
                return False

            self._buffer += chunk
            if len(self._buffer) > self.max_request_size:
                raise ValueError(
                    f"Request exceeds {self.max_request_size} bytes"
                )
        return True

    @staticmethod
    def _content_length(head: bytes) -> int:
        """
        Pull Content-Length out of the raw header block.

        Only the framing needs it here; RequestParser validates the rest.
        """
        for line in head.decode("latin-1").split("\r\n")[1:]:
            name, sep, value = line.partition(":")
            if sep and name.strip().lower() == "content-length":
                length = int(value.strip())
                if length < 0:
                    raise ValueError(f"Negative Content-Length: {length}")
                return length
        return 0

    def send_response(self, data: bytes) -> bool:
        """
        Write the serialised response.

        Returns:
            False if the peer went away before everything was written.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Could not deliver response: {e}")
            return False
        return True

    def close(self):
        """
        Half-close with SHUT_WR so the peer sees end-of-response, then
        release the descriptor. Safe to call twice.
        """
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING

        for step in (lambda: self.socket.shutdown(socket.SHUT_WR), self.socket.close):
            try:
                step()
            except OSError:
                pass  # peer already gone

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
