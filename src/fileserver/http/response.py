"""
=============================================================================
RESPONSES
=============================================================================

Every connection gets at most one response, and it is always the last
thing written before the socket closes.

=============================================================================
ON THE WIRE
=============================================================================

    HTTP/1.1 202 Accepted                      status line
    Content-Type: application/octet-stream     only when there is a body
    Content-Length: 17                         filled in by to_bytes()
    Connection: close                          filled in by to_bytes()
    Date: Mon, 19 Oct 2026 12:00:00 GMT        filled in by to_bytes()
    Server: PyFileServer/1.0                   filled in by to_bytes()
                                               blank line
    {"key1":"value1"}                          file bytes, untouched

The four statuses the server can send each have a helper at the bottom of
this module. Handlers should use those rather than build responses by hand.

=============================================================================
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    Status, headers and body of one reply.

        handler ──► HTTPResponse ──► to_bytes() ──► Connection.send_response()
    """

    status: HTTPStatus = HTTPStatus.ACCEPTED
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 404 Not Found"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "PyFileServer/1.0") -> bytes:
        """
        Serialise for sendall().

        Headers the handler did not set get server defaults; in particular
        Connection is "close" because no connection outlives its response.

        Args:
            server_name: Value for the Server header.
        """
        headers = {**self.headers}
        headers.setdefault("Content-Length", str(len(self.body)))
        headers.setdefault("Connection", "close")
        headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        headers.setdefault("Server", server_name)

        head = "".join(f"{name}: {value}\r\n" for name, value in headers.items())
        return f"{self.status_line}\r\n{head}\r\n".encode("latin-1") + self.body


class ResponseBuilder:
    """
    Chainable construction of an HTTPResponse.

        (ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .json({"error": "File not found: data"})
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.ACCEPTED
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Raw body; str is encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        return self.body(text).content_type("text/plain; charset=utf-8")

    def json(self, data: Any) -> "ResponseBuilder":
        return (self.body(json.dumps(data, ensure_ascii=False))
            .content_type("application/json; charset=utf-8"))

    def build(self) -> HTTPResponse:
        return HTTPResponse(status=self._status, headers=self._headers, body=self._body)


def format_http_date(dt: datetime) -> str:
    """
    RFC 7231 IMF-fixdate, e.g. "Mon, 19 Oct 2026 12:00:00 GMT".

    dt must be timezone-aware and in UTC.
    """
    return format_datetime(dt, usegmt=True)


# =============================================================================
# ONE HELPER PER STATUS
# =============================================================================

def accepted(body: bytes = b"") -> HTTPResponse:
    """
    202 Accepted, the answer to every successful file operation.

    GET passes the file's bytes as body; the other verbs send none.
    """
    builder = ResponseBuilder().status(HTTPStatus.ACCEPTED)
    if body:
        builder.body(body).content_type("application/octet-stream")
    return builder.build()


def not_found(message: str = "Not Found") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).json({"error": message}).build()


def not_implemented(message: str = "Unidentified request-method") -> HTTPResponse:
    """501 with a plain-text reason, readable straight from curl."""
    return ResponseBuilder().status(HTTPStatus.NOT_IMPLEMENTED).text(message).build()


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500. The message reaches the client, so it names no host paths."""
    return (ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .json({"error": message})
        .build())
