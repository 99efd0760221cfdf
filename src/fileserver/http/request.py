"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes of one HTTP/1.x request into an HTTPRequest.

=============================================================================
WHAT THE FILE SERVER NEEDS FROM A REQUEST
=============================================================================

Only three things drive a file operation:

    POST /notes/today.txt HTTP/1.1\r\n         ◄── verb + target
    Host: localhost:8080\r\n
    Content-Length: 11\r\n
    \r\n
    hello world                                ◄── body (opaque bytes)

    ┌──────────────┬─────────────────────────────────────────────────────┐
    │ verb         │ POST → Verb.POST   (PATCH, HEAD, ... → Verb.OTHER)  │
    │ path         │ "notes/today.txt"  (target minus its leading "/")   │
    │ body         │ b"hello world"     (exactly Content-Length bytes)   │
    └──────────────┴─────────────────────────────────────────────────────┘

The path is taken VERBATIM from the request target. It is not URL-decoded,
normalised or checked for ".." segments here; the file handler decides what
to do with paths that leave the working directory.

=============================================================================
PARSE FAILURES
=============================================================================

A request that cannot be framed or parsed raises HTTPParseError. The server
does not answer such requests at all: it logs the error and closes the
connection.

=============================================================================
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Malformed requests are dropped without a response, so unlike a typical
    HTTP server this error carries no status code, just the reason.
    """


class Verb(Enum):
    """
    The operation a request asks for.

    Anything that is a valid method token but not one of the four file
    verbs collapses into OTHER and is answered with 501.
    """
    GET = "GET"         # Read(path)
    PUT = "PUT"         # Overwrite(path, body)
    POST = "POST"       # CreateOrReplace(path, body)
    DELETE = "DELETE"   # Remove(path)
    OTHER = "OTHER"     # Not implemented

    @classmethod
    def from_method(cls, method: str) -> "Verb":
        """Map a raw method token onto a Verb (case-sensitive, per RFC 7230)."""
        try:
            return cls(method)
        except ValueError:
            return cls.OTHER


@dataclass
class HTTPRequest:
    """
    Represents one parsed HTTP request.

    Attributes:
        method:         Raw method token as sent ("GET", "PATCH", ...)
        target:         Request target exactly as sent ("/data?x=1")
        version:        HTTP version string ("HTTP/1.1" or "HTTP/1.0")
        headers:        Header dict with LOWERCASE names
        body:           Raw body bytes (Content-Length bytes)
        client_address: (ip, port) of the peer
        raw:            The original unparsed request bytes
    """

    method: str
    target: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)
    raw: bytes = field(default=b"", repr=False)

    @property
    def verb(self) -> Verb:
        """The file verb this request maps to."""
        return Verb.from_method(self.method)

    @property
    def path(self) -> str:
        """
        File-system-relative path: the target with ONE leading "/" removed.

            "/data"        → "data"
            "/dir/a.txt"   → "dir/a.txt"
            "/../secret"   → "../secret"   (not sanitised)
        """
        if self.target.startswith("/"):
            return self.target[1:]
        return self.target

    @property
    def content_length(self) -> int:
        """Content-Length header as an integer, 0 if missing or invalid."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def user_agent(self) -> str:
        """User-Agent header value (used in access logs)."""
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """Get a header value (case-insensitive lookup)."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        Raw Request Bytes
              │
              ▼
        1. Size check               too large → HTTPParseError
        2. Find \\r\\n\\r\\n            missing   → HTTPParseError
        3. Request line             METHOD SP TARGET SP HTTP/x.y
        4. Headers                  "Name: Value", names lowercased
        5. Body                     exactly Content-Length bytes
              │
              ▼
        HTTPRequest

    ==========================================================================
    REGEX PATTERNS
    ==========================================================================

    REQUEST_LINE_PATTERN: ^([!#$%&'*+.^_`|~0-9A-Za-z-]+) (\\S+) (HTTP/\\d\\.\\d)$

        Group 1 is any RFC 7230 "token", so unknown methods like PATCH or
        FOO still parse (and are answered with 501) instead of being
        dropped as malformed.

    HEADER_PATTERN: ^([^:]+):\\s*(.*)$

    ==========================================================================
    """

    REQUEST_LINE_PATTERN = re.compile(
        r"^([!#$%&'*+.^_`|~0-9A-Za-z-]+) (\S+) (HTTP/\d\.\d)$"
    )
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        """
        Initialize the request parser.

        Args:
            max_request_size: Maximum allowed request size in bytes.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from socket.
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if not data:
            raise HTTPParseError("Empty request")

        if len(data) > self.max_request_size:
            raise HTTPParseError(f"Request too large: {len(data)} bytes")

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        try:
            # Header section must be ASCII-compatible; the body stays bytes
            header_section = data[:header_end].decode("latin-1")
        except UnicodeDecodeError as e:
            raise HTTPParseError(f"Failed to decode request: {e}") from e

        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, target, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        content_length = self._content_length(headers)
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            target=target,
            version=version,
            headers=headers,
            body=body[:content_length],
            client_address=client_address,
            raw=data,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str]:
        """
        Parse the HTTP request line.

            Example: "PUT /data HTTP/1.1"
                      ─┬─ ──┬── ────┬───
                       │    │       │
                    Method Target Version

        Raises:
            HTTPParseError: If the line is malformed or the version unknown.
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()

        if version not in self.SUPPORTED_VERSIONS:
            raise HTTPParseError(f"Unsupported HTTP version: {version}")

        return method, target, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse HTTP headers into a dictionary.

        - Names are normalised to lowercase.
        - Obsolete line folding (leading whitespace) continues the
          previous header.
        - Repeated headers are combined with ", ".
        - Lines without a colon are rejected.
        """
        headers: Dict[str, str] = {}
        current_name: Optional[str] = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is None:
                    raise HTTPParseError("Header continuation without a header")
                headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                raise HTTPParseError(f"Malformed header line: {line!r}")

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            current_name = name
            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers

    @staticmethod
    def _content_length(headers: Dict[str, str]) -> int:
        raw = headers.get("content-length")
        if raw is None:
            return 0
        try:
            length = int(raw)
        except ValueError:
            raise HTTPParseError(f"Invalid Content-Length: {raw!r}")
        if length < 0:
            raise HTTPParseError(f"Invalid Content-Length: {raw!r}")
        return length


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024
) -> HTTPRequest:
    """
    Convenience function to parse an HTTP request.

    Creates a RequestParser instance and parses the data in one call.
    Use RequestParser directly to parse many requests with the same settings.
    """
    parser = RequestParser(max_request_size=max_size)
    return parser.parse(data, client_address)
