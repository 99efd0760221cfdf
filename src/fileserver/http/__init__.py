"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

The file server speaks a deliberately small slice of HTTP/1.x: one request,
one response, then the connection is closed.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    One Exchange Per Connection                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   CLIENT                                         SERVER              │
    │      │   POST /data HTTP/1.1                        │                │
    │      │   Content-Length: 17                         │                │
    │      │   {"key1":"value1"}                          │                │
    │      │  ─────────────────────────────────────────►  │                │
    │      │                                              │ write file     │
    │      │               HTTP/1.1 202 Accepted          │                │
    │      │               Connection: close              │                │
    │      │  ◄─────────────────────────────────────────  │                │
    │      │                                        close()                │
    └─────────────────────────────────────────────────────────────────────┘

    request.py       bytes → HTTPRequest (Verb, path, body)
    response.py      HTTPResponse → bytes
    status_codes.py  202 / 404 / 500 / 501

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, Verb, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    accepted,          # 202 Accepted
    not_found,         # 404 Not Found
    internal_error,    # 500 Internal Server Error
    not_implemented,   # 501 Not Implemented
)
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "Verb",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "accepted",
    "not_found",
    "internal_error",
    "not_implemented",

    # Status codes
    "HTTPStatus",
]
