"""
=============================================================================
ACCESS LOGGING
=============================================================================

Two lines per handled request on the "fileserver.access" logger:

    start handling 1792411200.467865888s: GET /data from 127.0.0.1 [3f9c2a1b]
    127.0.0.1 - - [19/Oct/2026:12:00:00 +0000] "GET /data" 202 17 0.42ms

The first is written when dispatch begins and carries a wall-clock epoch
timestamp. When many connections arrive at once these timestamps cluster
tightly, which is the quickest way to see that no connection waited for
another. The second is written once the response is sent, in Apache
combined style or as JSON.

Timestamps here are observability only; nothing depends on them.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass

from .http.request import HTTPRequest
from .http.response import HTTPResponse


logger = logging.getLogger("fileserver.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one request.

    request_id:     Connection id, for correlating the two log lines
    method:         Raw method token (GET, PATCH, ...)
    target:         Request target as sent
    client_ip:      Peer IP address
    user_agent:     User-Agent header or "-"
    status_code:    Response status
    content_length: Response body size in bytes
    duration_ms:    Time from dispatch to response sent
    timestamp:      When the request finished
    """

    request_id: str
    method: str
    target: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        """Convert to a dictionary for JSON serialization."""
        return {
            "request_id": self.request_id,
            "method": self.method,
            "target": self.target,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Format in Apache combined log style."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLog:
    """
    Writes the start and completion lines for each request.

    Usage:
        access = AccessLog(log_format="json")
        started_at = access.started(request, conn.id)
        ...
        access.finished(request, response, started_at, conn.id)
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        """
        Args:
            log_format: "text" (Apache style) or "json".
            log_level: Level both lines are logged at.
        """
        self.log_format = log_format
        self.log_level = log_level

    def started(self, request: HTTPRequest, request_id: str = "-") -> float:
        """
        Log the start of handling.

        Returns:
            The wall-clock start time (epoch seconds), for finished().
        """
        started_at = time.time()
        logger.log(
            self.log_level,
            f"start handling {started_at:.9f}s: {request.method} {request.target} "
            f"from {request.client_address[0]} [{request_id}]",
        )
        return started_at

    def finished(
        self,
        request: HTTPRequest,
        response: HTTPResponse,
        started_at: float,
        request_id: str = "-",
        sent: bool = True,
    ) -> RequestLog:
        """Log the completed exchange and return the record."""
        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            target=request.target,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=(time.time() - started_at) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        level = self.log_level if sent else logging.WARNING
        if self.log_format == "json":
            logger.log(level, json.dumps(entry.to_dict()))
        else:
            logger.log(level, entry.to_text())

        return entry
