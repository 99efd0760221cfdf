"""
=============================================================================
STATUS VOCABULARY
=============================================================================

The file server only ever answers with four status codes. Every outcome of
a file operation is folded into one of them:

    ┌────────┬──────────────────────────┬─────────────────────────────────┐
    │  Code  │ Name                     │ Produced when                   │
    ├────────┼──────────────────────────┼─────────────────────────────────┤
    │  202   │ Accepted                 │ Any file operation succeeded    │
    │        │                          │ (also DELETE of a missing file) │
    ├────────┼──────────────────────────┼─────────────────────────────────┤
    │  404   │ Not Found                │ GET / PUT target does not exist │
    ├────────┼──────────────────────────┼─────────────────────────────────┤
    │  500   │ Internal Server Error    │ Any other I/O failure           │
    ├────────┼──────────────────────────┼─────────────────────────────────┤
    │  501   │ Not Implemented          │ Verb is not GET/PUT/POST/DELETE │
    └────────┴──────────────────────────┴─────────────────────────────────┘

Why 202 and not 200/201/204? The server reports that the operation was
carried out, and uses the same code for every verb so clients only need
to check one value.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.ACCEPTED == 202
        True
        >>> HTTPStatus.ACCEPTED.phrase
        'Accepted'
    """

    ACCEPTED = 202               # Operation carried out
    NOT_FOUND = 404              # Target file does not exist
    INTERNAL_SERVER_ERROR = 500  # I/O failure other than a missing file
    NOT_IMPLEMENTED = 501        # Unrecognised verb

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 202 Accepted
                     ─── ────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx (success) status code."""
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """Check if this is an error status code (4xx or 5xx)."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.ACCEPTED: "Accepted",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
}
