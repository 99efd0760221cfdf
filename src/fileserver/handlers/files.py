"""
=============================================================================
FILE OPERATIONS
=============================================================================

Maps each request verb onto a file-system operation under a working
directory and turns the outcome into a response.

=============================================================================
VERB → OPERATION
=============================================================================

    ┌────────┬──────────────────────┬──────────────────┬───────────────────┐
    │ Verb   │ Operation            │ Open mode        │ Result on disk    │
    ├────────┼──────────────────────┼──────────────────┼───────────────────┤
    │ GET    │ read(path)           │ "rb"             │ unchanged         │
    │ PUT    │ overwrite(path, b)   │ "r+b" (exists!)  │ b + old[len(b):]  │
    │ POST   │ create_or_replace()  │ "wb"             │ exactly b         │
    │ DELETE │ remove(path)         │ unlink           │ gone (or was)     │
    │ other  │ nothing              │ -                │ unchanged         │
    └────────┴──────────────────────┴──────────────────┴───────────────────┘

PREFIX OVERWRITE (PUT):
───────────────────────

PUT does NOT replace the file. It writes the body from offset 0 and leaves
whatever was beyond the body's length in place:

    before:   h e l l o
    PUT body: x x x
    after:    x x x l o

Use POST for a full replace.

=============================================================================
ERROR → STATUS
=============================================================================

    FileNotFoundError on GET / PUT     → 404 Not Found
    any error on DELETE                → logged, 202 (idempotent delete)
    any other OSError                  → 500 Internal Server Error
    unusable path (NUL byte) on others → 500 Internal Server Error

Errors never leave FileHandler.handle(): a failed file operation only
affects the response of the connection that asked for it.

=============================================================================
PATHS ARE NOT SANITISED
=============================================================================

The request path is joined to the working directory as-is, so
"/../../etc/passwd" reaches outside it. By default the request is still
carried out and a warning is logged. With confine_paths=True such
requests are answered with 404 and no file is touched.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Union

from ..http.request import HTTPRequest, Verb
from ..http.response import (
    HTTPResponse,
    accepted,
    internal_error,
    not_found,
    not_implemented,
)


logger = logging.getLogger(__name__)


class PathOutsideRootError(FileNotFoundError):
    """Raised when confine_paths is on and a path resolves outside root_dir."""


class FileOperations:
    """
    The four synchronous file operations, relative to root_dir.

    Every method raises the OSError the file system gave it; turning those
    into statuses is FileHandler's job.

    Usage:
        ops = FileOperations("/srv/data")
        ops.create_or_replace("notes.txt", b"hello")
        ops.overwrite("notes.txt", b"J")
        ops.read("notes.txt")          # b"Jello"
        ops.remove("notes.txt")
        ops.remove("notes.txt")        # no error
    """

    def __init__(self, root_dir: Union[str, Path] = ".", confine_paths: bool = False):
        """
        Args:
            root_dir: Working directory request paths are relative to.
            confine_paths: Refuse paths that resolve outside root_dir.
        """
        self.root_dir = Path(root_dir).resolve()
        self.confine_paths = confine_paths

        if not self.root_dir.is_dir():
            raise ValueError(f"Root directory does not exist: {root_dir}")

    def resolve(self, path: str) -> Path:
        """
        Join a request path onto root_dir.

        Raises:
            PathOutsideRootError: Path escapes root_dir and confine_paths is on.
            ValueError: The path cannot name a file (embedded NUL byte).
        """
        if "\x00" in path:
            raise ValueError(f"Embedded null byte in path: {path!r}")

        full_path = self.root_dir / path
        resolved = full_path.resolve()

        if resolved != self.root_dir and self.root_dir not in resolved.parents:
            if self.confine_paths:
                logger.warning(f"Rejected path outside working directory: {path!r}")
                raise PathOutsideRootError(f"Path outside working directory: {path}")
            logger.warning(f"Path escapes working directory: {path!r}")

        return full_path

    def read(self, path: str) -> bytes:
        """Load the whole file into memory."""
        return self.resolve(path).read_bytes()

    def overwrite(self, path: str, body: bytes) -> None:
        """
        Write body at offset 0 of an EXISTING file without truncating.

        "r+b" fails with FileNotFoundError when the file is missing, so
        nothing is ever created here.
        """
        with open(self.resolve(path), "r+b") as f:
            f.write(body)

    def create_or_replace(self, path: str, body: bytes) -> None:
        """Create the file (truncating any existing one) and write body."""
        with open(self.resolve(path), "wb") as f:
            f.write(body)

    def remove(self, path: str) -> None:
        """Delete the file. A missing file is not an error."""
        full_path = self.resolve(path)
        try:
            full_path.unlink()
        except FileNotFoundError:
            logger.debug(f"Delete of missing file ignored: {path!r}")


class FileHandler:
    """
    Dispatches a request to FileOperations by verb.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      handle(request)                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   request.verb ──► _handlers[verb] ──► FileOperations.xxx()          │
    │                         │                     │                      │
    │                         │                     ├── ok     → 202       │
    │                         │                     ├── ENOENT → 404       │
    │                         │                     └── OSError→ 500       │
    │                         │                                            │
    │                         └── missing (Verb.OTHER) → 501               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, operations: FileOperations):
        self.operations = operations
        self._handlers: Dict[Verb, Callable[[HTTPRequest], HTTPResponse]] = {
            Verb.GET: self._get,
            Verb.PUT: self._put,
            Verb.POST: self._post,
            Verb.DELETE: self._delete,
        }

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Produce the response for one request.

        Never raises for file-system errors; they become 404 or 500.
        """
        handler = self._handlers.get(request.verb)
        if handler is None:
            logger.info(f"Unsupported method: {request.method}")
            return not_implemented()

        try:
            return handler(request)
        except FileNotFoundError as e:
            # GET/PUT targets, or any path rejected by confine_paths
            logger.info(f"{request.method} {request.path!r}: not found ({e})")
            return not_found(f"File not found: {request.path}")
        except OSError as e:
            logger.warning(f"{request.method} {request.path!r} failed: {e}")
            return internal_error(f"{type(e).__name__} on {request.path}")
        except ValueError as e:
            logger.warning(f"{request.method} {request.path!r}: unusable path ({e})")
            return internal_error(f"Invalid path: {request.path!r}")

    def _get(self, request: HTTPRequest) -> HTTPResponse:
        return accepted(self.operations.read(request.path))

    def _put(self, request: HTTPRequest) -> HTTPResponse:
        self.operations.overwrite(request.path, request.body)
        return accepted()

    def _post(self, request: HTTPRequest) -> HTTPResponse:
        try:
            self.operations.create_or_replace(request.path, request.body)
        except PathOutsideRootError:
            raise
        except OSError as e:
            # A missing parent directory is a create failure, not a missing target
            logger.warning(f"{request.method} {request.path!r} failed: {e}")
            return internal_error(f"{type(e).__name__} on {request.path}")
        return accepted()

    def _delete(self, request: HTTPRequest) -> HTTPResponse:
        try:
            self.operations.remove(request.path)
        except PathOutsideRootError:
            raise
        except (OSError, ValueError) as e:
            # DELETE always answers 202
            logger.warning(f"{request.method} {request.path!r} failed: {e}")
        return accepted()


def serve_files(root_dir: Union[str, Path] = ".", confine_paths: bool = False) -> FileHandler:
    """
    Factory for a FileHandler over root_dir.

    Example:
        handler = serve_files("/srv/data")
        response = handler.handle(request)
    """
    return FileHandler(FileOperations(root_dir, confine_paths=confine_paths))
