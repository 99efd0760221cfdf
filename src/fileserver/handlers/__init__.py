"""
=============================================================================
REQUEST HANDLERS
=============================================================================

A handler is any callable that turns an HTTPRequest into an HTTPResponse:

    handler(request: HTTPRequest) -> HTTPResponse

The file server has exactly one, FileHandler, which maps verbs onto file
operations under a working directory.

    from fileserver.handlers import serve_files

    handler = serve_files("/srv/data")
    response = handler.handle(request)

=============================================================================
"""

from .files import FileHandler, FileOperations, PathOutsideRootError, serve_files

__all__ = [
    "FileHandler",
    "FileOperations",
    "PathOutsideRootError",
    "serve_files",
]
