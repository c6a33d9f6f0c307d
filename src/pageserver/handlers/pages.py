"""
=============================================================================
PAGE HANDLER
=============================================================================

Turns a parsed request into a response using the route index.

    Request: GET /about HTTP/1.1

    1. routes.lookup("/about")          → "pages/about.html" or None
    2. None                             → 404 NOT FOUND
    3. read the whole file as bytes     → 200 OK + Content-Length
    4. read fails (deleted, permission) → 500 INTERNAL SERVER ERROR

The method is not checked: a POST to a page is answered like a GET.
Files are read as raw bytes, so images and other binary assets reach the
client unchanged.

=============================================================================
"""

import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok, not_found, internal_error
from ..http.router import RouteIndex


logger = logging.getLogger(__name__)


class PageHandler:
    """
    Serves the pages listed in a RouteIndex.

    One handler is shared by every worker thread. It holds no mutable
    state: the index is immutable and each call reads its own file.

    Usage:
        handler = PageHandler(RouteIndex.build())
        response = handler.handle(request)
    """

    def __init__(self, routes: RouteIndex):
        self.routes = routes

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Answer one request.

        Args:
            request: The parsed request line.

        Returns:
            200 with the file body, 404 on a route miss, 500 if the mapped
            file cannot be read.
        """
        file_path = self.routes.lookup(request.path)

        if file_path is None:
            logger.warning(f"Route not found: {request.path!r}")
            return not_found()

        try:
            content = self.read_page(file_path)
        except OSError as e:
            logger.error(f"Failed to read {file_path!r} for {request.path!r}: {e}")
            return internal_error()

        logger.debug(f"Serving {file_path!r} ({len(content)} bytes) for {request.path!r}")
        return ok(content)

    def read_page(self, file_path: str) -> bytes:
        """Read an indexed file fully into memory. The file is closed on return."""
        return self.routes.resolve(file_path).read_bytes()
