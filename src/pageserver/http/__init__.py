"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    request.py       Parse the request line (method, path, version)
    response.py      Serialize minimal HTTP/1.1 responses
    router.py        RouteIndex: URL key → page file, built at startup
    status_codes.py  The status codes the server answers with

=============================================================================
"""

from .request import HTTPRequest, HTTPParseError, parse_request_line
from .response import (
    HTTPResponse,
    ok,
    bad_request,
    not_found,
    internal_error,
    error_response,
)
from .router import RouteIndex, RouteIndexError, url_key
from .status_codes import HTTPStatus

__all__ = [
    # Request
    "HTTPRequest",
    "HTTPParseError",
    "parse_request_line",
    # Response
    "HTTPResponse",
    "ok",
    "bad_request",
    "not_found",
    "internal_error",
    "error_response",
    # Routing
    "RouteIndex",
    "RouteIndexError",
    "url_key",
    # Status codes
    "HTTPStatus",
]
