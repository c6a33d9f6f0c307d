"""
=============================================================================
HTTP RESPONSE
=============================================================================

Builds the minimal HTTP/1.1 responses this server sends.

=============================================================================
WIRE FORMAT
=============================================================================

    HTTP/1.1 200 OK\r\n              ← Status line
    Content-Length: 5\r\n            ← Only header ever sent (body responses)
    \r\n                             ← Empty line (separator)
    about                            ← Body bytes

    HTTP/1.1 404 NOT FOUND\r\n       ← Error responses: status line
    \r\n                             ← and blank line, nothing else

No Content-Type, Connection, Date or Server header is added. Content-Length
is the BYTE count of the body, so binary files are served intact.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

        Handler returns          to_bytes()              Socket sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
    """

    status: HTTPStatus = HTTPStatus.OK       # HTTP status code (enum)
    headers: Dict[str, str] = field(default_factory=dict)  # Response headers
    body: bytes = b""                        # Response body
    version: str = "HTTP/1.1"                # HTTP version

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 404 NOT FOUND"
        """
        return f"{self.version} {self.status} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """
        Set the response body and its Content-Length.

        Strings are encoded to UTF-8 first.
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.body = body
        return self.set_header("Content-Length", str(len(body)))

    def to_bytes(self) -> bytes:
        """
        Serialize the response for socket.sendall().

        Headers are written exactly as set; nothing is added here.
        """
        lines = [self.status_line]

        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(body: Union[str, bytes]) -> HTTPResponse:
    """
    200 OK with a body and its Content-Length.

    Example:
        ok(b"hi").to_bytes()  → b"HTTP/1.1 200 OK\\r\\nContent-Length: 2\\r\\n\\r\\nhi"
    """
    return HTTPResponse(status=HTTPStatus.OK).set_body(body)


def bad_request() -> HTTPResponse:
    """400 Bad Request, status line only."""
    return error_response(HTTPStatus.BAD_REQUEST)


def not_found() -> HTTPResponse:
    """404 Not Found, status line only."""
    return error_response(HTTPStatus.NOT_FOUND)


def internal_error() -> HTTPResponse:
    """500 Internal Server Error, status line only."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR)


def error_response(status: Union[HTTPStatus, int]) -> HTTPResponse:
    """Status-line-only response for any known status code."""
    return HTTPResponse(status=HTTPStatus(status))
