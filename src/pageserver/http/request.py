"""
=============================================================================
HTTP REQUEST LINE PARSING
=============================================================================

Only the FIRST line of a request is read and parsed. Headers and body are
never consulted: the request path alone selects the page.

=============================================================================
REQUEST LINE FORMAT (RFC 7230)
=============================================================================

    METHOD SP REQUEST-TARGET SP HTTP-VERSION CRLF

    Example: "GET /about HTTP/1.1"
              ─┬─ ──┬─── ───┬────
               │    │       │
            Method Path   Version

The path is used exactly as received. It is a dictionary key, never a
filesystem path, so it is not URL-decoded and ".." needs no special
treatment.

=============================================================================
"""

from dataclasses import dataclass
from typing import Union


class HTTPParseError(Exception):
    """
    Raised when the request line cannot be parsed.

    Carries the HTTP status code to answer with (400 Bad Request).
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code  # HTTP status to return


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed request line.

    Attributes:
        method: HTTP method as sent ("GET", "POST", ...). Not validated.
        path: Request target, used verbatim as the route key.
        version: Protocol version token ("HTTP/1.1").
        raw: The request line without its terminator.
    """

    method: str
    path: str
    version: str
    raw: str = ""

    @property
    def request_line(self) -> str:
        """The request line as it appears in the access log."""
        return self.raw or f"{self.method} {self.path} {self.version}"


def parse_request_line(line: Union[str, bytes]) -> HTTPRequest:
    """
    Split a request line into method, path and version.

    Args:
        line: The request line, with or without its trailing CRLF.

    Returns:
        The parsed HTTPRequest.

    Raises:
        HTTPParseError: If the line does not hold exactly three
                        whitespace-separated tokens or is not UTF-8.

    Example:
        parse_request_line("GET / HTTP/1.1").path  → "/"
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise HTTPParseError(f"Request line is not valid UTF-8: {e}") from e

    line = line.rstrip("\r\n")
    tokens = line.split()

    if len(tokens) != 3:
        raise HTTPParseError(f"Invalid request line: {line!r}")

    method, path, version = tokens
    return HTTPRequest(method=method, path=path, version=version, raw=line)
