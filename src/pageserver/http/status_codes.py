"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server can answer with.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ OK                    - Page found and read              │
    │  400   │ BAD REQUEST           - Request line is malformed        │
    │  404   │ NOT FOUND             - No route for the request path    │
    │  500   │ INTERNAL SERVER ERROR - Route found, file read failed    │
    └────────┴───────────────────────────────────────────────────────────┘

Reason phrases are sent in upper case ("HTTP/1.1 404 NOT FOUND"). The
reason phrase is informational in HTTP/1.1; clients key off the number.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an IntEnum.

    IntEnum members compare equal to plain ints:

        HTTPStatus.NOT_FOUND == 404   # True
        f"{HTTPStatus.OK}"            # "200"
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

        Example:
            HTTPStatus.NOT_FOUND.phrase  → "NOT FOUND"
        """
        return self.name.replace("_", " ")

    def __str__(self) -> str:
        return str(self.value)

    @property
    def is_error(self) -> bool:
        """Check if status is 4xx or 5xx error."""
        return self.value >= 400
