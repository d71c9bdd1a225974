"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The file server speaks a deliberately tiny subset of HTTP/1.1, so it only
ever emits four status codes:

    ┌──────────────────────────────────────────────────────────────────────┐
    │  Code │ Phrase                 │ When                                 │
    ├──────────────────────────────────────────────────────────────────────┤
    │  200  │ OK                     │ File contents or directory listing   │
    │  400  │ Bad Request            │ Request line has no path token       │
    │  404  │ Not Found              │ Nothing at the resolved path         │
    │  500  │ Internal server error  │ Listing or reading failed            │
    └──────────────────────────────────────────────────────────────────────┘

The 500 phrase is lower-case after the first word. That is what existing
clients of this server have always seen on the wire, so it is kept as-is.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the file server.

    Extends IntEnum, so members compare equal to their integer value:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200                      # File or listing served
    BAD_REQUEST = 400             # Malformed request line
    NOT_FOUND = 404               # Resolved path does not exist
    INTERNAL_SERVER_ERROR = 500   # Listing or read failure

    @property
    def phrase(self) -> str:
        """Reason phrase that follows the code on the status line."""
        return _STATUS_PHRASES[self]

    @property
    def line(self) -> str:
        """
        The status portion of the response line, e.g. ``"404 Not Found"``.

        The full status line is ``HTTP/1.1 `` followed by this value.
        """
        return f"{self.value} {self.phrase}"


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal server error",
}
