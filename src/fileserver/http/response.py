"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Every response the file server sends has exactly the same shape:

    HTTP/1.1 200 OK\r\n                    ← Status line
    Content-Type: text/plain\r\n           ← Header 1
    Content-Length: 24\r\n                 ← Header 2
    \r\n                                   ← Blank line (end of headers)
    DIR  docs\nFILE notes.txt\n            ← Body

No Date, Server or Connection headers are sent. The connection is always
closed after one exchange, and the client finds the end of the body from
Content-Length.

=============================================================================
CONTENT-LENGTH IS COUNTED IN BYTES
=============================================================================

Content-Length is the number of BYTES in the body, not characters:

    body = "héllo"
    len(body)                  → 5   (characters)
    len(body.encode("utf-8"))  → 6   (bytes; "é" is two bytes)

Sending 5 here would make the client stop one byte short and leave the
last byte in the socket. Headers are therefore never built by hand: the
only way to get a Headers value for a body is ``Headers.for_body``, which
measures the encoded body.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional

from .mime_types import DEFAULT_MIME_TYPE
from .status_codes import HTTPStatus


HTTP_VERSION = "HTTP/1.1"
CRLF = "\r\n"
BODY_ENCODING = "utf-8"


@dataclass(frozen=True)
class Headers:
    """
    The two response headers the server emits, in wire order.

    Attributes:
        content_type: Media type of the body.
        content_length: Byte length of the encoded body.
    """

    content_type: str
    content_length: int

    @classmethod
    def for_body(cls, body: bytes, content_type: str = DEFAULT_MIME_TYPE) -> "Headers":
        """Build headers whose Content-Length matches ``body`` exactly."""
        return cls(content_type=content_type, content_length=len(body))

    def to_bytes(self) -> bytes:
        """Serialize as header lines followed by the blank line."""
        lines = (
            f"Content-Type: {self.content_type}{CRLF}"
            f"Content-Length: {self.content_length}{CRLF}"
            f"{CRLF}"
        )
        return lines.encode("latin-1")


@dataclass
class HTTPResponse:
    """
    A response waiting to be written.

    The body is kept as text; it is encoded once when headers are built or
    the response is serialized. Owned by a single connection handler and
    dropped once written.
    """

    status: HTTPStatus = HTTPStatus.OK
    body: str = ""
    content_type: str = DEFAULT_MIME_TYPE

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line, without the trailing CRLF.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{HTTP_VERSION} {self.status.line}"

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode(BODY_ENCODING)

    @property
    def headers(self) -> Headers:
        return Headers.for_body(self.body_bytes, self.content_type)

    def to_bytes(self) -> bytes:
        """
        Serialize the response for ``socket.sendall()``.

        Status line + CRLF, the header block (which ends with its own blank
        line), then the raw body bytes.
        """
        body = self.body_bytes
        head = (self.status_line + CRLF).encode("latin-1")
        return head + Headers.for_body(body, self.content_type).to_bytes() + body


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One per status the server can produce. Error bodies are fixed plain-text
# messages; callers may pass something more specific.
#
#     return ok(listing)
#     return ok(text, content_type=get_mimetype(path))
#     return not_found()
#
# =============================================================================

def ok(body: str = "", content_type: Optional[str] = None) -> HTTPResponse:
    """Create a 200 OK response."""
    return HTTPResponse(
        status=HTTPStatus.OK,
        body=body,
        content_type=content_type or DEFAULT_MIME_TYPE,
    )


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Create a plain-text error response, e.g. from HTTPParseError.status_code."""
    return HTTPResponse(status=status, body=message)


def not_found(message: str = "Cannot retrieve file content") -> HTTPResponse:
    """Create a 404 Not Found response."""
    return error_response(HTTPStatus.NOT_FOUND, message)


def internal_error(message: str = "Internal server error") -> HTTPResponse:
    """
    Create a 500 Internal server error response.

    Used when a listing or a file read fails. Keep the message generic; the
    details belong in the server log, not in the response.
    """
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
