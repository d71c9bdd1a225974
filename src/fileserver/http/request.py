"""
=============================================================================
REQUEST LINE PARSING
=============================================================================

The file server reads ONE buffer from the socket and looks at ONE line of
it: the request line. Headers and body are never consulted.

=============================================================================
REQUEST LINE FORMAT (RFC 7230)
=============================================================================

    METHOD SP REQUEST-TARGET SP HTTP-VERSION CRLF

    Example: "GET /docs/readme.txt?v=2 HTTP/1.1"
              ─┬─ ──────────┬─────────── ───┬────
               │            │               │
            Method        Target         Version

Only the second token matters. The method and version are kept for logging,
but any method is served as a read and the version is not checked.

=============================================================================
FROM TARGET TO PATH
=============================================================================

    "/a%20b.txt?download=1#top"
         │
         ├── drop the query string and fragment  →  "/a%20b.txt"
         │
         └── percent-decode                      →  "/a b.txt"

The decoded path is what the path resolver receives.

=============================================================================
WHAT COUNTS AS MALFORMED
=============================================================================

    b""                     → nothing arrived at all
    b"GET\r\n"              → no second token
    b"\r\nHost: x\r\n"      → first line is blank

Each of these raises HTTPParseError carrying status 400. The connection
handler turns that into a "400 Bad Request" response and moves on; a bad
request never takes the serving thread down with it.

=============================================================================
"""

from dataclasses import dataclass
from urllib.parse import unquote


class HTTPParseError(Exception):
    """
    Raised when the request line cannot be parsed.

    Carries the HTTP status code that should be returned to the client, so
    the connection handler does not have to guess.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RequestLine:
    """
    The parsed first line of a request.

    Attributes:
        raw: The first line exactly as received (after lossy UTF-8 decoding),
             used for the access log.
        method: First token, e.g. "GET". Not validated.
        target: Second token as sent by the client, e.g. "/a%20b.txt?x=1".
        version: Third token if present, else an empty string.
    """

    raw: str
    method: str
    target: str
    version: str = ""

    @property
    def path(self) -> str:
        """
        The target with query and fragment removed, percent-decoded.

        Split by hand: "//notes.txt" is a path here, not a network location.
        """
        path = self.target.partition("?")[0].partition("#")[0]
        return unquote(path)


def first_line(data: bytes) -> str:
    """
    Decode ``data`` as UTF-8 and return its first line.

    Invalid byte sequences are replaced with U+FFFD rather than rejected, and
    any NUL padding a fixed-size read may leave behind is stripped.
    """
    text = data.decode("utf-8", errors="replace")
    line = text.split("\n", 1)[0]
    return line.rstrip("\r").rstrip("\x00")


def parse_request_line(data: bytes) -> RequestLine:
    """
    Parse the request line out of a raw request buffer.

    Args:
        data: Whatever a single read from the client returned.

    Returns:
        The parsed RequestLine.

    Raises:
        HTTPParseError: If the buffer is empty or its first line has no
                        second whitespace-delimited token.
    """
    if not data:
        raise HTTPParseError("Empty request")

    line = first_line(data)
    tokens = line.split()
    if len(tokens) < 2:
        raise HTTPParseError(f"Can't extract the request path from {line!r}")

    return RequestLine(
        raw=line,
        method=tokens[0],
        target=tokens[1],
        version=tokens[2] if len(tokens) > 2 else "",
    )
