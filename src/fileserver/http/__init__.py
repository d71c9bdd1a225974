"""
HTTP protocol pieces used by the file server.

    request.py       Request-line parsing (the only part of a request we read)
    response.py      Headers + response serialization
    status_codes.py  The four status codes the server emits
    mime_types.py    Extension → Content-Type
"""

from .request import HTTPParseError, RequestLine, parse_request_line
from .response import (
    Headers,
    HTTPResponse,
    ok,
    error_response,
    not_found,
    internal_error,
)
from .status_codes import HTTPStatus
from .mime_types import get_mimetype, DEFAULT_MIME_TYPE

__all__ = [
    "HTTPParseError",
    "RequestLine",
    "parse_request_line",
    "Headers",
    "HTTPResponse",
    "ok",
    "error_response",
    "not_found",
    "internal_error",
    "HTTPStatus",
    "get_mimetype",
    "DEFAULT_MIME_TYPE",
]
