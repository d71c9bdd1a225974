"""
=============================================================================
FILE HANDLER
=============================================================================

Turns a request path into a response by looking at the filesystem.

=============================================================================
FLOW
=============================================================================

    "/docs/readme.txt"
           │
           ▼
    resolve_path()          strip one leading "/", prefix with "."
           │
           ├── Root                          → list the served root
           │
           └── RelativePath("./docs/readme.txt")
                     │
                     ▼
               os.stat()
                     │
                     ├── fails               → 404
                     ├── not a regular file  → list it as a directory
                     └── regular file        → read it as text

=============================================================================
DISPATCH TABLE
=============================================================================

    ┌──────────────┬──────────────────────────────┬──────────────────────┐
    │ Target       │ Filesystem                   │ Response             │
    ├──────────────┼──────────────────────────────┼──────────────────────┤
    │ Root         │ listing ok                   │ 200 listing          │
    │ Root         │ listing fails                │ 500                  │
    │ RelativePath │ stat fails                   │ 404                  │
    │ RelativePath │ directory, listing ok        │ 200 listing          │
    │ RelativePath │ directory, listing fails     │ 500                  │
    │ RelativePath │ file, read ok                │ 200 content, by ext  │
    │ RelativePath │ file, read fails             │ 500                  │
    └──────────────┴──────────────────────────────┴──────────────────────┘

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

The resolver itself is a pure string transformation and happily produces
"./../../etc/passwd". Whether that escapes depends on the handler:

    confine_to_root=True   (default)
        The joined path is canonicalized with os.path.realpath() (which
        collapses ".." and follows symlinks) and must still sit inside the
        canonical root. Anything outside answers 404, the same as a
        missing file.

    confine_to_root=False
        The path goes to the filesystem untouched and ".." segments are
        resolved by the OS. Only use this on a trusted network.

=============================================================================
"""

import enum
import logging
import os
import stat
from dataclasses import dataclass
from typing import List, Optional, Union

from ..http.mime_types import get_mimetype
from ..http.response import HTTPResponse, ok, not_found, internal_error


logger = logging.getLogger(__name__)


# Every resolved path starts with this; it stands for the served root.
ROOT_MARKER = "."


# =============================================================================
# PATH RESOLVER
# =============================================================================

class Root:
    """Resolved target for a request that names no path (``/`` or empty)."""

    def __eq__(self, other):
        return isinstance(other, Root)

    def __hash__(self):
        return hash(Root)

    def __repr__(self):
        return "Root()"


@dataclass(frozen=True)
class RelativePath:
    """Resolved target naming a path relative to the served root."""

    path: str


Target = Union[Root, RelativePath]


def resolve_path(url_path: str) -> Target:
    """
    Map a URL path to a resolved target.

    Strips a single leading ``/`` and prefixes what is left with the root
    marker. An empty remainder means the root itself.

    No sanitization happens here: ``..`` segments are passed through.

    Examples:
        >>> resolve_path("/")
        Root()
        >>> resolve_path("/docs/a.txt")
        RelativePath(path='./docs/a.txt')
        >>> resolve_path("/../secret")
        RelativePath(path='./../secret')
    """
    rest = url_path[1:] if url_path.startswith("/") else url_path
    if not rest:
        return Root()
    return RelativePath(f"{ROOT_MARKER}/{rest}")


# =============================================================================
# DIRECTORY LISTER
# =============================================================================

class EntryKind(enum.Enum):
    """Kind tag of a listing line. Values are the fixed-width tags."""

    FILE = "FILE "
    DIR = "DIR  "


@dataclass(frozen=True)
class FileEntry:
    name: str
    kind: EntryKind

    @property
    def line(self) -> str:
        return f"{self.kind.value}{self.name}\n"


def _is_decodable(name: str) -> bool:
    # Undecodable bytes in a filename come back as lone surrogates
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _entry_kind(path: str) -> EntryKind:
    """
    Classify ``path`` as FILE or DIR.

    Follows symlinks. Anything that is not known to be a regular file,
    including an entry whose metadata cannot be read, is a DIR.
    """
    try:
        mode = os.stat(path).st_mode
    except OSError:
        return EntryKind.DIR
    return EntryKind.FILE if stat.S_ISREG(mode) else EntryKind.DIR


def scan_directory(path: str) -> List[FileEntry]:
    """
    Enumerate the immediate children of ``path``, sorted by name.

    Raises:
        OSError: If the directory cannot be opened or read.
    """
    with os.scandir(path) as it:
        dir_entries = list(it)

    entries = [
        FileEntry(entry.name, _entry_kind(entry.path))
        for entry in dir_entries
        if _is_decodable(entry.name)
    ]
    entries.sort(key=lambda e: e.name)
    return entries


def list_directory(path: str) -> Optional[str]:
    """
    Produce the plain-text listing of ``path``.

    One line per child: a five-character kind tag, the base name, a newline.

        DIR  images
        FILE index.json
        FILE notes.txt

    Returns:
        The listing, or None if the directory could not be read.
    """
    try:
        entries = scan_directory(path)
    except OSError as e:
        logger.warning(f"Cannot list directory {path}: {e}")
        return None
    return "".join(entry.line for entry in entries)


# =============================================================================
# FILE READER
# =============================================================================

def read_file(path: str) -> Optional[str]:
    """
    Read the whole file at ``path`` as UTF-8 text.

    Line endings are preserved as stored, so re-encoding the result gives
    back the file's exact bytes.

    Returns:
        The contents, or None on any I/O or decoding error. Never a
        partial result.
    """
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Cannot read file {path}: {e}")
        return None


# =============================================================================
# DISPATCH
# =============================================================================

class FileHandler:
    """
    Serves files and directory listings from a root directory.

    Usage:
        handler = FileHandler("/srv/files")
        response = handler.handle("/docs/readme.txt")
    """

    def __init__(self, root: str = ROOT_MARKER, confine_to_root: bool = True):
        """
        Args:
            root: Directory to serve. Relative roots are taken relative to
                  the working directory at construction time.
            confine_to_root: Reject (404) any path that resolves outside root.
        """
        self.root = os.path.abspath(root)
        self.confine_to_root = confine_to_root
        self._root_real = os.path.realpath(self.root)

    def handle(self, url_path: str) -> HTTPResponse:
        """Resolve ``url_path`` and build the response for it."""
        target = resolve_path(url_path)

        if isinstance(target, Root):
            return self._listing(self.root)

        fs_path = os.path.join(self.root, target.path)

        # A decoded %00 cannot name anything on disk
        if "\x00" in fs_path:
            return not_found()

        if self.confine_to_root and not self._is_inside_root(fs_path):
            logger.warning(f"Path traversal attempt: {url_path}")
            return not_found()

        try:
            st = os.stat(fs_path)
        except OSError:
            return not_found()

        if not stat.S_ISREG(st.st_mode):
            return self._listing(fs_path)

        content = read_file(fs_path)
        if content is None:
            return internal_error("Cannot retrieve file content")

        return ok(content, content_type=get_mimetype(fs_path))

    def _listing(self, path: str) -> HTTPResponse:
        listing = list_directory(path)
        if listing is None:
            return internal_error("Cannot list directory")
        return ok(listing)

    def _is_inside_root(self, path: str) -> bool:
        real = os.path.realpath(path)
        return real == self._root_real or real.startswith(
            self._root_real.rstrip(os.sep) + os.sep
        )
