"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps a filename to the Content-Type the server sends with it.

=============================================================================
HOW DETECTION WORKS
=============================================================================

Detection looks at the text after the LAST dot in the file's base name and
nothing else. There is no magic-byte sniffing: a PNG renamed to ``.txt`` is
served as text/plain.

    ┌──────────────────────────────────────────────────────────────────────┐
    │   "logo.png"          → "png"    → image/png                        │
    │   "bundle.min.js"     → "js"     → application/javascript           │
    │   "notes.tar.gz"      → "gz"     → text/plain   (unknown)           │
    │   "Makefile"          → (none)   → text/plain                       │
    │   "dir.v2/README"     → (none)   → text/plain   (dot in parent dir) │
    └──────────────────────────────────────────────────────────────────────┘

The lookup is case-sensitive: ``PHOTO.PNG`` is text/plain. The table is kept
small on purpose. Anything the server does not know about is served as plain
text, which is also the type of every listing and error body.

=============================================================================
"""

import os


# Extension (without the dot) → media type
MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "json": "application/json",
    "js": "application/javascript",
}

# Used for unknown extensions, files without an extension, listings and
# error bodies.
DEFAULT_MIME_TYPE = "text/plain"


def get_extension(filename: str) -> str:
    """
    Return the text after the last ``.`` in the base name of ``filename``.

    Returns an empty string when the base name has no dot.

    Examples:
        >>> get_extension("style.min.js")
        'js'
        >>> get_extension("some.dir/README")
        ''
    """
    name = os.path.basename(filename)
    _, dot, extension = name.rpartition(".")
    return extension if dot else ""


def get_mimetype(filename: str) -> str:
    """
    Get the Content-Type for a file based on its extension.

    Total and pure: every input maps to some media type, and the same input
    always maps to the same one.

    Args:
        filename: A file name or a path to one.

    Returns:
        The media type string.

    Examples:
        >>> get_mimetype("a.png")
        'image/png'
        >>> get_mimetype("a.unknownext")
        'text/plain'
        >>> get_mimetype("noext")
        'text/plain'
    """
    return MIME_TYPES.get(get_extension(filename), DEFAULT_MIME_TYPE)
