"""
Request handlers.

A handler takes the decoded request path and returns an HTTPResponse. The
file server has one: FileHandler, which maps paths onto a directory tree.
"""

from .files import (
    FileHandler,
    Root,
    RelativePath,
    resolve_path,
    EntryKind,
    FileEntry,
    scan_directory,
    list_directory,
    read_file,
)

__all__ = [
    "FileHandler",
    "Root",
    "RelativePath",
    "resolve_path",
    "EntryKind",
    "FileEntry",
    "scan_directory",
    "list_directory",
    "read_file",
]
