"""
Unit tests for path resolution, directory listing, file reading and the
file handler's dispatch table.
"""

import os
import sys

import pytest

from conftest import UNICODE_TEXT
from fileserver.handlers import files
from fileserver.handlers.files import (
    FileHandler,
    Root,
    RelativePath,
    EntryKind,
    FileEntry,
    resolve_path,
    scan_directory,
    list_directory,
    read_file,
)
from fileserver.http import HTTPStatus


class TestResolvePath:

    @pytest.mark.parametrize("url_path", ["/", ""])
    def test_root(self, url_path):
        assert resolve_path(url_path) == Root()

    def test_file(self):
        assert resolve_path("/foo/bar") == RelativePath("./foo/bar")

    def test_without_leading_slash(self):
        assert resolve_path("foo") == RelativePath("./foo")

    def test_strips_single_slash_only(self):
        assert resolve_path("//etc/passwd") == RelativePath(".//etc/passwd")

    def test_dotdot_passed_through(self):
        assert resolve_path("/../secret") == RelativePath("./../secret")

    def test_trailing_slash_kept(self):
        assert resolve_path("/docs/") == RelativePath("./docs/")


class TestListDirectory:

    def test_lines_and_tags(self, served_root):
        listing = list_directory(str(served_root))
        lines = listing.splitlines()

        assert "DIR  docs" in lines
        assert "DIR  empty" in lines
        assert "FILE notes.txt" in lines
        assert "FILE binary.bin" in lines
        assert len(lines) == len(os.listdir(served_root))
        assert listing.endswith("\n")

    def test_sorted_by_name(self, served_root):
        names = [line[5:] for line in list_directory(str(served_root)).splitlines()]
        assert names == sorted(names)

    def test_immediate_children_only(self, served_root):
        listing = list_directory(str(served_root))
        assert "readme.txt" not in listing

    def test_empty_directory(self, served_root):
        assert list_directory(str(served_root / "empty")) == ""

    def test_missing_directory(self, tmp_path):
        assert list_directory(str(tmp_path / "nope")) is None

    def test_file_is_not_listable(self, served_root):
        assert list_directory(str(served_root / "notes.txt")) is None

    @pytest.mark.skipif(not hasattr(os, "symlink") or sys.platform == "win32",
                        reason="needs POSIX symlinks")
    def test_broken_symlink_tagged_dir(self, tmp_path):
        os.symlink(tmp_path / "missing", tmp_path / "dangling")
        assert list_directory(str(tmp_path)) == "DIR  dangling\n"

    @pytest.mark.skipif(sys.platform != "linux", reason="needs byte filenames")
    def test_undecodable_name_skipped(self, tmp_path):
        with open(os.path.join(bytes(tmp_path), b"bad\xff"), "wb"):
            pass
        (tmp_path / "good.txt").write_text("ok")

        assert list_directory(str(tmp_path)) == "FILE good.txt\n"

    def test_scan_directory_entries(self, served_root):
        entries = scan_directory(str(served_root / "docs"))
        assert entries == [
            FileEntry("nested", EntryKind.DIR),
            FileEntry("readme.txt", EntryKind.FILE),
        ]

    def test_entry_line(self):
        assert FileEntry("a", EntryKind.FILE).line == "FILE a\n"
        assert FileEntry("b", EntryKind.DIR).line == "DIR  b\n"


class TestReadFile:

    def test_text(self, served_root):
        assert read_file(str(served_root / "notes.txt")) == "just some notes\n"

    def test_unicode(self, served_root):
        assert read_file(str(served_root / "unicode.txt")) == UNICODE_TEXT

    def test_crlf_preserved(self, served_root):
        assert read_file(str(served_root / "crlf.txt")) == "line one\r\nline two\r\n"

    def test_invalid_utf8(self, served_root):
        assert read_file(str(served_root / "binary.bin")) is None

    def test_missing(self, served_root):
        assert read_file(str(served_root / "nope.txt")) is None

    def test_directory(self, served_root):
        assert read_file(str(served_root / "docs")) is None


class TestFileHandler:
    """The dispatch table, without sockets."""

    @pytest.fixture
    def handler(self, served_root):
        return FileHandler(str(served_root))

    def test_root_lists(self, handler):
        response = handler.handle("/")
        assert response.status == HTTPStatus.OK
        assert response.content_type == "text/plain"
        assert "FILE notes.txt\n" in response.body

    def test_file(self, handler):
        response = handler.handle("/data.json")
        assert response.status == HTTPStatus.OK
        assert response.content_type == "application/json"
        assert response.body == '{"answer": 42}'

    def test_nested_file(self, handler):
        response = handler.handle("/docs/readme.txt")
        assert response.status == HTTPStatus.OK
        assert response.body == "read me\n"

    def test_directory(self, handler):
        response = handler.handle("/docs")
        assert response.status == HTTPStatus.OK
        assert response.body == "DIR  nested\nFILE readme.txt\n"

    def test_directory_trailing_slash(self, handler):
        assert handler.handle("/docs/").body == "DIR  nested\nFILE readme.txt\n"

    def test_not_found(self, handler):
        assert handler.handle("/nope.txt").status == HTTPStatus.NOT_FOUND

    def test_unreadable_file(self, handler):
        response = handler.handle("/binary.bin")
        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.content_type == "text/plain"

    def test_listing_failure(self, handler, monkeypatch):
        monkeypatch.setattr(files, "list_directory", lambda path: None)

        assert handler.handle("/").status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert handler.handle("/docs").status == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_read_failure(self, handler, monkeypatch):
        monkeypatch.setattr(files, "read_file", lambda path: None)
        assert handler.handle("/notes.txt").status == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_nul_byte(self, handler):
        assert handler.handle("/notes.txt\x00.png").status == HTTPStatus.NOT_FOUND

    def test_relative_root_fixed_at_construction(self, served_root, monkeypatch):
        monkeypatch.chdir(served_root)
        handler = FileHandler(".")
        monkeypatch.chdir(served_root / "docs")

        assert handler.handle("/notes.txt").status == HTTPStatus.OK


class TestTraversalGuard:

    @pytest.fixture
    def outside(self, served_root):
        secret = served_root.parent / "outside-secret.txt"
        secret.write_text("top secret")
        yield secret
        secret.unlink()

    def test_dotdot_rejected(self, served_root, outside):
        handler = FileHandler(str(served_root))
        response = handler.handle(f"/../{outside.name}")
        assert response.status == HTTPStatus.NOT_FOUND

    def test_dotdot_inside_root_allowed(self, served_root):
        handler = FileHandler(str(served_root))
        assert handler.handle("/docs/../notes.txt").status == HTTPStatus.OK

    def test_guard_disabled(self, served_root, outside):
        handler = FileHandler(str(served_root), confine_to_root=False)
        response = handler.handle(f"/../{outside.name}")
        assert response.status == HTTPStatus.OK
        assert response.body == "top secret"

    @pytest.mark.skipif(not hasattr(os, "symlink") or sys.platform == "win32",
                        reason="needs POSIX symlinks")
    def test_symlink_escape_rejected(self, served_root, outside):
        os.symlink(outside, served_root / "link.txt")
        handler = FileHandler(str(served_root))
        assert handler.handle("/link.txt").status == HTTPStatus.NOT_FOUND
