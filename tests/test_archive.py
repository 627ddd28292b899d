from __future__ import annotations

from pathlib import Path

import pytest

from epubtext.archive import EpubZip, read_epub_file
from epubtext.errors import (
    ArchiveEntryNotFoundError,
    EpubFileError,
    TextDecodingError,
    ZipArchiveError,
)


def test_read_entries_from_path(tmp_path: Path, epub) -> None:
    path = tmp_path / "book.epub"
    path.write_bytes(epub.archive({"OEBPS/a.xhtml": "\ufeff<html/>", "OEBPS/b.bin": b"\x00\x01"}))
    with EpubZip.from_path(path) as archive:
        assert archive.read_text("mimetype") == "application/epub+zip"
        assert archive.read_text("OEBPS/a.xhtml") == "<html/>"
        assert archive.read_bytes("OEBPS/b.bin") == b"\x00\x01"


def test_missing_entry_names_path(epub) -> None:
    with EpubZip(epub.archive({})) as archive:
        with pytest.raises(ArchiveEntryNotFoundError) as excinfo:
            archive.read_bytes("META-INF/container.xml")
    assert excinfo.value.path == "META-INF/container.xml"
    assert isinstance(excinfo.value, ZipArchiveError)


def test_invalid_utf8_entry(epub) -> None:
    with EpubZip(epub.archive({"bad.txt": b"\xc3\x28"})) as archive:
        with pytest.raises(TextDecodingError, match="bad.txt"):
            archive.read_text("bad.txt")


def test_not_a_zip() -> None:
    with pytest.raises(ZipArchiveError):
        EpubZip(b"PK but not really")


def test_unreadable_file(tmp_path: Path) -> None:
    with pytest.raises(EpubFileError):
        read_epub_file(tmp_path)
