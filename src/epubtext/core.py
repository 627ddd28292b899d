from __future__ import annotations

from pathlib import Path

from .archive import EpubZip, read_epub_file
from .book import Book
from .logging_utils import debug_log
from .ncx import TocNcx, parse_ncx
from .package import (
    CONTAINER_PATH,
    ContentOpf,
    find_package_path,
    parse_content_opf,
    resolve_relative_path,
)
from .reconcile import ContentPool, reconcile


class EpubDocument:
    """An opened EPUB: package metadata, navigation tree and content files.

    Everything is read eagerly when the document is constructed; failures
    surface as :class:`epubtext.errors.ParseError` subclasses.
    """

    def __init__(self, data: bytes) -> None:
        with EpubZip(data) as archive:
            self.package_path = find_package_path(archive.read_text(CONTAINER_PATH))
            debug_log(f"package document: {self.package_path}")
            self.content_opf: ContentOpf = parse_content_opf(
                archive.read_text(self.package_path)
            )
            nav_item = self.content_opf.navigation_item()
            self.navigation_path = resolve_relative_path(self.package_path, nav_item.href)
            debug_log(f"navigation document: {self.navigation_path}")
            self.navigation: TocNcx = parse_ncx(archive.read_text(self.navigation_path))
            files: dict[str, str] = {}
            for item in self.content_opf.xhtml_items():
                path = resolve_relative_path(self.package_path, item.href)
                files[path] = archive.read_text(path)
            self.content = ContentPool(files)
        debug_log(
            f"{len(self.content)} content files, {len(self.content_opf.spine)} spine items, "
            f"{len(self.navigation.flattened())} nav points"
        )

    @classmethod
    def from_path(cls, path: str | Path) -> "EpubDocument":
        return cls(read_epub_file(path))

    @property
    def title(self) -> str:
        return self.content_opf.title

    def to_book(self) -> Book:
        preface_content, chapters = reconcile(
            self.content_opf,
            self.navigation,
            self.content,
            package_path=self.package_path,
            navigation_path=self.navigation_path,
        )
        return Book(
            title=self.content_opf.title,
            author=self.content_opf.author,
            preface_content=preface_content,
            chapters=chapters,
        )


def epub_to_book(data: bytes) -> Book:
    """Parse an EPUB held in memory into a text-only :class:`Book`."""
    return EpubDocument(data).to_book()


def epub_file_to_book(path: str | Path) -> Book:
    return EpubDocument.from_path(path).to_book()


def book_to_text(book: Book) -> str:
    """Render ``book`` as one plain-text document in reading order."""
    parts: list[str] = []
    header = book.title if not book.author else f"{book.title}\n{book.author}"
    parts.append(header)
    if book.preface_content.strip():
        parts.append(book.preface_content.strip())
    for chapter, _level in book.walk():
        lines = [line for line in (chapter.title.strip(), chapter.text.strip()) if line]
        if lines:
            parts.append("\n".join(lines))
    return "\n\n".join(parts).strip()
