from .book import Book, Chapter
from .core import EpubDocument, book_to_text, epub_file_to_book, epub_to_book
from .errors import (
    ArchiveEntryNotFoundError,
    EpubFileError,
    MalformedContainerError,
    MalformedContentOpfError,
    MalformedEpubError,
    MalformedHtmlError,
    MalformedTocNcxError,
    ParseError,
    TextDecodingError,
    ZipArchiveError,
)
from .extract import get_all_text, html_to_text

__all__ = [
    "Book",
    "Chapter",
    "EpubDocument",
    "epub_to_book",
    "epub_file_to_book",
    "book_to_text",
    "html_to_text",
    "get_all_text",
    "ParseError",
    "EpubFileError",
    "ZipArchiveError",
    "ArchiveEntryNotFoundError",
    "TextDecodingError",
    "MalformedEpubError",
    "MalformedContainerError",
    "MalformedContentOpfError",
    "MalformedTocNcxError",
    "MalformedHtmlError",
]
