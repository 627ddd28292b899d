from __future__ import annotations


class ParseError(RuntimeError):
    """Raised when an EPUB cannot be converted into a Book."""


class EpubFileError(ParseError):
    """Raised when the EPUB file itself cannot be read."""


class ZipArchiveError(ParseError):
    """Raised when the input is not a readable ZIP archive."""

    def __init__(self, message: str = "Error in underlying Zip archive") -> None:
        super().__init__(message)


class ArchiveEntryNotFoundError(ZipArchiveError):
    """Raised when a required entry is missing from the archive."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File {path} not found in archive")
        self.path = path


class TextDecodingError(ParseError):
    """Raised when an archive entry is not valid UTF-8."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid UTF-8 in {path}")
        self.path = path


class MalformedEpubError(ParseError):
    """Raised when the EPUB structure does not follow the format."""


class MalformedContainerError(MalformedEpubError):
    def __init__(self, message: str = "Malformatted/missing container.xml file") -> None:
        super().__init__(message)


class MalformedContentOpfError(MalformedEpubError):
    def __init__(self, message: str = "Malformatted content.opf file") -> None:
        super().__init__(message)


class MalformedTocNcxError(MalformedEpubError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Malformatted toc.ncx file: {detail}")
        self.detail = detail


class MalformedHtmlError(MalformedEpubError):
    """Raised when a content document is not well-formed XHTML."""

    def __init__(self, path: str, cause: Exception) -> None:
        super().__init__(f"Malformatted html file {path}: {cause}")
        self.path = path
        self.cause = cause
