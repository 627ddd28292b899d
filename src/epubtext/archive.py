"""Read-only access to the ZIP container of an EPUB."""

from __future__ import annotations

import io
import zipfile
import zlib
from pathlib import Path

from .errors import (
    ArchiveEntryNotFoundError,
    EpubFileError,
    TextDecodingError,
    ZipArchiveError,
)


def read_epub_file(path: str | Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise EpubFileError(f"Could not read {path}: {exc}") from exc


class EpubZip:
    """Thin wrapper around :class:`zipfile.ZipFile` over an in-memory buffer."""

    def __init__(self, data: bytes) -> None:
        try:
            self._zf = zipfile.ZipFile(io.BytesIO(data), "r")
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
            raise ZipArchiveError() from exc

    @classmethod
    def from_path(cls, path: str | Path) -> "EpubZip":
        return cls(read_epub_file(path))

    def read_bytes(self, name: str) -> bytes:
        try:
            with self._zf.open(name, "r") as handle:
                return handle.read()
        except KeyError as exc:
            raise ArchiveEntryNotFoundError(name) from exc
        except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as exc:
            raise ZipArchiveError(f"Could not unzip {name}: {exc}") from exc

    def read_text(self, name: str) -> str:
        raw = self.read_bytes(name)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TextDecodingError(name) from exc
        return text.lstrip("\ufeff")

    def close(self) -> None:
        self._zf.close()

    def __enter__(self) -> "EpubZip":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
