from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from .book import Book, Chapter

BOOK_METADATA_FILENAME = ".epubtext-book.json"
PREFACE_FILENAME = "000_preface.txt"
METADATA_VERSION = 1


@dataclass
class ChapterFileRecord:
    chapter: Chapter
    path: Path
    index: int
    level: int


@dataclass
class BookPackage:
    output_dir: Path
    chapter_records: list[ChapterFileRecord]
    metadata_path: Path
    preface_path: Path | None
    book_title: str
    book_author: str | None


@dataclass
class ChapterMetadata:
    index: int | None
    file: str
    title: str | None
    level: int
    subchapters: list["ChapterMetadata"]


@dataclass
class LoadedBookMetadata:
    title: str | None
    author: str | None
    epub: str | None
    preface_path: Path | None
    chapters: list[ChapterMetadata]


def _slugify_for_filename(text: str) -> str:
    cleaned_chars: list[str] = []
    for ch in text.strip():
        if ch in {"/", "\\", ":", "*", "?", '"', "<", ">", "|"}:
            cleaned_chars.append("_")
            continue
        if ord(ch) < 32:
            continue
        if ch.isspace():
            cleaned_chars.append("_")
            continue
        cleaned_chars.append(ch)
    slug = "".join(cleaned_chars)
    slug = re.sub(r"_+", "_", slug).strip("_")
    return slug[:80]


def _chapter_basename(index: int, chapter: Chapter, used_names: set[str]) -> str:
    prefix = f"{index:03d}"
    slug = _slugify_for_filename(chapter.title) if chapter.title else ""
    if slug:
        candidate = f"{prefix}_{slug}"
        if candidate not in used_names:
            used_names.add(candidate)
            return candidate
    candidate = prefix
    suffix = 1
    while candidate in used_names:
        suffix += 1
        candidate = f"{prefix}_{suffix}"
    used_names.add(candidate)
    return candidate


def _write_chapter_texts(output_dir: Path, book: Book) -> list[ChapterFileRecord]:
    used_names: set[str] = {Path(PREFACE_FILENAME).stem}
    records: list[ChapterFileRecord] = []
    for position, (chapter, level) in enumerate(book.walk(), start=1):
        basename = _chapter_basename(position, chapter, used_names)
        path = output_dir / f"{basename}.txt"
        path.write_text(chapter.text, encoding="utf-8")
        records.append(ChapterFileRecord(chapter=chapter, path=path, index=position, level=level))
    return records


def _write_preface(output_dir: Path, book: Book) -> Path | None:
    path = output_dir / PREFACE_FILENAME
    if not book.preface_content.strip():
        path.unlink(missing_ok=True)
        return None
    path.write_text(book.preface_content, encoding="utf-8")
    return path


def _chapter_tree_payload(
    chapters: tuple[Chapter, ...], records_by_id: dict[int, ChapterFileRecord]
) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for chapter in chapters:
        record = records_by_id[id(chapter)]
        payload.append(
            {
                "index": record.index,
                "file": record.path.name,
                "title": chapter.title,
                "level": record.level,
                "subchapters": _chapter_tree_payload(chapter.subchapters, records_by_id),
            }
        )
    return payload


def _build_metadata_payload(
    book: Book,
    records: list[ChapterFileRecord],
    *,
    preface_path: Path | None,
    source_epub: Path | None,
) -> dict[str, object]:
    records_by_id = {id(record.chapter): record for record in records}
    payload: dict[str, object] = {
        "version": METADATA_VERSION,
        "title": book.title,
        "chapters": _chapter_tree_payload(book.chapters, records_by_id),
    }
    if book.author:
        payload["author"] = book.author
    if preface_path is not None:
        payload["preface"] = preface_path.name
    if source_epub is not None:
        payload["epub"] = source_epub.name
    return payload


def write_book_package(
    output_dir: Path,
    book: Book,
    *,
    source_epub: Path | None = None,
) -> BookPackage:
    """Write one text file per chapter plus a metadata file describing the tree."""
    output_dir.mkdir(parents=True, exist_ok=True)
    preface_path = _write_preface(output_dir, book)
    records = _write_chapter_texts(output_dir, book)
    metadata_path = output_dir / BOOK_METADATA_FILENAME
    metadata_payload = _build_metadata_payload(
        book,
        records,
        preface_path=preface_path,
        source_epub=source_epub,
    )
    metadata_path.write_text(
        json.dumps(metadata_payload, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return BookPackage(
        output_dir=output_dir,
        chapter_records=records,
        metadata_path=metadata_path,
        preface_path=preface_path,
        book_title=book.title,
        book_author=book.author,
    )


def _load_chapter_entries(entries: object) -> list[ChapterMetadata]:
    chapters: list[ChapterMetadata] = []
    if not isinstance(entries, list):
        return chapters
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        file_name = entry.get("file")
        if not isinstance(file_name, str):
            continue
        index_val = entry.get("index")
        index = None
        if isinstance(index_val, int):
            index = index_val
        elif isinstance(index_val, str) and index_val.isdigit():
            index = int(index_val)
        level = entry.get("level")
        title = entry.get("title")
        chapters.append(
            ChapterMetadata(
                index=index,
                file=file_name,
                title=title if isinstance(title, str) else None,
                level=level if isinstance(level, int) else 1,
                subchapters=_load_chapter_entries(entry.get("subchapters")),
            )
        )
    return chapters


def load_book_metadata(book_dir: Path) -> LoadedBookMetadata | None:
    metadata_path = book_dir / BOOK_METADATA_FILENAME
    if not metadata_path.exists():
        return None
    try:
        payload = json.loads(metadata_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None

    title = payload.get("title")
    author = payload.get("author")
    epub_name = payload.get("epub")
    preface_name = payload.get("preface")
    preface_path = None
    if isinstance(preface_name, str):
        candidate = book_dir / preface_name
        if candidate.exists():
            preface_path = candidate

    return LoadedBookMetadata(
        title=title if isinstance(title, str) else None,
        author=author if isinstance(author, str) else None,
        epub=epub_name if isinstance(epub_name, str) else None,
        preface_path=preface_path,
        chapters=_load_chapter_entries(payload.get("chapters")),
    )
