from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping


@dataclass(frozen=True)
class Chapter:
    title: str
    text: str
    subchapters: tuple["Chapter", ...] = ()

    def as_payload(self) -> dict[str, object]:
        return {
            "title": self.title,
            "text": self.text,
            "subchapters": [sub.as_payload() for sub in self.subchapters],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "Chapter":
        subchapters = payload.get("subchapters") or []
        if not isinstance(subchapters, list):
            raise ValueError("subchapters must be a list")
        return cls(
            title=str(payload.get("title") or ""),
            text=str(payload.get("text") or ""),
            subchapters=tuple(cls.from_payload(sub) for sub in subchapters),
        )


@dataclass(frozen=True)
class Book:
    """A text-only book: metadata, preface text, and a chapter tree."""

    title: str
    author: str | None
    preface_content: str
    chapters: tuple[Chapter, ...] = ()

    def walk(self) -> Iterator[tuple[Chapter, int]]:
        """Yield ``(chapter, level)`` in reading order, top level being 1."""
        stack = [(chapter, 1) for chapter in reversed(self.chapters)]
        while stack:
            chapter, level = stack.pop()
            yield chapter, level
            stack.extend((sub, level + 1) for sub in reversed(chapter.subchapters))

    def as_payload(self) -> dict[str, object]:
        return {
            "title": self.title,
            "author": self.author,
            "preface_content": self.preface_content,
            "chapters": [chapter.as_payload() for chapter in self.chapters],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "Book":
        chapters = payload.get("chapters") or []
        if not isinstance(chapters, list):
            raise ValueError("chapters must be a list")
        author = payload.get("author")
        return cls(
            title=str(payload.get("title") or ""),
            author=author if isinstance(author, str) else None,
            preface_content=str(payload.get("preface_content") or ""),
            chapters=tuple(Chapter.from_payload(chapter) for chapter in chapters),
        )
