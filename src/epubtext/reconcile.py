"""Map the spine (reading order) onto the navigation tree.

Every spine item is attributed either to the preface or to a nav point:

* items matched by one or more nav points go to those nav points, using each
  nav point's own ``src`` (which may carry an anchor);
* unmatched items before the first match go to the preface;
* unmatched items after a match go to the most recently matched nav point.

Each attributed source is then turned into text running from its anchor to
the anchor of the next source when that one points into the same file, or to
the end of the file otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping
from urllib.parse import unquote

from lxml import etree

from .book import Chapter
from .errors import MalformedHtmlError, MalformedTocNcxError
from .extract import element_to_text, parse_xhtml
from .logging_utils import debug_log
from .ncx import TocNcx
from .package import ContentOpf, resolve_relative_path


@dataclass(frozen=True)
class SourceRef:
    """A content file inside the archive plus an optional in-file anchor."""

    path: str
    anchor: str | None = None

    @classmethod
    def from_href(cls, href: str, base_file: str) -> "SourceRef":
        if "#" in href:
            file_part, anchor = href.split("#", 1)
            return cls(resolve_relative_path(base_file, file_part), unquote(anchor))
        return cls(resolve_relative_path(base_file, href))

    def stop_anchor_for(self, following: "SourceRef | None") -> str | None:
        if following is None or following.path != self.path:
            return None
        return following.anchor


class ContentPool:
    """Decoded content documents keyed by archive path; each is parsed once."""

    def __init__(self, files: Mapping[str, str]) -> None:
        self._files = dict(files)
        self._trees: dict[str, etree._Element] = {}

    def __len__(self) -> int:
        return len(self._files)

    def _tree(self, path: str) -> etree._Element:
        tree = self._trees.get(path)
        if tree is not None:
            return tree
        text = self._files.get(path)
        if text is None:
            raise MalformedTocNcxError(f"File {path} in TOC, but not in Manifest")
        try:
            tree = parse_xhtml(text)
        except etree.XMLSyntaxError as exc:
            raise MalformedHtmlError(path, exc) from exc
        self._trees[path] = tree
        return tree

    def extract(self, source: SourceRef, following: SourceRef | None) -> str:
        tree = self._tree(source.path)
        return element_to_text(tree, source.anchor, source.stop_anchor_for(following))


def reconcile(
    content_opf: ContentOpf,
    toc: TocNcx,
    pool: ContentPool,
    *,
    package_path: str,
    navigation_path: str,
) -> tuple[str, tuple[Chapter, ...]]:
    """Return the preface text and the chapter tree mirroring ``toc``."""
    flattened = toc.flattened()
    if not flattened:
        raise MalformedTocNcxError("navMap contains no navPoints")
    nav_sources = [SourceRef.from_href(nav.src, navigation_path) for nav in flattened]
    contents: list[list[str]] = [[] for _ in flattened]

    preface_sources: list[SourceRef] = []
    assignments: list[tuple[SourceRef, int]] = []
    last_matched = 0
    passed_preface = False
    for item_id in content_opf.spine:
        href = content_opf.item(item_id).href
        # Pre-order over the nested tree: a parent precedes its own matching children.
        matches = [index for index, nav in enumerate(flattened) if href in nav.src]
        if not matches:
            source = SourceRef.from_href(href, package_path)
            if passed_preface:
                debug_log(f"{href}: unmatched, continues {flattened[last_matched].id}")
                assignments.append((source, last_matched))
            else:
                debug_log(f"{href}: preface")
                preface_sources.append(source)
            continue
        passed_preface = True
        debug_log(f"{href}: matched {', '.join(flattened[index].id for index in matches)}")
        for index in matches:
            assignments.append((nav_sources[index], index))
            last_matched = index

    for position, (source, index) in enumerate(assignments):
        following = assignments[position + 1][0] if position + 1 < len(assignments) else None
        contents[index].append(pool.extract(source, following))

    preface_chunks: list[str] = []
    for position, source in enumerate(preface_sources):
        if position + 1 < len(preface_sources):
            following = preface_sources[position + 1]
        else:
            following = assignments[0][0] if assignments else None
        preface_chunks.append(pool.extract(source, following))

    return "\n".join(preface_chunks), _build_chapters(toc, contents)


def _build_chapters(toc: TocNcx, contents: list[list[str]]) -> tuple[Chapter, ...]:
    entries = list(toc.walk())
    child_indices: list[list[int]] = [[] for _ in entries]
    roots: list[int] = []
    for index, (_nav, parent) in enumerate(entries):
        if parent is None:
            roots.append(index)
        else:
            child_indices[parent].append(index)
    # Pre-order puts every child after its parent; build from the end.
    built: list[Chapter | None] = [None] * len(entries)
    for index in range(len(entries) - 1, -1, -1):
        nav, _parent = entries[index]
        built[index] = Chapter(
            title=nav.label or "",
            text="\n".join(contents[index]),
            subchapters=tuple(built[child] for child in child_indices[index]),
        )
    return tuple(built[index] for index in roots)
