"""Navigation document (toc.ncx) parsing."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator

from .errors import MalformedTocNcxError
from .package import _child, _children, _element_text


# eq=False: nav points are looked up by identity, never by field equality.
@dataclass(eq=False)
class NavPoint:
    id: str
    src: str
    level: int
    label: str | None = None
    play_order: int | None = None
    children: list["NavPoint"] = field(default_factory=list)


@dataclass
class TocNcx:
    depth: int
    nav_points: list[NavPoint] = field(default_factory=list)

    def walk(self) -> Iterator[tuple[NavPoint, int | None]]:
        """Yield ``(nav_point, parent_index)`` in pre-order.

        ``parent_index`` is the pre-order position of the parent, or ``None``
        for top-level nav points.
        """
        stack: list[tuple[NavPoint, int | None]] = [
            (nav_point, None) for nav_point in reversed(self.nav_points)
        ]
        index = 0
        while stack:
            nav_point, parent = stack.pop()
            yield nav_point, parent
            for child in reversed(nav_point.children):
                stack.append((child, index))
            index += 1

    def flattened(self) -> list[NavPoint]:
        return [nav_point for nav_point, _ in self.walk()]


def _parse_natural(value: str | None) -> int | None:
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def _parse_nav_point(element: ET.Element, level: int) -> NavPoint:
    nav_id = element.attrib.get("id")
    if nav_id is None:
        raise MalformedTocNcxError("Could not parse NavPoints")
    content = _child(element, "content")
    src = content.attrib.get("src") if content is not None else None
    if src is None:
        raise MalformedTocNcxError("Could not parse NavPoints")
    nav_label = _child(element, "navLabel")
    label = _element_text(_child(nav_label, "text")) if nav_label is not None else None
    return NavPoint(
        id=nav_id,
        src=src,
        level=level,
        label=label,
        play_order=_parse_natural(element.attrib.get("playOrder")),
    )


def _parse_nav_map(nav_map: ET.Element) -> list[NavPoint]:
    roots: list[NavPoint] = []
    pending: list[tuple[ET.Element, int, list[NavPoint]]] = [(nav_map, 1, roots)]
    while pending:
        parent, level, siblings = pending.pop()
        for element in _children(parent, "navPoint"):
            nav_point = _parse_nav_point(element, level)
            siblings.append(nav_point)
            pending.append((element, level + 1, nav_point.children))
    return roots


def _parse_depth(head: ET.Element) -> int:
    depths: list[int] = []
    for meta in _children(head, "meta"):
        if meta.attrib.get("name") != "dtb:depth":
            continue
        depth = _parse_natural(meta.attrib.get("content"))
        if depth is not None:
            depths.append(depth)
    if len(depths) != 1:
        raise MalformedTocNcxError("Depth info missing or duplicated")
    return depths[0]


def parse_ncx(text: str) -> TocNcx:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise MalformedTocNcxError("Invalid XML") from exc
    head = _child(root, "head")
    if head is None:
        raise MalformedTocNcxError("Missing head")
    depth = _parse_depth(head)
    nav_map = _child(root, "navMap")
    if nav_map is None:
        raise MalformedTocNcxError("Missing navMap")
    return TocNcx(depth=depth, nav_points=_parse_nav_map(nav_map))
