"""Container and package document (OPF) parsing."""

from __future__ import annotations

import posixpath
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from urllib.parse import unquote

from .errors import MalformedContainerError, MalformedContentOpfError

CONTAINER_PATH = "META-INF/container.xml"
XHTML_MEDIA_TYPE = "application/xhtml+xml"
NCX_ITEM_ID = "ncx"

# Pattern match rather than schema validation; attribute order and quoting vary.
_ROOTFILE_PATTERN = re.compile(
    r"<(?:\w+:)?rootfile\b[^>]*?\sfull-path\s*=\s*(?:\"([^\"]*)\"|'([^']*)')",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ManifestItem:
    id: str
    href: str
    media_type: str
    properties: str | None = None


@dataclass
class ContentOpf:
    title: str
    author: str | None
    language: str
    manifest: dict[str, ManifestItem] = field(default_factory=dict)
    spine: list[str] = field(default_factory=list)
    spine_toc: str | None = None

    def item(self, item_id: str) -> ManifestItem:
        try:
            return self.manifest[item_id]
        except KeyError as exc:
            raise MalformedContentOpfError(
                f"Malformatted content.opf file: item {item_id!r} not in manifest"
            ) from exc

    def navigation_item(self) -> ManifestItem:
        if NCX_ITEM_ID in self.manifest:
            return self.manifest[NCX_ITEM_ID]
        if self.spine_toc:
            return self.item(self.spine_toc)
        raise MalformedContentOpfError(
            "Malformatted content.opf file: no ncx entry in manifest"
        )

    def xhtml_items(self) -> list[ManifestItem]:
        return [item for item in self.manifest.values() if item.media_type == XHTML_MEDIA_TYPE]


def find_package_path(container_text: str) -> str:
    match = _ROOTFILE_PATTERN.search(container_text)
    if match is None:
        raise MalformedContainerError()
    path = (match.group(1) if match.group(1) is not None else match.group(2)).strip()
    if not path:
        raise MalformedContainerError()
    return path


def resolve_relative_path(base_file: str, href: str) -> str:
    """Resolve ``href`` against the directory holding ``base_file``."""
    href = unquote(href)
    base = str(PurePosixPath(base_file).parent)
    if base not in ("", ".", "/"):
        combined = posixpath.join(base, href)
    else:
        combined = href
    normalized = posixpath.normpath(combined)
    return "" if normalized == "." else normalized


def _strip_tag(tag: str) -> str:
    return tag.split("}", 1)[-1] if "}" in tag else tag


def _get_attr(elem: ET.Element, name: str) -> str | None:
    for attr, value in elem.attrib.items():
        if _strip_tag(attr) == name:
            return value
    return None


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for child in elem:
        if isinstance(child.tag, str) and _strip_tag(child.tag) == name:
            return child
    return None


def _children(elem: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in elem if isinstance(child.tag, str) and _strip_tag(child.tag) == name]


def _element_text(elem: ET.Element | None) -> str | None:
    if elem is None:
        return None
    text = "".join(elem.itertext()).strip()
    return text or None


def _parse_manifest(manifest: ET.Element) -> dict[str, ManifestItem]:
    items: dict[str, ManifestItem] = {}
    for item in _children(manifest, "item"):
        item_id = item.attrib.get("id")
        href = item.attrib.get("href")
        media_type = item.attrib.get("media-type")
        if item_id is None or href is None or media_type is None:
            continue
        items[item_id] = ManifestItem(
            id=item_id,
            href=href,
            media_type=media_type,
            properties=item.attrib.get("properties"),
        )
    return items


def _parse_spine(spine: ET.Element) -> list[str]:
    order: list[str] = []
    for itemref in _children(spine, "itemref"):
        idref = itemref.attrib.get("idref")
        if idref is not None:
            order.append(idref)
    return order


def parse_content_opf(text: str) -> ContentOpf:
    try:
        package = ET.fromstring(text)
    except ET.ParseError as exc:
        raise MalformedContentOpfError() from exc
    metadata = _child(package, "metadata")
    manifest = _child(package, "manifest")
    spine = _child(package, "spine")
    if metadata is None or manifest is None or spine is None:
        raise MalformedContentOpfError()
    title = _element_text(_child(metadata, "title"))
    language = _element_text(_child(metadata, "language"))
    if title is None or language is None:
        raise MalformedContentOpfError()
    return ContentOpf(
        title=title,
        author=_element_text(_child(metadata, "creator")),
        language=language,
        manifest=_parse_manifest(manifest),
        spine=_parse_spine(spine),
        spine_toc=_get_attr(spine, "toc"),
    )
