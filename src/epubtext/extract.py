"""Plain-text extraction of the part of an XHTML document between two anchors."""

from __future__ import annotations

from collections import deque
from typing import Union

from lxml import etree

from .entities import replace_named_entities
from .errors import MalformedHtmlError

_Node = Union[etree._Element, str]


def _parser() -> etree.XMLParser:
    return etree.XMLParser(
        encoding="utf-8",
        recover=False,
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )


def parse_xhtml(full_text: str) -> etree._Element:
    """Parse a content document strictly.

    The text is already decoded, so any encoding named in its XML
    declaration is ignored.

    Raises :class:`lxml.etree.XMLSyntaxError` on malformed input.
    """
    data = replace_named_entities(full_text).encode("utf-8")
    return etree.fromstring(data, _parser())


def _is_element(node: _Node) -> bool:
    return not isinstance(node, str) and isinstance(node.tag, str)


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def named_anchor(element: etree._Element) -> str | None:
    """Return the anchor name of ``element``: ``name`` on ``<a>``, else ``id``."""
    anchor = element.get("id")
    if _local_name(element) == "a":
        name = element.get("name")
        if name is not None:
            anchor = name
    return anchor


def _expand(element: etree._Element) -> list[_Node]:
    nodes: list[_Node] = []
    if element.text:
        nodes.append(element.text)
    for child in element:
        nodes.append(child)
        if child.tail:
            nodes.append(child.tail)
    return nodes


def _visit(queue: deque[_Node], element: etree._Element) -> None:
    queue.extendleft(reversed(_expand(element)))


def _skip_to_anchor(queue: deque[_Node], start_anchor: str) -> None:
    while queue:
        node = queue.popleft()
        if not _is_element(node):
            continue
        _visit(queue, node)
        if named_anchor(node) == start_anchor:
            return


def _collect_text(queue: deque[_Node], stop_anchor: str | None) -> list[str]:
    fragments: list[str] = []
    while queue:
        node = queue.popleft()
        if isinstance(node, str):
            fragment = node.strip()
            if fragment:
                fragments.append(fragment)
            continue
        if not _is_element(node):
            continue
        if stop_anchor is not None and named_anchor(node) == stop_anchor:
            break
        _visit(queue, node)
    return fragments


def element_to_text(
    root: etree._Element,
    start_anchor: str | None = None,
    stop_anchor: str | None = None,
) -> str:
    queue: deque[_Node] = deque([root])
    if start_anchor is not None:
        # Resumes at the anchor element itself: its own text is kept.
        _skip_to_anchor(queue, start_anchor)
    return " ".join(_collect_text(queue, stop_anchor))


def html_to_text(
    full_text: str,
    start_anchor: str | None = None,
    stop_anchor: str | None = None,
    *,
    path: str = "<document>",
) -> str:
    """Return the text of ``full_text`` from ``start_anchor`` up to ``stop_anchor``.

    Text nodes are visited in document order, trimmed, and joined with a single
    space. Without a start anchor collection begins at the root; without a stop
    anchor it runs to the end of the document. The stop anchor element and
    everything after it are excluded. A start anchor that never occurs yields
    an empty string. Malformed input raises
    :class:`epubtext.errors.MalformedHtmlError` naming ``path``.
    """
    try:
        root = parse_xhtml(full_text)
    except etree.XMLSyntaxError as exc:
        raise MalformedHtmlError(path, exc) from exc
    return element_to_text(root, start_anchor, stop_anchor)


def get_all_text(full_text: str) -> str:
    return html_to_text(full_text)
