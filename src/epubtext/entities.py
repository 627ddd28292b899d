"""Decoding of HTML named entities ahead of strict XML parsing."""

from __future__ import annotations

import re
from html.entities import html5

# XML predefines these; the parser handles them itself.
_XML_BUILTINS = frozenset({"amp", "lt", "gt", "quot", "apos"})

NAMED_ENTITIES: dict[str, str] = {
    name[:-1]: chars
    for name, chars in html5.items()
    if name.endswith(";") and name[:-1] not in _XML_BUILTINS
}

_ENTITY_PATTERN = re.compile(r"&([A-Za-z][A-Za-z0-9]*);")
_MARKUP_ESCAPES = {"&": "&amp;", "<": "&lt;", "\"": "&quot;", "'": "&apos;"}


def _substitute(match: re.Match[str]) -> str:
    replacement = NAMED_ENTITIES.get(match.group(1))
    if replacement is None:
        return match.group(0)
    return "".join(_MARKUP_ESCAPES.get(ch, ch) for ch in replacement)


def replace_named_entities(text: str) -> str:
    """Replace HTML named entity references that XML does not know about.

    Unknown names are left untouched so the XML parser still rejects them.
    """
    if "&" not in text:
        return text
    return _ENTITY_PATTERN.sub(_substitute, text)
