from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Iterable, Mapping

import pytest

from epubtext.logging_utils import set_debug_logging

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""


class EpubFactory:
    """Builds small EPUB 2 archives for tests."""

    def container(self, package_path: str = "OEBPS/content.opf") -> str:
        return CONTAINER_XML.format(path=package_path)

    def opf(
        self,
        items: Iterable[tuple[str, str]],
        spine: Iterable[str],
        *,
        title: str | None = "Sample Book",
        author: str | None = "Sample Author",
        language: str | None = "en",
        ncx_href: str | None = "toc.ncx",
        ncx_id: str = "ncx",
        spine_toc: str | None = None,
    ) -> str:
        meta = []
        if title is not None:
            meta.append(f"<dc:title>{title}</dc:title>")
        if author is not None:
            meta.append(f"<dc:creator opf:role=\"aut\">{author}</dc:creator>")
        if language is not None:
            meta.append(f"<dc:language>{language}</dc:language>")
        manifest = []
        if ncx_href is not None:
            manifest.append(
                f'<item id="{ncx_id}" href="{ncx_href}" media-type="application/x-dtbncx+xml"/>'
            )
        for item_id, href in items:
            manifest.append(f'<item id="{item_id}" href="{href}" media-type="application/xhtml+xml"/>')
        itemrefs = "".join(f'<itemref idref="{idref}"/>' for idref in spine)
        toc_attr = f' toc="{spine_toc}"' if spine_toc else ""
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<package version="2.0" unique-identifier="BookId" xmlns="http://www.idpf.org/2007/opf">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">
    {''.join(meta)}
  </metadata>
  <manifest>
    {''.join(manifest)}
  </manifest>
  <spine{toc_attr}>
    {itemrefs}
  </spine>
</package>
"""

    def nav_point(
        self,
        nav_id: str,
        label: str | None,
        src: str,
        *children: str,
        play_order: str | int | None = None,
    ) -> str:
        order = f' playOrder="{play_order}"' if play_order is not None else ""
        label_xml = f"<navLabel><text>{label}</text></navLabel>" if label is not None else ""
        return (
            f'<navPoint id="{nav_id}"{order}>{label_xml}<content src="{src}"/>'
            f"{''.join(children)}</navPoint>"
        )

    def ncx(self, *nav_points: str, depth: int | None = 1, extra_head: str = "") -> str:
        depth_meta = f'<meta name="dtb:depth" content="{depth}"/>' if depth is not None else ""
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head>
    <meta name="dtb:uid" content="urn:uuid:0000"/>
    {depth_meta}{extra_head}
  </head>
  <docTitle><text>Sample Book</text></docTitle>
  <navMap>
    {''.join(nav_points)}
  </navMap>
</ncx>
"""

    def xhtml(self, body: str, title: str | None = None) -> str:
        head = f"<head><title>{title}</title></head>" if title is not None else "<head/>"
        return f"""<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">
<html xmlns="http://www.w3.org/1999/xhtml">
  {head}
  <body>
    {body}
  </body>
</html>
"""

    def archive(self, files: Mapping[str, str | bytes]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("mimetype", "application/epub+zip")
            for name, content in files.items():
                zf.writestr(name, content)
        return buffer.getvalue()

    def book(
        self,
        documents: Mapping[str, str],
        spine: Iterable[str],
        nav_points: Iterable[str],
        *,
        depth: int = 1,
        **opf_kwargs: object,
    ) -> bytes:
        """Assemble an archive under ``OEBPS/``; ``documents`` maps href to XHTML."""
        items = [(Path(href).stem, href) for href in documents]
        files: dict[str, str | bytes] = {
            "META-INF/container.xml": self.container(),
            "OEBPS/content.opf": self.opf(items, spine, **opf_kwargs),
            "OEBPS/toc.ncx": self.ncx(*nav_points, depth=depth),
        }
        for href, content in documents.items():
            files[f"OEBPS/{href}"] = content
        return self.archive(files)


@pytest.fixture
def epub() -> EpubFactory:
    return EpubFactory()


@pytest.fixture(autouse=True)
def _quiet_debug_logging():
    set_debug_logging(False)
    yield
    set_debug_logging(False)
