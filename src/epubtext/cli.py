from __future__ import annotations

import argparse
import json
import sys
from importlib import metadata
from pathlib import Path

import tomllib
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.tree import Tree

from .book import Book
from .book_io import write_book_package
from .core import book_to_text, epub_file_to_book
from .errors import ParseError
from .logging_utils import debug_enabled, set_debug_logging


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("epubtext")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="epubtext",
        description="EPUB → plain-text book: preface plus a chapter tree following the table of contents.",
    )
    ap.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"epubtext {__version__}",
    )
    ap.add_argument(
        "input_path",
        help="Path to input .epub or a directory containing .epub files",
    )
    ap.add_argument(
        "-o",
        "--output-name",
        help="Optional name for the output .txt with --single-file (same folder as input)",
    )
    output = ap.add_mutually_exclusive_group()
    output.add_argument(
        "--single-file",
        action="store_true",
        help="Emit a single combined .txt instead of one file per chapter.",
    )
    output.add_argument(
        "--json",
        action="store_true",
        help="Print the parsed book as JSON to stdout instead of writing files.",
    )
    output.add_argument(
        "--outline",
        action="store_true",
        help="Print the chapter tree instead of writing files.",
    )
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging (package lookup, spine attribution).",
    )
    return ap


def _outline_tree(book: Book) -> Tree:
    label = f"[bold]{book.title}[/bold]"
    if book.author:
        label += f" by {book.author}"
    root = Tree(label)
    if book.preface_content.strip():
        root.add(f"[dim](preface, {len(book.preface_content.split())} words)[/dim]")
    pending = [(root, chapter) for chapter in reversed(book.chapters)]
    while pending:
        parent, chapter = pending.pop()
        words = len(chapter.text.split())
        node = parent.add(f"{chapter.title or '(untitled)'} [dim]({words} words)[/dim]")
        pending.extend((node, sub) for sub in reversed(chapter.subchapters))
    return root


def _output_path(inp_path: Path, output_name: str | None) -> Path:
    if not output_name:
        return inp_path.with_suffix(".txt")
    out_name_path = Path(output_name)
    if out_name_path.parent not in (Path("."), Path("")):
        raise ValueError(
            "Output name must not contain directory components; "
            "it is saved next to the EPUB."
        )
    return inp_path.with_name(out_name_path.name)


def _convert_one(epub_path: Path, args: argparse.Namespace, console: Console) -> None:
    try:
        book = epub_file_to_book(epub_path)
    except ParseError as exc:
        raise SystemExit(f"{epub_path}: {exc}") from exc
    if args.json:
        print(json.dumps(book.as_payload(), ensure_ascii=False, indent=2))
    elif args.outline:
        console.print(_outline_tree(book))
    elif args.single_file:
        output_path = _output_path(epub_path, args.output_name)
        output_path.write_text(book_to_text(book), encoding="utf-8")
    else:
        write_book_package(epub_path.with_suffix(""), book, source_epub=epub_path)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    if args.debug:
        set_debug_logging(True)

    if args.output_name and not args.single_file:
        raise ValueError("Output name can only be used with --single-file.")

    inp_path = Path(args.input_path)
    if not inp_path.exists():
        raise FileNotFoundError(f"Input path not found: {inp_path}")
    console = Console()

    if inp_path.is_dir():
        if args.output_name:
            raise ValueError("Output name cannot be used when processing a directory.")
        epubs = sorted(p for p in inp_path.iterdir() if p.suffix.lower() == ".epub")
        if not epubs:
            raise FileNotFoundError(f"No .epub files found in directory: {inp_path}")
        status = Console(stderr=True)
        show_progress = status.is_terminal and not debug_enabled() and not (args.json or args.outline)
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=status,
            disable=not show_progress,
        ) as progress:
            task = progress.add_task("Converting", total=len(epubs))
            for epub_path in epubs:
                progress.update(task, description=epub_path.name)
                _convert_one(epub_path, args, console)
                progress.advance(task)
        return 0

    if inp_path.suffix.lower() != ".epub":
        raise ValueError(f"Input must be an .epub file or directory: {inp_path}")
    _convert_one(inp_path, args, console)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
