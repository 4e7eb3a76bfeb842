"""Command-line entry point for embedding links into Markdown files."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .commands import build_embed_commands
from .config import load_settings
from .document import LoggingNotifier, TextDocument
from .hashing import FILE_HASH_ALGORITHM, hash_file
from .markdown import extract_embed_blocks, parse_embed_block, render_html
from .models import Position

logger = logging.getLogger("link_embed.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("embed", *argv)


def _add_embed_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", type=Path, help="Markdown file to insert the embed into")
    parser.add_argument(
        "--url",
        default="",
        help="URL to embed when no line is selected (stands in for the clipboard)",
    )
    parser.add_argument(
        "--select-line",
        type=int,
        default=None,
        help="Use the text of this zero-based line as the selection",
    )
    parser.add_argument(
        "--line",
        type=int,
        default=None,
        help="Zero-based cursor line (defaults to the last line)",
    )
    parser.add_argument(
        "--column",
        type=int,
        default=None,
        help="Zero-based cursor column (defaults to the end of the line)",
    )
    parser.add_argument(
        "--parser",
        default=None,
        help="Use only this parser instead of the primary/backup chain",
    )
    parser.add_argument(
        "--in-place",
        action="store_true",
        default=None,
        help="Remove the selected URL before inserting the embed",
    )
    parser.add_argument(
        "--delay",
        type=int,
        default=None,
        help="Milliseconds to wait before swapping the placeholder",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Vault root holding the attachments directory (defaults to the file's directory)",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="JSON settings file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Turn URLs into embed blocks with local preview images.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    embed_parser = subparsers.add_parser("embed", help="Insert an embed block into a Markdown file")
    _add_embed_arguments(embed_parser)

    render_parser = subparsers.add_parser("render", help="Print HTML for every embed block in a file")
    render_parser.add_argument("file", type=Path)

    hash_parser = subparsers.add_parser("hash", help="Print the content digest of a file")
    hash_parser.add_argument("file", type=Path)
    hash_parser.add_argument("--algorithm", default=FILE_HASH_ALGORITHM)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _place_cursor(document: TextDocument, args: argparse.Namespace) -> None:
    if args.select_line is not None:
        line = document.clamp(Position(args.select_line, 0)).line
        document.select(Position(line, 0), Position(line, len(document.get_line(line))))
        return
    line = args.line if args.line is not None else document.line_count() - 1
    line = document.clamp(Position(line, 0)).line
    column = args.column if args.column is not None else len(document.get_line(line))
    document.set_cursor(Position(line, column))


def _run_embed(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    settings = load_settings(args.settings)
    if args.in_place is not None:
        settings.in_place = args.in_place
    if args.delay is not None:
        settings.delay_ms = max(0, args.delay)
    if args.verbose:
        settings.debug = True

    path: Path = args.file
    document = TextDocument(path.read_text(encoding="utf-8") if path.exists() else "")
    _place_cursor(document, args)

    root = (args.root or path.resolve().parent).resolve()
    commands = build_embed_commands(settings, root, notifier=LoggingNotifier("link_embed.cli"))
    outcome = asyncio.run(commands.run(document, args.url, parser=args.parser))
    if outcome is None:
        return 2

    path.write_text(document.text, encoding="utf-8")
    if outcome.committed:
        logger.info("Embedded %s into %s", outcome.url, path)
        return 0
    logger.error("Embed of %s finished as %s", outcome.url, outcome.state.value)
    return 1


def _run_render(args: argparse.Namespace) -> int:
    markdown = args.file.read_text(encoding="utf-8")
    for block in extract_embed_blocks(markdown):
        sys.stdout.write(render_html(parse_embed_block(block)) + "\n")
    sys.stdout.flush()
    return 0


def _run_hash(args: argparse.Namespace) -> int:
    sys.stdout.write(f"{hash_file(args.file, args.algorithm)}  {args.file}\n")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "embed":
        return _run_embed(args)
    if args.command == "render":
        return _run_render(args)
    return _run_hash(args)


if __name__ == "__main__":
    sys.exit(main())
