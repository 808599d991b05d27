from __future__ import annotations

import argparse
import json
import os
import sys
import tempfile
from importlib import metadata
from pathlib import Path

import tomllib
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from .book_io import (
    BookArchiveError,
    fetch_zip,
    local_archive_path,
    read_index_list,
    read_txt_from_zip,
    write_book_content,
    write_index_list,
)
from .document import (
    convert_ruby_txt,
    parse_ruby_txt,
    render_ruby_txt,
    serialize_parsed,
    set_debug_logging,
)
from .errors import RubyTxtError
from .renderer import TOLERATED_VIOLATIONS, serialize_rendered
from .tokenizer import tokenize_ruby_txt
from .tokens import serialize_tokens
from .xhtml import render_xhtml

AOZORABUNKO_DIR_ENV = "RUBYTXT_AOZORABUNKO_DIR"
DEBUG_ENV = "RUBYTXT_DEBUG"


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover - installed without a source tree
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("rubytxt")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"rubytxt {__version__}",
    )


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject the real-world malformations the renderer tolerates by default.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help=f"Print pipeline diagnostics to stderr (same as {DEBUG_ENV}=1).",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Aozora Bunko ruby-txt → structured JSON or XHTML. Use `rubytxt build` for a whole checkout.",
    )
    _add_version_flag(ap)
    ap.add_argument(
        "input_path",
        help="Path to a ruby-txt .txt file, a book .zip, or an https:// URL of a book .zip",
    )
    ap.add_argument(
        "-o",
        "--output",
        help="Write the result to this file instead of stdout",
    )
    ap.add_argument(
        "--format",
        choices=["json", "html"],
        default="json",
        help="Output format (default: json)",
    )
    ap.add_argument(
        "--stage",
        choices=["tokens", "parsed", "rendered"],
        default="rendered",
        help="Pipeline stage to emit as JSON (default: rendered)",
    )
    ap.add_argument(
        "--encoding",
        default="cp932",
        help="Encoding of a .txt input (default: cp932)",
    )
    _add_common_flags(ap)
    return ap


def build_build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Convert every public-domain ruby-txt book of an aozorabunko checkout.",
    )
    _add_version_flag(ap)
    ap.add_argument(
        "aozorabunko_dir",
        nargs="?",
        help=f"Path to the aozorabunko repository (default: ${AOZORABUNKO_DIR_ENV})",
    )
    ap.add_argument(
        "output_dir",
        help="Directory receiving books.json, authors.json, book_authors.json and book/<id>/",
    )
    _add_common_flags(ap)
    return ap


def _configure_debug(args: argparse.Namespace) -> None:
    enabled = args.debug or os.environ.get(DEBUG_ENV, "").strip() not in ("", "0")
    set_debug_logging(enabled)


def _tolerated(args: argparse.Namespace) -> frozenset[str]:
    return frozenset() if args.strict else TOLERATED_VIOLATIONS


def _load_text(input_path: str, encoding: str) -> str:
    if input_path.startswith(("https://", "http://")):
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = fetch_zip(input_path, Path(tmpdir))
            return read_txt_from_zip(archive)
    path = Path(input_path)
    if not path.exists():
        raise SystemExit(f"Input path not found: {path}")
    if path.suffix.lower() == ".zip":
        return read_txt_from_zip(path)
    try:
        return path.read_text(encoding=encoding)
    except UnicodeDecodeError as exc:
        raise SystemExit(f"Failed to decode {path} as {encoding}: {exc}") from exc


def _run_convert(args: argparse.Namespace) -> int:
    try:
        text = _load_text(args.input_path, args.encoding)
    except BookArchiveError as exc:
        raise SystemExit(str(exc)) from exc

    tolerated = _tolerated(args)
    try:
        if args.format == "html":
            _, rendered = convert_ruby_txt(text, tolerated=tolerated)
            output = render_xhtml(rendered)
        else:
            tokens = tokenize_ruby_txt(text)
            if args.stage == "tokens":
                payload: object = serialize_tokens(tokens)
            else:
                parsed = parse_ruby_txt(tokens)
                if args.stage == "parsed":
                    payload = serialize_parsed(parsed)
                else:
                    payload = serialize_rendered(render_ruby_txt(parsed, tolerated=tolerated))
            output = json.dumps(payload, ensure_ascii=False, indent=2)
    except RubyTxtError as exc:
        raise SystemExit(str(exc)) from exc

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output, encoding="utf-8")
    else:
        print(output)
    return 0


def _run_build(args: argparse.Namespace) -> int:
    source = args.aozorabunko_dir or os.environ.get(AOZORABUNKO_DIR_ENV)
    if not source:
        raise SystemExit(f"Path to the aozorabunko repository is required (or set {AOZORABUNKO_DIR_ENV}).")
    aozorabunko_dir = Path(source).expanduser()
    if not aozorabunko_dir.is_dir():
        raise SystemExit(f"Repository not found: {aozorabunko_dir}")
    output_dir = Path(args.output_dir).expanduser()
    output_dir.mkdir(parents=True, exist_ok=True)

    console = Console(stderr=True)
    tolerated = _tolerated(args)
    try:
        index = read_index_list(aozorabunko_dir)
    except (BookArchiveError, RubyTxtError) as exc:
        raise SystemExit(str(exc)) from exc
    write_index_list(output_dir, index)
    console.print(
        f"Indexed {len(index.books)} books and {len(index.authors)} authors."
    )

    converted = skipped = 0
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
    )
    with progress:
        task = progress.add_task("Converting books", total=len(index.books))
        for book in index.books:
            progress.advance(task, 1)
            if not index.is_public_domain(book) or not book.txt_url:
                continue
            archive = local_archive_path(aozorabunko_dir, book.txt_url)
            if archive is None or "ruby" not in book.txt_url or archive.suffix.lower() != ".zip":
                continue
            try:
                text = read_txt_from_zip(archive)
                parsed, rendered = convert_ruby_txt(text, tolerated=tolerated)
            except BookArchiveError as exc:
                raise SystemExit(f"Failed to read book {book.id} 「{book.title}」: {exc}") from exc
            except RubyTxtError as exc:
                if book.follows_ruby_txt_format:
                    raise SystemExit(
                        f"Failed to convert book {book.id} 「{book.title}」: {exc}"
                    ) from exc
                skipped += 1
                progress.console.print(
                    f"[yellow]Skipping book {book.id} 「{escape(book.title)}」 "
                    f"(published {book.published_at}): {escape(str(exc))}[/yellow]"
                )
                continue
            write_book_content(output_dir / "book" / book.id, parsed, rendered)
            converted += 1

    console.print(f"Converted {converted} books ({skipped} skipped) into {output_dir}")
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "build":
        build_parser_ = build_build_parser()
        build_args = build_parser_.parse_args(argv[1:])
        _configure_debug(build_args)
        return _run_build(build_args)

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    _configure_debug(args)
    return _run_convert(args)


if __name__ == "__main__":
    raise SystemExit(main())
