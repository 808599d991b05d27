from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any

import requests
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
)

from .document import ParsedRubyTxt, serialize_parsed
from .index_list import AozorabunkoIndexList, parse_index_list_extended, serialize_index_list
from .renderer import RenderedRubyTxt, serialize_rendered

__all__ = [
    "AOZORA_BASE_URL",
    "INDEX_ARCHIVE_PATH",
    "INDEX_CSV_NAME",
    "PARSED_CONTENT_FILENAME",
    "RENDERED_CONTENT_FILENAME",
    "BookArchiveError",
    "read_txt_from_zip",
    "read_index_list",
    "fetch_zip",
    "local_archive_path",
    "write_json",
    "write_book_content",
    "write_index_list",
]

AOZORA_BASE_URL = "https://www.aozora.gr.jp/"
INDEX_ARCHIVE_PATH = Path("index_pages") / "list_person_all_extended_utf8.zip"
INDEX_CSV_NAME = "list_person_all_extended_utf8.csv"
PARSED_CONTENT_FILENAME = "content_parsed.json"
RENDERED_CONTENT_FILENAME = "content_rendered.json"
# Aozora Bunko texts are Shift_JIS; cp932 covers the vendor extensions in use.
TXT_ENCODING = "cp932"


class BookArchiveError(RuntimeError):
    """Raised when a book archive cannot be fetched, found or decoded."""


def _open_zip(path: Path) -> zipfile.ZipFile:
    if not path.is_file():
        raise BookArchiveError(f"Archive not found: {path}")
    try:
        return zipfile.ZipFile(path)
    except zipfile.BadZipFile as exc:
        raise BookArchiveError(f"Invalid zip archive {path}: {exc}") from exc


def read_txt_from_zip(path: Path) -> str:
    """Return the decoded text of the only ``.txt`` entry of ``path``."""
    with _open_zip(path) as archive:
        names = [name for name in archive.namelist() if name.lower().endswith(".txt")]
        if not names:
            raise BookArchiveError(f"No .txt entry in {path}")
        if len(names) > 1:
            raise BookArchiveError(f"More than one .txt entry in {path}: {names}")
        data = archive.read(names[0])
    try:
        return data.decode(TXT_ENCODING)
    except UnicodeDecodeError as exc:
        raise BookArchiveError(f"Failed to decode {names[0]} in {path}: {exc}") from exc


def read_index_list(aozorabunko_dir: Path) -> AozorabunkoIndexList:
    archive_path = aozorabunko_dir / INDEX_ARCHIVE_PATH
    with _open_zip(archive_path) as archive:
        try:
            data = archive.read(INDEX_CSV_NAME)
        except KeyError as exc:
            raise BookArchiveError(f"{INDEX_CSV_NAME} not found in {archive_path}") from exc
    return parse_index_list_extended(data.decode("utf-8"))


def local_archive_path(aozorabunko_dir: Path, url: str) -> Path | None:
    """Map an aozora.gr.jp URL to the file inside a repository checkout."""
    if not url.startswith(AOZORA_BASE_URL):
        return None
    return aozorabunko_dir / url[len(AOZORA_BASE_URL) :]


def fetch_zip(url: str, destination: Path) -> Path:
    """Download ``url`` into the directory ``destination``."""
    destination.mkdir(parents=True, exist_ok=True)
    filename = url.rstrip("/").split("/")[-1] or "book.zip"
    archive_path = destination / filename
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TimeRemainingColumn(),
        console=Console(stderr=True),
        transient=True,
    )
    try:
        with requests.get(url, stream=True, timeout=60) as response:
            response.raise_for_status()
            total = response.headers.get("Content-Length")
            total_bytes = int(total) if total and total.isdigit() else None
            with archive_path.open("wb") as handle, progress:
                task = progress.add_task(f"Downloading {filename}", total=total_bytes)
                for chunk in response.iter_content(chunk_size=64 * 1024):
                    if not chunk:
                        continue
                    handle.write(chunk)
                    progress.advance(task, len(chunk))
    except requests.RequestException as exc:
        archive_path.unlink(missing_ok=True)
        raise BookArchiveError(f"Failed to download {url}: {exc}") from exc
    return archive_path


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def write_book_content(
    directory: Path,
    parsed: ParsedRubyTxt,
    rendered: RenderedRubyTxt,
) -> tuple[Path, Path]:
    parsed_path = write_json(directory / PARSED_CONTENT_FILENAME, serialize_parsed(parsed))
    rendered_path = write_json(
        directory / RENDERED_CONTENT_FILENAME, serialize_rendered(rendered)
    )
    return parsed_path, rendered_path


def write_index_list(output_dir: Path, index: AozorabunkoIndexList) -> list[Path]:
    payload = serialize_index_list(index)
    return [
        write_json(output_dir / f"{name}.json", payload[name])
        for name in ("books", "authors", "book_authors")
    ]
