"""Page metadata text and file IO (TOML)."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import List, Optional, Sequence

import tomli_w

from ..model import Entry
from ..packing.errors import MetadataSyntaxError
from ..utils.io import atomic_write_bytes
from .schema import entries_from_document, entries_to_document

__all__ = [
    "parse_page_metadata",
    "render_page_metadata",
    "load_page_metadata",
    "save_page_metadata",
]


def parse_page_metadata(text: str, *, page: Optional[str] = None) -> List[Entry]:
    try:
        doc = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise MetadataSyntaxError(
            f"Invalid TOML in metadata for page '{page}': {e}",
            {"page": page},
        ) from e
    return entries_from_document(doc, page=page)


def render_page_metadata(entries: Sequence[Entry]) -> str:
    return tomli_w.dumps(entries_to_document(entries))


def load_page_metadata(path: Path, *, page: Optional[str] = None) -> List[Entry]:
    path = Path(path)
    page = page if page is not None else path.stem
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MetadataSyntaxError(
            f"Metadata file is not UTF-8: {path}", {"page": page}
        ) from e
    return parse_page_metadata(text, page=page)


def save_page_metadata(path: Path, entries: Sequence[Entry]) -> None:
    atomic_write_bytes(Path(path), render_page_metadata(entries).encode("utf-8"))
