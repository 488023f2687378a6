"""TOML metadata bridge: page entry lists <-> TOML entry documents."""

from .schema import entries_from_document, entries_to_document
from .loader import (
    load_page_metadata,
    parse_page_metadata,
    render_page_metadata,
    save_page_metadata,
)

__all__ = [
    "entries_from_document",
    "entries_to_document",
    "parse_page_metadata",
    "render_page_metadata",
    "load_page_metadata",
    "save_page_metadata",
]
