"""Pure binary packing functions for .pack records.

All functions are side-effect free and validate value ranges.
"""

from __future__ import annotations

import struct
from typing import Sequence

from ..model import Entry
from .constants import (
    ENTRY_GEOMETRY_STRUCT,
    HEADER_STRUCT,
    LEGACY_END_OF_IMAGE,
    LEGACY_I32,
    LEGACY_MAGIC,
    LEGACY_U32,
    MAGIC,
    FORMAT_VERSION,
    MAX_NAME_LENGTH,
    NAME_LENGTH_STRUCT,
    PAGE_COUNTS_STRUCT,
    U32_MAX,
)
from .errors import ValueOutOfRange

__all__ = [
    "pack_name",
    "pack_legacy_name",
    "pack_header",
    "pack_entry_record",
    "pack_legacy_entry_record",
    "pack_page_record",
    "pack_legacy_header",
    "pack_legacy_page",
]


def _u32(value: int, label: str) -> int:
    if not 0 <= value <= U32_MAX:
        raise ValueOutOfRange(
            f"{label} does not fit in u32", {"field": label, "value": value}
        )
    return value


def pack_name(name: str) -> bytes:
    raw = name.encode("utf-8")
    if len(raw) > MAX_NAME_LENGTH:
        raise ValueOutOfRange(
            f"Name too long ({len(raw)} bytes, max {MAX_NAME_LENGTH})",
            {"name": name[:64]},
        )
    return NAME_LENGTH_STRUCT.pack(len(raw)) + raw


def pack_legacy_name(name: str) -> bytes:
    raw = name.encode("utf-8")
    return LEGACY_U32.pack(_u32(len(raw), "name_length")) + raw


def pack_header(page_count: int, version: int = FORMAT_VERSION) -> bytes:
    return HEADER_STRUCT.pack(MAGIC, version, _u32(page_count, "page_count"))


def _pack_geometry(entry: Entry) -> bytes:
    values = entry.geometry()
    for v in values:
        _u32(v, f"geometry of entry '{entry.name}'")
    return ENTRY_GEOMETRY_STRUCT.pack(*values)


def pack_entry_record(entry: Entry) -> bytes:
    return pack_name(entry.name) + _pack_geometry(entry)


def pack_legacy_entry_record(entry: Entry) -> bytes:
    return pack_legacy_name(entry.name) + _pack_geometry(entry)


def pack_page_record(
    name: str, image_byte_len: int, entries: Sequence[Entry]
) -> bytes:
    """Page-table block: name, counts, then the page's entry table."""
    out = bytearray(pack_name(name))
    out += PAGE_COUNTS_STRUCT.pack(
        _u32(image_byte_len, "image_byte_len"),
        _u32(len(entries), "entry_count"),
    )
    for entry in entries:
        out += pack_entry_record(entry)
    return bytes(out)


def pack_legacy_header(page_count: int, mask: int | None) -> bytes:
    """V2 header when ``mask`` is given, bare V1 page count otherwise."""
    count = LEGACY_U32.pack(_u32(page_count, "page_count"))
    if mask is None:
        return count
    return LEGACY_MAGIC + LEGACY_I32.pack(mask) + count


def pack_legacy_page(
    name: str,
    mask: int,
    entries: Sequence[Entry],
    image_data: bytes,
    *,
    length_prefixed: bool,
) -> bytes:
    out = bytearray(pack_legacy_name(name))
    out += LEGACY_U32.pack(_u32(len(entries), "entry_count"))
    try:
        out += LEGACY_I32.pack(mask)
    except struct.error as e:
        raise ValueOutOfRange(
            f"Mask of page '{name}' does not fit in i32", {"mask": mask}
        ) from e
    for entry in entries:
        out += pack_legacy_entry_record(entry)
    if length_prefixed:
        out += LEGACY_U32.pack(_u32(len(image_data), "image_byte_len"))
        out += image_data
    else:
        if LEGACY_END_OF_IMAGE in image_data:
            raise ValueOutOfRange(
                f"Image of page '{name}' contains the V1 terminator",
                {"page": name},
            )
        out += image_data
        out += LEGACY_END_OF_IMAGE
    return bytes(out)
