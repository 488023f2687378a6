"""Serialize a :class:`PackRecord` to bytes.

The native layout is header, page table (each page followed by its entry
table), then the image data section in page-table order. Byte-length fields
come from the actual encoded images. The writer imposes no ordering: pages
and entries are emitted exactly as the record holds them.
"""

from __future__ import annotations

from .constants import HEADER_SIZE, PackFormat
from .errors import internal_error
from .packers import (
    pack_header,
    pack_legacy_header,
    pack_legacy_page,
    pack_page_record,
)
from .reader import PackRecord

__all__ = ["serialize_pack"]


def _serialize_native(record: PackRecord) -> bytes:
    out = bytearray(pack_header(len(record.pages)))
    for page in record.pages:
        out += pack_page_record(page.name, len(page.image_data), page.entries)
    table_end = len(out)
    for page in record.pages:
        out += page.image_data
    expected = table_end + sum(len(p.image_data) for p in record.pages)
    if len(out) != expected or table_end < HEADER_SIZE:
        raise internal_error(
            "Native serialization size mismatch",
            {"expected": expected, "written": len(out)},
        )
    return bytes(out)


def _serialize_legacy(record: PackRecord) -> bytes:
    v2 = record.format is PackFormat.LEGACY_V2
    out = bytearray(
        pack_legacy_header(len(record.pages), record.mask if v2 else None)
    )
    for page in record.pages:
        out += pack_legacy_page(
            page.name,
            page.mask,
            page.entries,
            page.image_data,
            length_prefixed=v2,
        )
    return bytes(out)


def serialize_pack(record: PackRecord) -> bytes:
    if record.format is PackFormat.NATIVE:
        return _serialize_native(record)
    return _serialize_legacy(record)
