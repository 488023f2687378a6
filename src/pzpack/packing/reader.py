"""Binary .pack table parsing.

Parses the native layout and both legacy game layouts into a
:class:`PackRecord`. Page images stay as opaque encoded bytes; decoding them
is the image layer's job (see :mod:`pzpack.packing.codec`).

Failure kinds:
- ``TruncatedFile``: a fixed-size field or an image block is cut short.
- ``CorruptTable``: a declared length/count cannot fit in what remains, a
  name is not UTF-8, or bytes trail the last image block.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..geometry import Vec2
from ..model import Entry
from .constants import (
    DEFAULT_MASK,
    ENTRY_GEOMETRY_STRUCT,
    HEADER_STRUCT,
    LEGACY_END_OF_IMAGE,
    LEGACY_I32,
    LEGACY_MAGIC,
    LEGACY_MIN_ENTRY_RECORD_SIZE,
    LEGACY_U32,
    MAGIC,
    MIN_ENTRY_RECORD_SIZE,
    MIN_PAGE_RECORD_SIZE,
    NAME_LENGTH_STRUCT,
    PAGE_COUNTS_STRUCT,
    SUPPORTED_VERSIONS,
    PackFormat,
    detect_format,
)
from .errors import (
    BadMagic,
    CorruptTable,
    PackError,
    TruncatedFile,
    UnsupportedVersion,
)

__all__ = [
    "PageRecord",
    "PackRecord",
    "parse_pack",
    "parse_native",
    "parse_legacy",
]


@dataclass(slots=True)
class PageRecord:
    name: str
    entries: List[Entry]
    image_data: bytes
    mask: int = DEFAULT_MASK


@dataclass(slots=True)
class PackRecord:
    format: PackFormat
    pages: List[PageRecord] = field(default_factory=list)
    version: Optional[int] = None
    mask: int = DEFAULT_MASK


class _Cursor:
    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _ctx(self, label: str, needed: int, **extra: Any) -> Dict[str, Any]:
        ctx = {
            "field": label,
            "offset": self.offset,
            "needed": needed,
            "available": self.remaining,
        }
        ctx.update({k: v for k, v in extra.items() if v is not None})
        return ctx

    def take(self, size: int, label: str, **ctx: Any) -> bytes:
        if size > self.remaining:
            raise TruncatedFile(
                f"Out of range read for {label}: "
                f"{self.offset}+{size}>{len(self.data)}",
                self._ctx(label, size, **ctx),
            )
        start = self.offset
        self.offset += size
        return self.data[start : self.offset]

    def unpack(self, st: struct.Struct, label: str, **ctx: Any) -> tuple:
        return st.unpack(self.take(st.size, label, **ctx))

    def declared(self, size: int, label: str, **ctx: Any) -> bytes:
        """Read a block whose length came from the file itself."""
        self.require(size, label, **ctx)
        return self.take(size, label, **ctx)

    def require(self, size: int, label: str, **ctx: Any) -> None:
        if size > self.remaining:
            raise CorruptTable(
                f"Declared {label} ({size} bytes) runs past end of file "
                f"at offset {self.offset}",
                self._ctx(label, size, **ctx),
            )

    def name(self, length_struct: struct.Struct, label: str, **ctx: Any) -> str:
        (length,) = self.unpack(length_struct, f"{label} length", **ctx)
        start = self.offset
        raw = self.declared(length, label, **ctx)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptTable(
                f"{label} is not valid UTF-8",
                {"offset": start, "field": label, **ctx},
            ) from e


def _read_entry(
    cur: _Cursor, length_struct: struct.Struct, page: str, index: int
) -> Entry:
    start = cur.offset
    name = cur.name(length_struct, "entry name", page=page, index=index)
    values = cur.unpack(
        ENTRY_GEOMETRY_STRUCT, "entry geometry", page=page, entry=name
    )
    try:
        return Entry(
            name,
            pos=Vec2(values[0], values[1]),
            size=Vec2(values[2], values[3]),
            frame_offset=Vec2(values[4], values[5]),
            frame_size=Vec2(values[6], values[7]),
        )
    except PackError as e:
        e.context = {**(e.context or {}), "page": page, "offset": start}
        raise


def _read_entries(
    cur: _Cursor,
    count: int,
    length_struct: struct.Struct,
    min_record: int,
    page: str,
) -> List[Entry]:
    cur.require(count * min_record, "entry_count", page=page, entry_count=count)
    return [_read_entry(cur, length_struct, page, i) for i in range(count)]


def parse_native(data: bytes) -> PackRecord:
    cur = _Cursor(data)
    magic, version, page_count = cur.unpack(HEADER_STRUCT, "header")
    if magic != MAGIC:
        raise BadMagic(
            f"Header magic mismatch: {magic!r} != {MAGIC!r}",
            {"offset": 0, "magic": magic.hex()},
        )
    if version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersion(
            f"Unsupported pack version {version}",
            {"offset": 4, "version": version,
             "supported": sorted(SUPPORTED_VERSIONS)},
        )
    cur.require(
        page_count * MIN_PAGE_RECORD_SIZE, "page_count", page_count=page_count
    )

    tables = []
    for i in range(page_count):
        name = cur.name(NAME_LENGTH_STRUCT, "page name", index=i)
        image_len, entry_count = cur.unpack(
            PAGE_COUNTS_STRUCT, "page counts", page=name
        )
        # Image bytes live after the whole table, so this only bounds them.
        cur.require(image_len, "image_byte_len", page=name)
        entries = _read_entries(
            cur, entry_count, NAME_LENGTH_STRUCT, MIN_ENTRY_RECORD_SIZE, name
        )
        tables.append((name, image_len, entries))

    pages = []
    for name, image_len, entries in tables:
        image = cur.take(image_len, "image data", page=name)
        pages.append(PageRecord(name, entries, image))
    if cur.remaining:
        raise CorruptTable(
            f"{cur.remaining} trailing bytes after image data section",
            {"offset": cur.offset, "trailing": cur.remaining},
        )
    return PackRecord(PackFormat.NATIVE, pages, version=version)


def _read_terminated_image(cur: _Cursor, page: str) -> bytes:
    end = cur.data.find(LEGACY_END_OF_IMAGE, cur.offset)
    if end < 0:
        raise TruncatedFile(
            f"Image terminator not found for page '{page}'",
            {"offset": cur.offset, "page": page},
        )
    image = cur.take(end - cur.offset, "image data", page=page)
    cur.take(len(LEGACY_END_OF_IMAGE), "image terminator", page=page)
    return image


def parse_legacy(data: bytes, fmt: PackFormat) -> PackRecord:
    cur = _Cursor(data)
    mask = DEFAULT_MASK
    if fmt is PackFormat.LEGACY_V2:
        magic = cur.take(len(LEGACY_MAGIC), "magic")
        if magic != LEGACY_MAGIC:
            raise BadMagic(
                f"Header magic mismatch: {magic!r} != {LEGACY_MAGIC!r}",
                {"offset": 0, "magic": magic.hex()},
            )
        (mask,) = cur.unpack(LEGACY_I32, "pack mask")
    (page_count,) = cur.unpack(LEGACY_U32, "page_count")
    min_page = LEGACY_U32.size * 2 + LEGACY_I32.size
    cur.require(page_count * min_page, "page_count", page_count=page_count)

    pages = []
    for i in range(page_count):
        name = cur.name(LEGACY_U32, "page name", index=i)
        (entry_count,) = cur.unpack(LEGACY_U32, "entry_count", page=name)
        (page_mask,) = cur.unpack(LEGACY_I32, "page mask", page=name)
        entries = _read_entries(
            cur, entry_count, LEGACY_U32, LEGACY_MIN_ENTRY_RECORD_SIZE, name
        )
        if fmt is PackFormat.LEGACY_V2:
            (image_len,) = cur.unpack(LEGACY_U32, "image_byte_len", page=name)
            image = cur.declared(image_len, "image data", page=name)
        else:
            image = _read_terminated_image(cur, name)
        pages.append(PageRecord(name, entries, image, page_mask))
    if cur.remaining:
        raise CorruptTable(
            f"{cur.remaining} trailing bytes after last page",
            {"offset": cur.offset, "trailing": cur.remaining},
        )
    return PackRecord(fmt, pages, mask=mask)


def _looks_like_magic(head: bytes) -> bool:
    # A V1 page count starting with four printable bytes would mean at
    # least 0x21212121 pages.
    return len(head) == len(MAGIC) and all(0x20 < b < 0x7F for b in head)


def _parse_unmarked(data: bytes) -> PackRecord:
    """Parse a file without a known magic as legacy V1."""
    try:
        return parse_legacy(data, PackFormat.LEGACY_V1)
    except PackError as e:
        head = bytes(data[: len(MAGIC)])
        if _looks_like_magic(head):
            raise BadMagic(
                f"Header magic {head!r} is neither {MAGIC!r} nor "
                f"{LEGACY_MAGIC!r}",
                {"offset": 0, "magic": head.hex(), "legacy_v1_error": e.code},
            ) from e
        e.message += (
            f" (no {MAGIC.decode()} or {LEGACY_MAGIC.decode()} magic, "
            "read as legacy V1)"
        )
        e.context = {**(e.context or {}), "magic": head.hex()}
        raise


def parse_pack(data: bytes, fmt: Optional[PackFormat] = None) -> PackRecord:
    """Parse ``data`` as ``fmt``, autodetecting the layout when omitted."""
    if fmt is None:
        fmt = detect_format(data)
        if fmt is PackFormat.LEGACY_V1:
            return _parse_unmarked(data)
    if fmt is PackFormat.NATIVE:
        return parse_native(data)
    return parse_legacy(data, fmt)
