"""Pack <-> bytes, including page image encode/decode.

``decode_pack`` never returns a partial Pack: any table, image or geometry
failure aborts the whole decode.
"""

from __future__ import annotations

from typing import Optional

from ..images import decode_png, encode_png
from ..logging import get_logger
from ..model import Pack, Page
from ..utils.concurrency import parallel_map
from .constants import DEFAULT_MASK, PackFormat
from .errors import PackError
from .reader import PackRecord, PageRecord, parse_pack
from .writer import serialize_pack

__all__ = ["decode_pack", "encode_pack", "pack_to_record"]


def _with_page(e: PackError, page: str) -> PackError:
    e.context = {**(e.context or {}), "page": page}
    return e


def _decode_page(rec: PageRecord) -> Page:
    try:
        pixels = decode_png(rec.image_data, label=f"page '{rec.name}'")
        return Page(rec.name, pixels, rec.entries, rec.mask)
    except PackError as e:
        raise _with_page(e, rec.name)


def decode_pack(
    data: bytes,
    *,
    fmt: Optional[PackFormat] = None,
    workers: Optional[int] = None,
) -> Pack:
    record = parse_pack(data, fmt)
    get_logger().debug(
        "Parsed %s pack: %d pages, %d bytes",
        record.format.value,
        len(record.pages),
        len(data),
    )
    pages = parallel_map(_decode_page, record.pages, workers)
    return Pack(pages, mask=record.mask)


def pack_to_record(
    pack: Pack,
    fmt: PackFormat = PackFormat.NATIVE,
    *,
    workers: Optional[int] = None,
) -> PackRecord:
    def encode(page: Page) -> PageRecord:
        try:
            image = encode_png(page.pixels, label=f"page '{page.name}'")
        except PackError as e:
            raise _with_page(e, page.name)
        return PageRecord(page.name, list(page.entries), image, page.mask)

    pages = parallel_map(encode, pack.pages, workers)
    return PackRecord(fmt, pages, mask=pack.mask)


def encode_pack(
    pack: Pack,
    fmt: PackFormat = PackFormat.NATIVE,
    *,
    workers: Optional[int] = None,
) -> bytes:
    if fmt is PackFormat.NATIVE and (
        pack.mask != DEFAULT_MASK
        or any(p.mask != DEFAULT_MASK for p in pack.pages)
    ):
        get_logger().warning(
            "Native format does not store masks; non-default masks dropped"
        )
    return serialize_pack(pack_to_record(pack, fmt, workers=workers))
