import logging
import struct

import numpy as np

from pzpack.images import decode_png
from pzpack.model import Entry, Pack, Page
from pzpack.packing.codec import decode_pack, encode_pack
from pzpack.packing.constants import (
    ENTRY_GEOMETRY_STRUCT,
    FORMAT_VERSION,
    HEADER_SIZE,
    MAGIC,
    PackFormat,
)
from pzpack.packing.reader import parse_pack

from pack_helpers import gradient, sample_pack


def test_native_roundtrip_preserves_everything():
    pack = sample_pack()
    decoded = decode_pack(encode_pack(pack))
    assert decoded.page_names == pack.page_names
    for a, b in zip(pack.pages, decoded.pages):
        assert a == b
        # Entry order is kept as stored.
        assert [e.name for e in a.entries] == [e.name for e in b.entries]


def test_encode_is_deterministic():
    assert encode_pack(sample_pack()) == encode_pack(sample_pack())


def test_parallel_encode_matches_serial():
    pack = sample_pack()
    assert encode_pack(pack, workers=4) == encode_pack(pack)
    decoded = decode_pack(encode_pack(pack), workers=4)
    assert decoded.pages == pack.pages


def test_header_and_page_table_layout():
    entry = Entry(
        "e", pos=(1, 2), size=(3, 4), frame_offset=(1, 0), frame_size=(5, 4)
    )
    pack = Pack([Page("P", gradient(8, 8), [entry])])
    data = encode_pack(pack)

    magic, version, page_count = struct.unpack_from("<4sHI", data, 0)
    assert (magic, version, page_count) == (MAGIC, FORMAT_VERSION, 1)
    assert data[:4] == b"PZAT"

    off = HEADER_SIZE
    (name_len,) = struct.unpack_from("<H", data, off)
    off += 2
    assert data[off : off + name_len] == b"P"
    off += name_len
    image_len, entry_count = struct.unpack_from("<II", data, off)
    off += 8
    assert entry_count == 1
    (ename_len,) = struct.unpack_from("<H", data, off)
    off += 2 + ename_len
    geometry = ENTRY_GEOMETRY_STRUCT.unpack_from(data, off)
    off += ENTRY_GEOMETRY_STRUCT.size
    assert geometry == (1, 2, 3, 4, 1, 0, 5, 4)
    # Image data section follows the table and runs to end of file.
    assert len(data) - off == image_len
    assert np.array_equal(decode_png(data[off:]), gradient(8, 8))


def test_default_frame_written_as_resolved_values():
    pack = Pack([Page("P", gradient(4, 4), [Entry("e", pos=(0, 0), size=(2, 3))])])
    record = parse_pack(encode_pack(pack))
    assert record.pages[0].entries[0].geometry() == (0, 0, 2, 3, 0, 0, 2, 3)


def test_empty_pack_roundtrip():
    data = encode_pack(Pack([]))
    assert data == b"PZAT" + struct.pack("<HI", 1, 0)
    assert decode_pack(data).pages == []


def test_image_pixels_preserved_exactly():
    pixels = gradient(17, 9, seed=5)
    pixels[2:4, 3:6, 3] = 0  # transparent hole
    pixels[5, 5] = (10, 20, 30, 128)
    pack = Pack([Page("P", pixels, [Entry("a", pos=(0, 0), size=(17, 9))])])
    decoded = decode_pack(encode_pack(pack))
    assert np.array_equal(decoded.pages[0].pixels, pixels)


def test_unicode_names_roundtrip():
    page = Page("Ünïcode頁", gradient(4, 4), [Entry("スプライト", pos=(0, 0), size=(4, 4))])
    decoded = decode_pack(encode_pack(Pack([page])))
    assert decoded.pages[0].name == "Ünïcode頁"
    assert decoded.pages[0].entries[0].name == "スプライト"


def test_native_drops_masks_with_warning(caplog, monkeypatch):
    pack = Pack([Page("P", gradient(2, 2), mask=7)], mask=3)
    monkeypatch.setattr(logging.getLogger("pzpack"), "propagate", True)
    with caplog.at_level(logging.WARNING, logger="pzpack"):
        decoded = decode_pack(encode_pack(pack, PackFormat.NATIVE))
    assert decoded.mask == 1
    assert decoded.pages[0].mask == 1
    assert any("mask" in r.getMessage() for r in caplog.records)
