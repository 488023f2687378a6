import numpy as np
import pytest

from pzpack.compositor import composite, extract, extract_entry
from pzpack.geometry import extracted_rect, placement_in_frame
from pzpack.model import Entry, Page, PageSpec
from pzpack.packing.errors import (
    EntryImageMissing,
    EntryImageTooSmall,
    EntryOverlap,
    InvalidGeometry,
    RectOutOfBounds,
)

from pack_helpers import gradient, moodle_entry, sample_page


def _masked_atlas(page: Page) -> np.ndarray:
    """Page pixels with everything outside entry rects made transparent."""
    out = np.zeros_like(page.pixels)
    for e in page.entries:
        rows, cols = extracted_rect(e).slices()
        out[rows, cols] = page.pixels[rows, cols]
    return out


def test_moodle_padding():
    pixels = gradient(64, 64)
    entry = moodle_entry()
    sprite = extract_entry(pixels, entry)
    assert sprite.shape == (32, 32, 4)
    # Row 0 and column 31 are padding.
    assert not sprite[0, :, :].any()
    assert not sprite[:, 31, :].any()
    assert np.array_equal(sprite[1:32, 0:31], pixels[33:64, 33:64])


def test_padding_outside_placement_is_transparent():
    page = sample_page()
    for name, sprite in extract(page):
        entry = page.entry(name)
        assert sprite.shape == (entry.frame_size.y, entry.frame_size.x, 4)
        mask = np.ones(sprite.shape[:2], dtype=bool)
        rows, cols = placement_in_frame(entry).slices()
        mask[rows, cols] = False
        assert not sprite[mask].any()


def test_default_frame_is_plain_crop():
    pixels = gradient(10, 10)
    sprite = extract_entry(pixels, Entry("a", pos=(2, 3), size=(4, 5)))
    assert np.array_equal(sprite, pixels[3:8, 2:6])


def test_extract_out_of_bounds():
    with pytest.raises(RectOutOfBounds):
        extract_entry(gradient(8, 8), Entry("a", pos=(6, 6), size=(4, 4)))


def test_composite_inverts_extract():
    page = sample_page()
    sprites = dict(extract(page))
    rebuilt = composite(page.spec, sprites)
    assert np.array_equal(rebuilt, _masked_atlas(page))


def test_extract_then_composite_is_idempotent():
    page = sample_page()
    once = composite(page.spec, dict(extract(page)))
    twice_page = Page(page.name, once, page.entries)
    twice = composite(page.spec, dict(extract(twice_page)))
    assert np.array_equal(once, twice)


def test_parallel_matches_serial():
    page = sample_page()
    serial = extract(page)
    parallel = extract(page, workers=4)
    assert [n for n, _ in serial] == [n for n, _ in parallel]
    for (_, a), (_, b) in zip(serial, parallel):
        assert np.array_equal(a, b)
    sprites = dict(serial)
    assert np.array_equal(
        composite(page.spec, sprites), composite(page.spec, sprites, workers=4)
    )


def test_composite_reads_only_placement_region():
    entry = moodle_entry()
    spec = PageSpec("P", 64, 64, (entry,))
    sprite = np.full((40, 40, 4), 200, dtype=np.uint8)
    sprite[1:32, 0:31] = 7
    out = composite(spec, {entry.name: sprite})
    assert (out[33:64, 33:64] == 7).all()
    assert not out[:33, :].any()


def test_composite_overlap_names_both_entries():
    spec = PageSpec(
        "P",
        16,
        16,
        (
            Entry("a", pos=(0, 0), size=(8, 8)),
            Entry("b", pos=(4, 4), size=(8, 8)),
        ),
    )
    images = {"a": gradient(8, 8), "b": gradient(8, 8)}
    with pytest.raises(EntryOverlap) as ei:
        composite(spec, images)
    assert ei.value.context["entries"] == ["a", "b"]
    assert "'a'" in ei.value.message and "'b'" in ei.value.message


def test_composite_image_too_small():
    entry = moodle_entry()
    spec = PageSpec("P", 64, 64, (entry,))
    with pytest.raises(EntryImageTooSmall) as ei:
        composite(spec, {entry.name: gradient(31, 32)})
    assert ei.value.context["frame_size"] == [32, 32]
    assert ei.value.context["image_size"] == [31, 32]


def test_composite_missing_image():
    spec = PageSpec("P", 8, 8, (Entry("a", pos=(0, 0), size=(4, 4)),))
    with pytest.raises(EntryImageMissing):
        composite(spec, {})


def test_composite_ignores_extra_images():
    spec = PageSpec("P", 8, 8, (Entry("a", pos=(0, 0), size=(4, 4)),))
    out = composite(spec, {"a": gradient(4, 4), "stray": gradient(2, 2)})
    assert out.shape == (8, 8, 4)


def test_bounds_checked_before_overlap():
    with pytest.raises(RectOutOfBounds):
        PageSpec(
            "P",
            8,
            8,
            (
                Entry("a", pos=(0, 0), size=(8, 8)),
                Entry("b", pos=(4, 4), size=(8, 8)),
            ),
        )


def test_oversized_frame_rejected_with_context():
    entry = Entry(
        "huge",
        pos=(0, 0),
        size=(4, 4),
        frame_size=(0xFFFFFFFF, 0xFFFFFFFF),
    )
    page = Page("P", gradient(8, 8), [entry])
    with pytest.raises(InvalidGeometry) as ei:
        extract(page)
    ctx = ei.value.context
    assert ctx["page"] == "P"
    assert ctx["entry"] == "huge"
    assert ctx["frame_size"] == [0xFFFFFFFF, 0xFFFFFFFF]


def test_unallocatable_frame_without_pixel_limit(monkeypatch):
    monkeypatch.setattr("PIL.Image.MAX_IMAGE_PIXELS", None)
    entry = Entry(
        "huge",
        pos=(0, 0),
        size=(4, 4),
        frame_size=(0xFFFFFFFF, 0xFFFFFFFF),
    )
    with pytest.raises(InvalidGeometry) as ei:
        extract_entry(gradient(8, 8), entry, page="P")
    assert isinstance(ei.value.__cause__, (ValueError, MemoryError))
