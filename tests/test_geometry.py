import pytest

from pzpack.geometry import (
    Rect,
    Vec2,
    extracted_rect,
    find_overlaps,
    padded_bounds,
    placement_in_frame,
)
from pzpack.model import Entry
from pzpack.packing.errors import InvalidGeometry, RectOutOfBounds
from pzpack.geometry import check_within

from pack_helpers import moodle_entry


def test_rect_edges_and_intersection():
    a = Rect(0, 0, 10, 10)
    assert (a.right, a.bottom) == (10, 10)
    assert a.intersects(Rect(9, 9, 5, 5))
    # Touching edges do not overlap.
    assert not a.intersects(Rect(10, 0, 5, 5))
    assert not a.intersects(Rect(0, 10, 5, 5))


def test_rect_fits_within():
    assert Rect(0, 0, 4, 4).fits_within(4, 4)
    assert not Rect(1, 0, 4, 4).fits_within(4, 4)


def test_moodle_geometry():
    e = moodle_entry()
    assert extracted_rect(e) == Rect(33, 33, 31, 31)
    assert padded_bounds(e) == Rect(0, 0, 32, 32)
    assert placement_in_frame(e) == Rect(0, 1, 31, 31)


def test_default_frame_geometry():
    e = Entry("a", pos=(5, 6), size=(3, 4))
    assert e.frame_offset == Vec2(0, 0)
    assert e.frame_size == Vec2(3, 4)
    assert placement_in_frame(e) == Rect(0, 0, 3, 4)
    assert padded_bounds(e) == Rect(0, 0, 3, 4)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(pos=(0, 0), size=(0, 4)),
        dict(pos=(0, 0), size=(4, 0)),
        dict(pos=(-1, 0), size=(4, 4)),
        dict(pos=(0, 0), size=(4, 4), frame_size=(3, 4)),
        dict(pos=(0, 0), size=(4, 4), frame_offset=(1, 0), frame_size=(4, 4)),
        dict(pos=(0, 0), size=(4, 4), frame_offset=(0, -1), frame_size=(8, 8)),
        dict(pos=(0, 0, 0), size=(4, 4)),
        dict(pos=(0, 0), size=(4.5, 4)),
        dict(pos=(True, 0), size=(4, 4)),
    ],
)
def test_invalid_geometry_rejected(kwargs):
    with pytest.raises(InvalidGeometry) as ei:
        Entry("bad", **kwargs)
    assert ei.value.context["entry"] == "bad"


def test_check_within_reports_context():
    e = Entry("wide", pos=(60, 0), size=(10, 4))
    with pytest.raises(RectOutOfBounds) as ei:
        check_within(e, 64, 64, page="UI")
    ctx = ei.value.context
    assert ctx["page"] == "UI"
    assert ctx["entry"] == "wide"
    assert ctx["page_size"] == [64, 64]


def test_find_overlaps_lists_every_pair():
    entries = [
        Entry("a", pos=(0, 0), size=(10, 10)),
        Entry("b", pos=(20, 0), size=(5, 5)),
        Entry("c", pos=(5, 5), size=(10, 10)),
        Entry("d", pos=(8, 0), size=(14, 2)),
    ]
    pairs = [(x.name, y.name) for x, y in find_overlaps(entries)]
    assert pairs == [("a", "c"), ("a", "d"), ("b", "d")]


def test_find_overlaps_none_for_adjacent():
    entries = [
        Entry("a", pos=(0, 0), size=(4, 4)),
        Entry("b", pos=(4, 0), size=(4, 4)),
        Entry("c", pos=(0, 4), size=(8, 4)),
    ]
    assert find_overlaps(entries) == []
