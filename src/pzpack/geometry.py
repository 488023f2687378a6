"""Entry rectangle and padding math shared by both conversion directions.

An entry stores a trimmed sub-image at ``pos``/``size`` inside its page
atlas. The final sprite is a ``frame_size`` canvas with the stored sub-image
placed at ``frame_offset``; everything else in the frame is transparent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, NamedTuple, Optional, Protocol, Tuple

from .packing.errors import InvalidGeometry, RectOutOfBounds

__all__ = [
    "Vec2",
    "Rect",
    "EntryGeometry",
    "as_vec2",
    "extracted_rect",
    "padded_bounds",
    "placement_in_frame",
    "validate_geometry",
    "check_within",
    "find_overlaps",
]


class Vec2(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class Rect:
    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    def intersects(self, other: "Rect") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def fits_within(self, width: int, height: int) -> bool:
        return (
            self.x >= 0
            and self.y >= 0
            and self.right <= width
            and self.bottom <= height
        )

    def slices(self) -> Tuple[slice, slice]:
        """Row/column slices addressing this rect in an (H, W, C) array."""
        return slice(self.y, self.bottom), slice(self.x, self.right)


class EntryGeometry(Protocol):
    name: str
    pos: Vec2
    size: Vec2
    frame_offset: Vec2
    frame_size: Vec2


def as_vec2(value: Any, *, entry: str, field: str) -> Vec2:
    if isinstance(value, Vec2):
        return value
    try:
        x, y = value
    except (TypeError, ValueError):
        raise InvalidGeometry(
            f"{field} must be a pair of integers",
            {"entry": entry, "field": field, "value": repr(value)},
        ) from None
    for v in (x, y):
        if isinstance(v, bool) or not isinstance(v, int):
            raise InvalidGeometry(
                f"{field} must hold integers",
                {"entry": entry, "field": field, "value": repr(value)},
            )
    return Vec2(int(x), int(y))


def extracted_rect(entry: EntryGeometry) -> Rect:
    return Rect(entry.pos.x, entry.pos.y, entry.size.x, entry.size.y)


def padded_bounds(entry: EntryGeometry) -> Rect:
    return Rect(0, 0, entry.frame_size.x, entry.frame_size.y)


def placement_in_frame(entry: EntryGeometry) -> Rect:
    return Rect(
        entry.frame_offset.x,
        entry.frame_offset.y,
        entry.size.x,
        entry.size.y,
    )


def validate_geometry(entry: EntryGeometry) -> None:
    """Raise :class:`InvalidGeometry` unless the entry's fields are coherent."""
    ctx = {
        "entry": entry.name,
        "pos": list(entry.pos),
        "size": list(entry.size),
        "frame_offset": list(entry.frame_offset),
        "frame_size": list(entry.frame_size),
    }
    if min(entry.pos) < 0 or min(entry.frame_offset) < 0:
        raise InvalidGeometry(
            f"Negative coordinate for entry '{entry.name}'", ctx
        )
    if entry.size.x <= 0 or entry.size.y <= 0:
        raise InvalidGeometry(
            f"Entry '{entry.name}' has an empty size", ctx
        )
    if entry.frame_size.x < entry.size.x or entry.frame_size.y < entry.size.y:
        raise InvalidGeometry(
            f"Frame of entry '{entry.name}' is smaller than its sub-image",
            ctx,
        )
    if (
        entry.frame_offset.x + entry.size.x > entry.frame_size.x
        or entry.frame_offset.y + entry.size.y > entry.frame_size.y
    ):
        raise InvalidGeometry(
            f"Frame offset of entry '{entry.name}' pushes the sub-image "
            "outside its frame",
            ctx,
        )


def check_within(
    entry: EntryGeometry,
    width: int,
    height: int,
    *,
    page: Optional[str] = None,
) -> None:
    rect = extracted_rect(entry)
    if not rect.fits_within(width, height):
        raise RectOutOfBounds(
            f"Entry '{entry.name}' rect {rect.x},{rect.y}+{rect.w}x{rect.h} "
            f"exceeds page bounds {width}x{height}",
            {
                "page": page,
                "entry": entry.name,
                "rect": [rect.x, rect.y, rect.w, rect.h],
                "page_size": [width, height],
            },
        )


def find_overlaps(
    entries: Iterable[EntryGeometry],
) -> List[Tuple[EntryGeometry, EntryGeometry]]:
    """Return every pair of entries whose extracted rects intersect.

    Pairs are reported in input order of their first member.
    """
    indexed = list(enumerate(entries))
    ordered = sorted(indexed, key=lambda item: extracted_rect(item[1]).x)
    found: List[Tuple[int, int]] = []
    for i, (idx_a, a) in enumerate(ordered):
        ra = extracted_rect(a)
        for idx_b, b in ordered[i + 1 :]:
            rb = extracted_rect(b)
            if rb.x >= ra.right:
                break
            if ra.intersects(rb):
                found.append((min(idx_a, idx_b), max(idx_a, idx_b)))
    found.sort()
    lookup = dict(indexed)
    return [(lookup[i], lookup[j]) for i, j in found]
