"""Atlas compositing: page <-> padded per-entry sprites.

``extract`` cuts every entry's stored sub-image out of a page and places it
on a transparent ``frame_size`` canvas. ``composite`` is its inverse: it
copies the ``placement_in_frame`` region of each sprite back to the entry's
``pos`` on a transparent page canvas.

All checks run before any pixel is written, so concurrent workers only ever
touch disjoint regions.
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Tuple

import numpy as np

from .geometry import (
    check_within,
    extracted_rect,
    find_overlaps,
    padded_bounds,
    placement_in_frame,
)
from .images import canvas_pixel_limit, ensure_rgba, transparent_canvas
from .model import Entry, Page, PageSpec
from .packing.errors import (
    EntryImageMissing,
    EntryImageTooSmall,
    EntryOverlap,
    InvalidGeometry,
)
from .utils.concurrency import parallel_map

__all__ = [
    "extract_entry",
    "extract",
    "check_composite",
    "composite",
]


def extract_entry(
    pixels: np.ndarray, entry: Entry, *, page: Optional[str] = None
) -> np.ndarray:
    height, width = pixels.shape[:2]
    check_within(entry, width, height, page=page)
    bounds = padded_bounds(entry)
    ctx = {
        "page": page,
        "entry": entry.name,
        "frame_size": [bounds.w, bounds.h],
    }
    limit = canvas_pixel_limit()
    if limit is not None and bounds.w * bounds.h > limit:
        raise InvalidGeometry(
            f"Frame of entry '{entry.name}' is too large "
            f"({bounds.w}x{bounds.h}, limit {limit} pixels)",
            ctx,
        )
    try:
        canvas = transparent_canvas(bounds.w, bounds.h)
    except (ValueError, MemoryError) as e:
        raise InvalidGeometry(
            f"Frame of entry '{entry.name}' cannot be allocated "
            f"({bounds.w}x{bounds.h})",
            ctx,
        ) from e
    src_rows, src_cols = extracted_rect(entry).slices()
    dst_rows, dst_cols = placement_in_frame(entry).slices()
    canvas[dst_rows, dst_cols] = pixels[src_rows, src_cols]
    return canvas


def extract(
    page: Page, *, workers: Optional[int] = None
) -> List[Tuple[str, np.ndarray]]:
    """One padded RGBA sprite per entry, in entry order."""

    def one(entry: Entry) -> Tuple[str, np.ndarray]:
        return entry.name, extract_entry(page.pixels, entry, page=page.name)

    return parallel_map(one, page.entries, workers)


def check_composite(
    spec: PageSpec, entry_images: Mapping[str, np.ndarray]
) -> None:
    """Validate everything ``composite`` needs before writing any pixel."""
    for entry in spec.entries:
        check_within(entry, spec.width, spec.height, page=spec.name)
    overlaps = find_overlaps(spec.entries)
    if overlaps:
        a, b = overlaps[0]
        raise EntryOverlap(
            f"Entries '{a.name}' and '{b.name}' overlap on page '{spec.name}'",
            {
                "page": spec.name,
                "entries": [a.name, b.name],
                "pairs": [[x.name, y.name] for x, y in overlaps],
            },
        )
    for entry in spec.entries:
        image = entry_images.get(entry.name)
        if image is None:
            raise EntryImageMissing(
                f"No image supplied for entry '{entry.name}'",
                {"page": spec.name, "entry": entry.name},
            )
        ensure_rgba(image, label=f"entry '{entry.name}'")
        height, width = image.shape[:2]
        if width < entry.frame_size.x or height < entry.frame_size.y:
            raise EntryImageTooSmall(
                f"Image for entry '{entry.name}' is {width}x{height}, "
                f"frame needs {entry.frame_size.x}x{entry.frame_size.y}",
                {
                    "page": spec.name,
                    "entry": entry.name,
                    "image_size": [width, height],
                    "frame_size": list(entry.frame_size),
                },
            )


def composite(
    spec: PageSpec,
    entry_images: Mapping[str, np.ndarray],
    *,
    workers: Optional[int] = None,
) -> np.ndarray:
    """Build a page buffer from padded sprites; exact inverse of ``extract``.

    Pixels outside every entry rect are left fully transparent. Images for
    names that are not entries of ``spec`` are ignored.
    """
    check_composite(spec, entry_images)
    canvas = transparent_canvas(spec.width, spec.height)

    def place(entry: Entry) -> None:
        src_rows, src_cols = placement_in_frame(entry).slices()
        dst_rows, dst_cols = extracted_rect(entry).slices()
        canvas[dst_rows, dst_cols] = entry_images[entry.name][
            src_rows, src_cols
        ]

    parallel_map(place, list(spec.entries), workers)
    return canvas
