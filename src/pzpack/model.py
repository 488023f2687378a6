"""In-memory model: Pack -> Page -> Entry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Sequence

import numpy as np

from .geometry import (
    Vec2,
    as_vec2,
    check_within,
    validate_geometry,
)
from .images import ensure_rgba
from .packing.constants import DEFAULT_MASK, I32_MAX, I32_MIN
from .packing.errors import DuplicateName, InvalidValue, PageNotFound

__all__ = ["Entry", "PageSpec", "Page", "Pack"]


@dataclass(frozen=True, slots=True)
class Entry:
    """One named sprite of a page.

    ``frame_offset`` and ``frame_size`` default to ``(0, 0)`` and ``size``;
    the defaults are resolved here so the rest of the code never sees
    ``None``.
    """

    name: str
    pos: Vec2
    size: Vec2
    frame_offset: Vec2 = None  # type: ignore[assignment]
    frame_size: Vec2 = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise InvalidValue(
                "Entry name must be a non-empty string",
                {"entry": repr(self.name)},
            )
        pos = as_vec2(self.pos, entry=self.name, field="pos")
        size = as_vec2(self.size, entry=self.name, field="size")
        if self.frame_offset is None:
            frame_offset = Vec2(0, 0)
        else:
            frame_offset = as_vec2(
                self.frame_offset, entry=self.name, field="frame_offset"
            )
        if self.frame_size is None:
            frame_size = size
        else:
            frame_size = as_vec2(
                self.frame_size, entry=self.name, field="frame_size"
            )
        object.__setattr__(self, "pos", pos)
        object.__setattr__(self, "size", size)
        object.__setattr__(self, "frame_offset", frame_offset)
        object.__setattr__(self, "frame_size", frame_size)
        validate_geometry(self)

    @property
    def has_default_frame(self) -> bool:
        return self.frame_offset == (0, 0) and self.frame_size == self.size

    def geometry(self) -> tuple[int, ...]:
        """The eight stored integers, in on-disk order."""
        return (*self.pos, *self.size, *self.frame_offset, *self.frame_size)


def _check_mask(value: Any, owner: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValue(f"{owner} mask must be an integer")
    if not I32_MIN <= value <= I32_MAX:
        raise InvalidValue(
            f"{owner} mask out of i32 range", {"mask": value}
        )
    return value


def _validate_entries(
    page: str, entries: Sequence[Entry], width: int, height: int
) -> None:
    seen: set[str] = set()
    for entry in entries:
        if entry.name in seen:
            raise DuplicateName(
                f"Duplicate entry name '{entry.name}' in page '{page}'",
                {"page": page, "entry": entry.name},
            )
        seen.add(entry.name)
        check_within(entry, width, height, page=page)


@dataclass(frozen=True, slots=True)
class PageSpec:
    """Declared shape of a page, without pixels (pack direction)."""

    name: str
    width: int
    height: int
    entries: tuple[Entry, ...] = ()
    mask: int = DEFAULT_MASK

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(self.entries))
        if self.width < 0 or self.height < 0:
            raise InvalidValue(
                f"Page '{self.name}' has negative dimensions",
                {"page": self.name, "size": [self.width, self.height]},
            )
        _check_mask(self.mask, f"Page '{self.name}'")
        _validate_entries(self.name, self.entries, self.width, self.height)

    @classmethod
    def covering(
        cls, name: str, entries: Iterable[Entry], mask: int = DEFAULT_MASK
    ) -> "PageSpec":
        """Smallest page (at least 1x1) that holds every entry rect."""
        entries = tuple(entries)
        width = max((e.pos.x + e.size.x for e in entries), default=1)
        height = max((e.pos.y + e.size.y for e in entries), default=1)
        return cls(name, width, height, entries, mask)


@dataclass(eq=False, slots=True)
class Page:
    name: str
    pixels: np.ndarray
    entries: List[Entry] = field(default_factory=list)
    mask: int = DEFAULT_MASK

    def __post_init__(self) -> None:
        ensure_rgba(self.pixels, label=f"page '{self.name}'")
        self.entries = list(self.entries)
        _check_mask(self.mask, f"Page '{self.name}'")
        _validate_entries(self.name, self.entries, self.width, self.height)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def spec(self) -> PageSpec:
        return PageSpec(
            self.name, self.width, self.height, tuple(self.entries), self.mask
        )

    def entry(self, name: str) -> Entry:
        for e in self.entries:
            if e.name == name:
                return e
        raise KeyError(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Page):
            return NotImplemented
        return (
            self.name == other.name
            and self.mask == other.mask
            and self.entries == other.entries
            and np.array_equal(self.pixels, other.pixels)
        )


@dataclass(slots=True)
class Pack:
    pages: List[Page] = field(default_factory=list)
    mask: int = DEFAULT_MASK

    def __post_init__(self) -> None:
        self.pages = list(self.pages)
        _check_mask(self.mask, "Pack")
        seen: set[str] = set()
        for page in self.pages:
            if page.name in seen:
                raise DuplicateName(
                    f"Duplicate page name '{page.name}'", {"page": page.name}
                )
            seen.add(page.name)

    @property
    def page_names(self) -> List[str]:
        return [p.name for p in self.pages]

    @property
    def entry_count(self) -> int:
        return sum(len(p.entries) for p in self.pages)

    def page(self, name: str) -> Page:
        for p in self.pages:
            if p.name == name:
                return p
        raise PageNotFound(
            f"Page '{name}' not found in pack",
            {"page": name, "available": self.page_names},
        )
