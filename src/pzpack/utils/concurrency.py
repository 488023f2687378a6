"""Thread fan-out for page- and entry-level work."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

__all__ = ["parallel_map"]

T = TypeVar("T")
R = TypeVar("R")


def parallel_map(
    fn: Callable[[T], R], items: Sequence[T], workers: Optional[int] = None
) -> List[R]:
    """Apply ``fn`` to every item, preserving order.

    Runs inline unless ``workers > 1`` and there is more than one item. The
    first exception raised by any call propagates.
    """
    if not workers or workers <= 1 or len(items) < 2:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as executor:
        return list(executor.map(fn, items))
