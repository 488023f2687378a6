"""Binary .pack inspection utilities.

Public functions:
- inspect_pack(path) -> dict   (tables only, images are not decoded)
- validate_pack(path) -> list[str]   (full decode, issues instead of raising)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from ..geometry import find_overlaps
from ..images import png_dimensions
from .codec import decode_pack
from .errors import PackError
from .reader import parse_pack

__all__ = ["inspect_pack", "inspect_bytes", "validate_pack", "validate_bytes"]


def inspect_bytes(data: bytes) -> Dict[str, Any]:
    record = parse_pack(data)
    pages = []
    for page in record.pages:
        dims = png_dimensions(page.image_data)
        pages.append(
            {
                "name": page.name,
                "mask": page.mask,
                "entry_count": len(page.entries),
                "image_bytes": len(page.image_data),
                "image_size": list(dims) if dims else None,
                "entries": [e.name for e in page.entries],
            }
        )
    return {
        "file_size": len(data),
        "format": record.format.value,
        "version": record.version,
        "mask": record.mask,
        "page_count": len(pages),
        "entry_count": sum(p["entry_count"] for p in pages),
        "pages": pages,
    }


def inspect_pack(path: str | Path) -> Dict[str, Any]:
    info = inspect_bytes(Path(path).read_bytes())
    info["path"] = str(path)
    return info


def _describe(e: PackError) -> str:
    ctx = e.context or {}
    where = [f"{k}={ctx[k]}" for k in ("page", "entry", "offset") if k in ctx]
    suffix = f" ({', '.join(where)})" if where else ""
    return f"{e.code}: {e.message}{suffix}"


def validate_bytes(data: bytes) -> List[str]:
    issues: List[str] = []
    try:
        pack = decode_pack(data)
    except PackError as e:
        issues.append(_describe(e))
        return issues
    for page in pack.pages:
        for a, b in find_overlaps(page.entries):
            issues.append(
                f"Entries '{a.name}' and '{b.name}' overlap on page "
                f"'{page.name}'"
            )
    return issues


def validate_pack(path: str | Path) -> List[str]:
    return validate_bytes(Path(path).read_bytes())
