"""Path utilities (safe resolution of names used as file names)."""

from __future__ import annotations
from pathlib import Path

from ..packing.errors import InvalidValue

__all__ = ["safe_file_path", "file_for_name"]


def safe_file_path(base_dir: Path, file_path: str) -> Path:
    base_dir = base_dir.resolve()
    resolved = (base_dir / file_path).resolve()
    try:
        resolved.relative_to(base_dir)
    except ValueError:
        raise InvalidValue(
            f"Path '{file_path}' escapes directory {base_dir}",
            {"name": file_path, "base_dir": str(base_dir)},
        ) from None
    return resolved


def file_for_name(base_dir: Path, name: str, suffix: str = "") -> Path:
    """Map a page or entry name to a file directly inside ``base_dir``."""
    if (
        not name
        or name in (".", "..")
        or any(c in name for c in ("/", "\\", "\x00"))
    ):
        raise InvalidValue(
            f"Name '{name}' cannot be used as a file name", {"name": name}
        )
    return safe_file_path(base_dir, name + suffix)
