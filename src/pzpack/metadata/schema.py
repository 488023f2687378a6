"""Schema of a page metadata document.

Top-level keys are entry names; each maps to a table::

    [Moodle_Bkg_Good_1]
    pos = [33, 33]
    size = [31, 31]
    frame_offset = [0, 1]   # optional, default [0, 0]
    frame_size = [32, 32]   # optional, default = size

Only these four keys are accepted in an entry table.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..geometry import Vec2
from ..model import Entry
from ..packing.errors import (
    InvalidValue,
    MissingRequiredField,
    PackError,
    UnknownField,
)

__all__ = [
    "ENTRY_FIELDS",
    "REQUIRED_FIELDS",
    "entries_from_document",
    "entries_to_document",
]

ENTRY_FIELDS = ("pos", "size", "frame_offset", "frame_size")
REQUIRED_FIELDS = ("pos", "size")


def _vec2(
    value: Any, *, page: Optional[str], entry: str, field: str
) -> Vec2:
    ctx = {"page": page, "entry": entry, "field": field, "value": value}
    if not isinstance(value, list) or len(value) != 2:
        raise InvalidValue(
            f"'{entry}.{field}' must be an array of 2 integers", ctx
        )
    for v in value:
        if isinstance(v, bool) or not isinstance(v, int):
            raise InvalidValue(
                f"'{entry}.{field}' must hold integers", ctx
            )
        if v < 0:
            raise InvalidValue(
                f"'{entry}.{field}' must not be negative", ctx
            )
    return Vec2(value[0], value[1])


def _entry_from_table(
    name: str, table: Any, page: Optional[str]
) -> Entry:
    if not isinstance(table, Mapping):
        raise InvalidValue(
            f"Entry '{name}' must be a table",
            {"page": page, "entry": name},
        )
    for key in table:
        if key not in ENTRY_FIELDS:
            raise UnknownField(
                f"Unknown field '{key}' in entry '{name}'",
                {"page": page, "entry": name, "field": key,
                 "allowed": list(ENTRY_FIELDS)},
            )
    for key in REQUIRED_FIELDS:
        if key not in table:
            raise MissingRequiredField(
                f"Entry '{name}' is missing required field '{key}'",
                {"page": page, "entry": name, "field": key},
            )
    fields = {
        key: _vec2(table[key], page=page, entry=name, field=key)
        for key in ENTRY_FIELDS
        if key in table
    }
    try:
        return Entry(name, **fields)
    except PackError as e:
        e.context = {**(e.context or {}), "page": page}
        raise


def entries_from_document(
    doc: Mapping[str, Any], *, page: Optional[str] = None
) -> List[Entry]:
    """Build entries from a parsed document, in document order."""
    return [_entry_from_table(name, table, page) for name, table in doc.items()]


def entries_to_document(entries: Sequence[Entry]) -> Dict[str, Dict[str, Any]]:
    """Inverse of :func:`entries_from_document`; omits default frame fields."""
    doc: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        table: Dict[str, Any] = {
            "pos": list(entry.pos),
            "size": list(entry.size),
        }
        if entry.frame_offset != (0, 0):
            table["frame_offset"] = list(entry.frame_offset)
        if entry.frame_size != entry.size:
            table["frame_size"] = list(entry.frame_size)
        doc[entry.name] = table
    return doc
