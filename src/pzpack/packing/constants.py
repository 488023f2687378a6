"""Binary layout constants for .pack containers."""

from __future__ import annotations

import struct
from enum import Enum

# Native container (header + page table + image data section).
MAGIC = b"PZAT"
FORMAT_VERSION = 1
SUPPORTED_VERSIONS = frozenset({FORMAT_VERSION})

HEADER_STRUCT = struct.Struct("<4sHI")  # magic, version, page_count
HEADER_SIZE = HEADER_STRUCT.size

NAME_LENGTH_STRUCT = struct.Struct("<H")
MAX_NAME_LENGTH = 0xFFFF

PAGE_COUNTS_STRUCT = struct.Struct("<II")  # image_byte_len, entry_count
ENTRY_GEOMETRY_STRUCT = struct.Struct("<8I")
ENTRY_GEOMETRY_SIZE = ENTRY_GEOMETRY_STRUCT.size

# Smallest possible records, used to reject impossible declared counts early.
MIN_PAGE_RECORD_SIZE = NAME_LENGTH_STRUCT.size + PAGE_COUNTS_STRUCT.size
MIN_ENTRY_RECORD_SIZE = NAME_LENGTH_STRUCT.size + ENTRY_GEOMETRY_SIZE

U32_MAX = 0xFFFFFFFF

# Legacy game layouts.
LEGACY_MAGIC = b"PZPK"
LEGACY_END_OF_IMAGE = struct.pack("<I", 0xDEADBEEF)
LEGACY_U32 = struct.Struct("<I")
LEGACY_I32 = struct.Struct("<i")
LEGACY_MIN_ENTRY_RECORD_SIZE = LEGACY_U32.size + ENTRY_GEOMETRY_SIZE

DEFAULT_MASK = 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1


class PackFormat(str, Enum):
    NATIVE = "native"
    LEGACY_V1 = "v1"
    LEGACY_V2 = "v2"


def detect_format(data: bytes) -> PackFormat:
    head = bytes(data[:4])
    if head == MAGIC:
        return PackFormat.NATIVE
    if head == LEGACY_MAGIC:
        return PackFormat.LEGACY_V2
    return PackFormat.LEGACY_V1


__all__ = [
    "MAGIC",
    "FORMAT_VERSION",
    "SUPPORTED_VERSIONS",
    "HEADER_STRUCT",
    "HEADER_SIZE",
    "NAME_LENGTH_STRUCT",
    "MAX_NAME_LENGTH",
    "PAGE_COUNTS_STRUCT",
    "ENTRY_GEOMETRY_STRUCT",
    "ENTRY_GEOMETRY_SIZE",
    "MIN_PAGE_RECORD_SIZE",
    "MIN_ENTRY_RECORD_SIZE",
    "U32_MAX",
    "LEGACY_MAGIC",
    "LEGACY_END_OF_IMAGE",
    "LEGACY_U32",
    "LEGACY_I32",
    "LEGACY_MIN_ENTRY_RECORD_SIZE",
    "DEFAULT_MASK",
    "I32_MIN",
    "I32_MAX",
    "PackFormat",
    "detect_format",
]
