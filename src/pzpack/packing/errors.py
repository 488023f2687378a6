"""Error definitions for pzpack.

Every failure raised by the codec, the compositor and the metadata bridge
derives from :class:`PackError` and carries a stable ``code`` plus a
``context`` dict (page/entry names, byte offsets) for diagnostics.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

E_TRUNCATED_FILE = "E_TRUNCATED_FILE"
E_CORRUPT_TABLE = "E_CORRUPT_TABLE"
E_UNSUPPORTED_VERSION = "E_UNSUPPORTED_VERSION"
E_BAD_MAGIC = "E_BAD_MAGIC"
E_VALUE_RANGE = "E_VALUE_RANGE"
E_INVALID_GEOMETRY = "E_INVALID_GEOMETRY"
E_RECT_OUT_OF_BOUNDS = "E_RECT_OUT_OF_BOUNDS"
E_ENTRY_OVERLAP = "E_ENTRY_OVERLAP"
E_ENTRY_IMAGE_TOO_SMALL = "E_ENTRY_IMAGE_TOO_SMALL"
E_ENTRY_IMAGE_MISSING = "E_ENTRY_IMAGE_MISSING"
E_MISSING_FIELD = "E_MISSING_FIELD"
E_UNKNOWN_FIELD = "E_UNKNOWN_FIELD"
E_INVALID_VALUE = "E_INVALID_VALUE"
E_METADATA_SYNTAX = "E_METADATA_SYNTAX"
E_PAGE_NOT_FOUND = "E_PAGE_NOT_FOUND"
E_DUPLICATE_NAME = "E_DUPLICATE_NAME"
E_IMAGE_CODEC = "E_IMAGE_CODEC"
E_INTERNAL = "E_INTERNAL"


@dataclass
class PackError(Exception):
    message: str
    context: Optional[Dict[str, Any]] = None

    code: ClassVar[str] = E_INTERNAL

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


# Binary container --------------------------------------------------------


class BinaryFormatError(PackError):
    pass


class TruncatedFile(BinaryFormatError):
    code = E_TRUNCATED_FILE


class CorruptTable(BinaryFormatError):
    code = E_CORRUPT_TABLE


class UnsupportedVersion(BinaryFormatError):
    code = E_UNSUPPORTED_VERSION


class BadMagic(BinaryFormatError):
    code = E_BAD_MAGIC


class ValueOutOfRange(BinaryFormatError):
    code = E_VALUE_RANGE


# Geometry / compositing --------------------------------------------------


class GeometryError(PackError):
    pass


class InvalidGeometry(GeometryError):
    code = E_INVALID_GEOMETRY


class RectOutOfBounds(GeometryError):
    code = E_RECT_OUT_OF_BOUNDS


class EntryOverlap(GeometryError):
    code = E_ENTRY_OVERLAP


class EntryImageTooSmall(GeometryError):
    code = E_ENTRY_IMAGE_TOO_SMALL


class EntryImageMissing(GeometryError):
    code = E_ENTRY_IMAGE_MISSING


# Metadata schema ---------------------------------------------------------


class MetadataError(PackError):
    pass


class MissingRequiredField(MetadataError):
    code = E_MISSING_FIELD


class UnknownField(MetadataError):
    code = E_UNKNOWN_FIELD


class InvalidValue(MetadataError):
    code = E_INVALID_VALUE


class MetadataSyntaxError(MetadataError):
    code = E_METADATA_SYNTAX


# Model / lookup ----------------------------------------------------------


class PageNotFound(PackError):
    code = E_PAGE_NOT_FOUND


class DuplicateName(PackError):
    code = E_DUPLICATE_NAME


class ImageCodecError(PackError):
    code = E_IMAGE_CODEC


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> PackError:
    return PackError(message=message, context=context)


__all__ = [
    "PackError",
    "BinaryFormatError",
    "TruncatedFile",
    "CorruptTable",
    "UnsupportedVersion",
    "BadMagic",
    "ValueOutOfRange",
    "GeometryError",
    "InvalidGeometry",
    "RectOutOfBounds",
    "EntryOverlap",
    "EntryImageTooSmall",
    "EntryImageMissing",
    "MetadataError",
    "MissingRequiredField",
    "UnknownField",
    "InvalidValue",
    "MetadataSyntaxError",
    "PageNotFound",
    "DuplicateName",
    "ImageCodecError",
    "internal_error",
    "E_TRUNCATED_FILE",
    "E_CORRUPT_TABLE",
    "E_UNSUPPORTED_VERSION",
    "E_BAD_MAGIC",
    "E_VALUE_RANGE",
    "E_INVALID_GEOMETRY",
    "E_RECT_OUT_OF_BOUNDS",
    "E_ENTRY_OVERLAP",
    "E_ENTRY_IMAGE_TOO_SMALL",
    "E_ENTRY_IMAGE_MISSING",
    "E_MISSING_FIELD",
    "E_UNKNOWN_FIELD",
    "E_INVALID_VALUE",
    "E_METADATA_SYNTAX",
    "E_PAGE_NOT_FOUND",
    "E_DUPLICATE_NAME",
    "E_IMAGE_CODEC",
    "E_INTERNAL",
]
