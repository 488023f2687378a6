"""PNG encode/decode on top of Pillow, with RGBA8 numpy pixel buffers.

Pixel buffers are ``numpy.uint8`` arrays shaped ``(height, width, 4)``.
"""

from __future__ import annotations

import io
import struct
from pathlib import Path
from typing import Tuple

import numpy as np
from PIL import Image

from .packing.errors import ImageCodecError
from .utils.io import atomic_write_bytes

__all__ = [
    "CHANNELS",
    "ensure_rgba",
    "canvas_pixel_limit",
    "transparent_canvas",
    "decode_png",
    "encode_png",
    "read_png",
    "write_png",
    "png_dimensions",
]

CHANNELS = 4
_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
# Best compression, matching the game's own packer.
_PNG_COMPRESS_LEVEL = 9


def ensure_rgba(pixels: np.ndarray, *, label: str = "image") -> np.ndarray:
    if not isinstance(pixels, np.ndarray):
        raise ImageCodecError(
            f"{label}: pixel buffer must be a numpy array",
            {"type": type(pixels).__name__},
        )
    if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
        raise ImageCodecError(
            f"{label}: expected an (H, W, 4) RGBA buffer",
            {"shape": list(pixels.shape)},
        )
    if pixels.dtype != np.uint8:
        raise ImageCodecError(
            f"{label}: expected uint8 pixels", {"dtype": str(pixels.dtype)}
        )
    return pixels


def canvas_pixel_limit() -> int | None:
    """Largest pixel count Pillow still decodes (its bomb error threshold)."""
    limit = Image.MAX_IMAGE_PIXELS
    return 2 * limit if limit else None


def transparent_canvas(width: int, height: int) -> np.ndarray:
    return np.zeros((height, width, CHANNELS), dtype=np.uint8)


def decode_png(data: bytes, *, label: str = "image") -> np.ndarray:
    try:
        with Image.open(io.BytesIO(data)) as im:
            rgba = im.convert("RGBA")
    except (
        OSError,
        ValueError,
        SyntaxError,
        struct.error,
        Image.DecompressionBombError,
    ) as e:
        raise ImageCodecError(
            f"{label}: failed to decode image data: {e}",
            {"bytes": len(data)},
        ) from e
    return np.array(rgba, dtype=np.uint8)


def encode_png(pixels: np.ndarray, *, label: str = "image") -> bytes:
    ensure_rgba(pixels, label=label)
    im = Image.fromarray(np.ascontiguousarray(pixels))
    buf = io.BytesIO()
    try:
        im.save(buf, format="PNG", compress_level=_PNG_COMPRESS_LEVEL)
    except (OSError, ValueError) as e:
        raise ImageCodecError(f"{label}: failed to encode PNG: {e}") from e
    return buf.getvalue()


def read_png(path: Path) -> np.ndarray:
    return decode_png(Path(path).read_bytes(), label=str(path))


def write_png(path: Path, pixels: np.ndarray) -> int:
    data = encode_png(pixels, label=str(path))
    atomic_write_bytes(Path(path), data)
    return len(data)


def png_dimensions(data: bytes) -> Tuple[int, int] | None:
    """Read (width, height) from a PNG IHDR chunk without decoding pixels."""
    if len(data) < 24 or data[:8] != _PNG_SIGNATURE or data[12:16] != b"IHDR":
        return None
    width, height = struct.unpack_from(">II", data, 16)
    return width, height
