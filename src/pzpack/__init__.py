"""pzpack: .pack texture atlas codec and compositor.

Converts between a game's ``.pack`` atlas containers and directories of PNG
pages, per-entry sprites and TOML entry metadata.
"""

from .model import Entry, Pack, Page, PageSpec
from .packing.codec import decode_pack, encode_pack
from .packing.constants import PackFormat
from .packing.errors import PackError
from .compositor import composite, extract

__version__ = "0.1.0"

__all__ = [
    "Entry",
    "Page",
    "PageSpec",
    "Pack",
    "PackFormat",
    "PackError",
    "decode_pack",
    "encode_pack",
    "extract",
    "composite",
    "__version__",
]
