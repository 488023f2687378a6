"""High-level API: .pack files <-> PNG + TOML directories.

Directory layout, per page ``<name>``:

* ``<name>.toml``: entry metadata (see :mod:`pzpack.metadata.schema`)
* ``<name>.png``: the page atlas
* ``<name>/<entry>.png``: optional padded sprites, one per entry

Output is rendered in memory first and written only once every page has been
processed; each file is then written atomically.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from .compositor import composite, extract
from .images import encode_png, png_dimensions, read_png
from .logging import get_logger
from .metadata import load_page_metadata, render_page_metadata
from .model import Pack, Page, PageSpec
from .packing.codec import decode_pack, encode_pack
from .packing.constants import PackFormat
from .packing.errors import InvalidValue
from .packing.inspector import (
    inspect_pack as _inspect_pack_impl,
    validate_pack as _validate_pack_impl,
)
from .reporting import get_reporter, task
from .utils.io import atomic_write_bytes
from .utils.paths import file_for_name

__all__ = [
    "UnpackOptions",
    "UnpackResult",
    "PackOptions",
    "PackResult",
    "PageSource",
    "read_pack",
    "write_pack",
    "render_page_files",
    "unpack",
    "unpack_page",
    "discover_pages",
    "load_page",
    "pack_directory",
    "inspect_pack",
    "validate_pack",
]

_PNG = ".png"
_TOML = ".toml"


@dataclass(slots=True)
class UnpackOptions:
    input_pack: Path
    output_dir: Path
    # Restrict output to one page (the unpack-page command); sprites are
    # always emitted in that mode.
    page_name: str | None = None
    sprites: bool = False
    workers: int | None = None


@dataclass(slots=True)
class UnpackResult:
    output_dir: Path
    pages: List[str]
    files_written: int
    bytes_written: int


@dataclass(slots=True)
class PackOptions:
    input_dir: Path
    output_path: Path
    format: PackFormat = PackFormat.NATIVE
    workers: int | None = None


@dataclass(slots=True)
class PackResult:
    output_file: Path
    bytes_written: int
    pages: List[str]
    entries: int


@dataclass(slots=True)
class PageSource:
    name: str
    metadata_path: Path
    atlas_path: Optional[Path] = None
    sprite_dir: Optional[Path] = None
    sprite_files: Dict[str, Path] = field(default_factory=dict)


def read_pack(path: str | Path, *, workers: int | None = None) -> Pack:
    data = Path(path).read_bytes()
    pack = decode_pack(data, workers=workers)
    get_logger().debug(
        "Decoded %s: %d pages, %d entries",
        Path(path).name,
        len(pack.pages),
        pack.entry_count,
    )
    return pack


def write_pack(
    pack: Pack,
    path: str | Path,
    fmt: PackFormat = PackFormat.NATIVE,
    *,
    workers: int | None = None,
) -> int:
    data = encode_pack(pack, fmt, workers=workers)
    atomic_write_bytes(Path(path), data)
    return len(data)


def render_page_files(
    page: Page,
    output_dir: Path,
    *,
    sprites: bool = False,
    workers: int | None = None,
) -> Dict[Path, bytes]:
    """Encode one page's output files without touching the filesystem."""
    files: Dict[Path, bytes] = {
        file_for_name(output_dir, page.name, _PNG): encode_png(
            page.pixels, label=f"page '{page.name}'"
        ),
        file_for_name(output_dir, page.name, _TOML): render_page_metadata(
            page.entries
        ).encode("utf-8"),
    }
    if sprites:
        sprite_dir = file_for_name(output_dir, page.name)
        for name, image in extract(page, workers=workers):
            files[file_for_name(sprite_dir, name, _PNG)] = encode_png(
                image, label=f"entry '{name}'"
            )
    return files


def unpack(options: UnpackOptions) -> UnpackResult:
    rep = get_reporter()
    pack = read_pack(options.input_pack, workers=options.workers)
    if options.page_name is not None:
        pages = [pack.page(options.page_name)]
    else:
        pages = pack.pages
    sprites = options.sprites or options.page_name is not None

    files: Dict[Path, bytes] = {}
    with task("unpack.render", "Render pages", total=len(pages)):
        for page in pages:
            files.update(
                render_page_files(
                    page,
                    options.output_dir,
                    sprites=sprites,
                    workers=options.workers,
                )
            )
            rep.advance("unpack.render", current_item=page.name)

    bytes_written = 0
    with task("unpack.write", "Write files", total=len(files)):
        for path, data in files.items():
            atomic_write_bytes(path, data)
            bytes_written += len(data)
            rep.advance("unpack.write", current_item=path.name)

    entries = sum(len(p.entries) for p in pages)
    rep.status(
        "Unpack summary: "
        + f"pages={len(pages)} entries={entries} files={len(files)} "
        + f"bytes={bytes_written} out={options.output_dir}"
    )
    return UnpackResult(
        output_dir=options.output_dir,
        pages=[p.name for p in pages],
        files_written=len(files),
        bytes_written=bytes_written,
    )


def unpack_page(
    input_pack: str | Path,
    output_dir: str | Path,
    page_name: str,
    *,
    workers: int | None = None,
) -> UnpackResult:
    return unpack(
        UnpackOptions(
            input_pack=Path(input_pack),
            output_dir=Path(output_dir),
            page_name=page_name,
            workers=workers,
        )
    )


def discover_pages(input_dir: str | Path) -> List[PageSource]:
    """Pair ``<name>.toml`` files with their atlas PNG and/or sprite dir.

    Extensions match case-insensitively; sources are sorted by page name.
    """
    logger = get_logger()
    input_dir = Path(input_dir)
    tomls: Dict[str, Path] = {}
    pngs: Dict[str, Path] = {}
    dirs: Dict[str, Path] = {}
    for path in sorted(input_dir.iterdir()):
        if path.is_dir():
            dirs[path.name] = path
        elif path.is_file():
            suffix = path.suffix.lower()
            if suffix == _TOML:
                tomls[path.stem] = path
            elif suffix == _PNG:
                pngs[path.stem] = path

    sources: List[PageSource] = []
    for name in sorted(tomls):
        atlas = pngs.get(name)
        sprite_dir = dirs.get(name)
        if atlas is None and sprite_dir is None:
            logger.warning(
                "Skipping page '%s': no %s%s or %s/ sprite directory",
                name,
                name,
                _PNG,
                name,
            )
            continue
        sprite_files: Dict[str, Path] = {}
        if sprite_dir is not None:
            for path in sorted(sprite_dir.iterdir()):
                if path.is_file() and path.suffix.lower() == _PNG:
                    sprite_files[path.stem] = path
        sources.append(
            PageSource(name, tomls[name], atlas, sprite_dir, sprite_files)
        )
    for name in sorted(set(pngs) - set(tomls)):
        logger.warning(
            "Skipping image '%s': no %s%s metadata", pngs[name].name, name, _TOML
        )
    return sources


def _atlas_size(path: Path) -> Optional[tuple[int, int]]:
    with path.open("rb") as f:
        return png_dimensions(f.read(32))


def load_page(source: PageSource, *, workers: int | None = None) -> Page:
    """Build a page from its metadata plus atlas or sprites.

    A sprite directory takes precedence over the atlas; the atlas then only
    provides the page size. Without an atlas the page is the smallest size
    covering every entry.
    """
    logger = get_logger()
    entries = load_page_metadata(source.metadata_path, page=source.name)
    if source.sprite_dir is None:
        if source.atlas_path is None:
            raise InvalidValue(
                f"Page '{source.name}' has neither an atlas nor a sprite "
                "directory",
                {"page": source.name, "metadata": str(source.metadata_path)},
            )
        return Page(source.name, read_png(source.atlas_path), entries)

    names = {e.name for e in entries}
    for extra in sorted(set(source.sprite_files) - names):
        logger.warning(
            "Ignoring sprite '%s' in %s: not an entry of page '%s'",
            extra,
            source.sprite_dir,
            source.name,
        )
    images: Dict[str, np.ndarray] = {
        name: read_png(path)
        for name, path in source.sprite_files.items()
        if name in names
    }
    size = _atlas_size(source.atlas_path) if source.atlas_path else None
    if size is not None:
        spec = PageSpec(source.name, size[0], size[1], tuple(entries))
    else:
        spec = PageSpec.covering(source.name, entries)
    pixels = composite(spec, images, workers=workers)
    return Page(source.name, pixels, entries)


def pack_directory(options: PackOptions) -> PackResult:
    rep = get_reporter()
    sources = discover_pages(options.input_dir)
    pages: List[Page] = []
    entries = 0
    with task("pack.load", "Load pages", total=len(sources)):
        for source in sources:
            page = load_page(source, workers=options.workers)
            pages.append(page)
            entries += len(page.entries)
            rep.advance("pack.load", current_item=source.name, entries=entries)
    pack = Pack(pages)
    with task("pack.write", "Write pack", total=None):
        bytes_written = write_pack(
            pack, options.output_path, options.format, workers=options.workers
        )
    rep.status(
        "Pack summary: "
        + f"pages={len(pages)} entries={pack.entry_count} "
        + f"format={options.format.value} bytes={bytes_written} "
        + f"file={options.output_path.name}"
    )
    return PackResult(
        output_file=options.output_path,
        bytes_written=bytes_written,
        pages=pack.page_names,
        entries=pack.entry_count,
    )


def inspect_pack(path: str | Path) -> dict:
    return _inspect_pack_impl(path)


def validate_pack(path: str | Path) -> list[str]:
    return _validate_pack_impl(path)
