"""Command line interface for pzpack."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import (
    PackOptions,
    UnpackOptions,
    inspect_pack,
    pack_directory,
    unpack,
    unpack_page,
    validate_pack,
)
from .logging import configure_logging, section, step
from .packing.constants import PackFormat
from .packing.errors import PackError
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)


def _unpack_cmd(args: argparse.Namespace) -> int:
    step(f"unpacking {args.pack.name}")
    unpack(
        UnpackOptions(
            input_pack=args.pack,
            output_dir=args.output,
            sprites=args.sprites,
            workers=args.jobs,
        )
    )
    return 0


def _unpack_page_cmd(args: argparse.Namespace) -> int:
    step(f"unpacking page '{args.page}' from {args.pack.name}")
    unpack_page(args.pack, args.output, args.page, workers=args.jobs)
    return 0


def _pack_cmd(args: argparse.Namespace) -> int:
    step(f"packing {args.input}")
    pack_directory(
        PackOptions(
            input_dir=args.input,
            output_path=args.output,
            format=PackFormat(args.format),
            workers=args.jobs,
        )
    )
    return 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    info = inspect_pack(args.pack)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(info, indent=2, sort_keys=True))
        return 0
    with section(f"Pack {args.pack.name}"):
        for page in info["pages"]:
            size = page["image_size"]
            dims = f"{size[0]}x{size[1]}" if size else "?"
            rep.status(
                f"{page['name']}: {dims} entries={page['entry_count']} "
                + f"image_bytes={page['image_bytes']}"
            )
    rep.status(
        "Inspect summary: "
        + f"format={info['format']} pages={info['page_count']} "
        + f"entries={info['entry_count']} bytes={info['file_size']}"
    )
    return 0


def _validate_cmd(args: argparse.Namespace) -> int:
    issues = validate_pack(args.pack)
    rep = get_reporter()
    for issue in issues:
        rep.error(issue)
    rep.status(
        f"Validate summary: issues={len(issues)} file={args.pack.name}"
    )
    return 1 if issues else 0


def _jobs(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pzpack",
        description="Convert .pack texture atlases to and from PNG + TOML",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    p.add_argument(
        "-j",
        "--jobs",
        type=_jobs,
        default=None,
        help="Worker threads for page and sprite processing",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    u = sub.add_parser("unpack", help="Unpack a .pack into PNG + TOML files")
    u.add_argument("pack", type=Path)
    u.add_argument("output", type=Path)
    u.add_argument(
        "--sprites",
        action="store_true",
        help="Also write one padded PNG per entry under <page>/",
    )
    u.set_defaults(func=_unpack_cmd)

    up = sub.add_parser(
        "unpack-page", help="Unpack a single page, including its sprites"
    )
    up.add_argument("pack", type=Path)
    up.add_argument("output", type=Path)
    up.add_argument("page")
    up.set_defaults(func=_unpack_page_cmd)

    k = sub.add_parser("pack", help="Pack a PNG + TOML directory")
    k.add_argument("input", type=Path)
    k.add_argument("output", type=Path)
    k.add_argument(
        "--format",
        choices=[f.value for f in PackFormat],
        default=PackFormat.NATIVE.value,
        help="Output layout: native (default) or a legacy layout",
    )
    k.set_defaults(func=_pack_cmd)

    i = sub.add_parser("inspect", help="Show a pack's tables")
    i.add_argument("pack", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON to stdout")
    i.set_defaults(func=_inspect_cmd)

    v = sub.add_parser("validate", help="Fully decode a pack and report issues")
    v.add_argument("pack", type=Path)
    v.set_defaults(func=_validate_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    requested = args.reporter
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        # rich without a TTY falls back to plain
        set_reporter(PlainReporter())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except PackError as e:
        get_reporter().error(str(e), code=e.code)
        return 2
    except OSError as e:
        get_reporter().error(f"{type(e).__name__}: {e}")
        return 2
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
