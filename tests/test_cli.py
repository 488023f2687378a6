import json
from pathlib import Path

from pzpack.api import read_pack, write_pack
from pzpack.cli import build_parser, main
from pzpack.model import Entry, Pack, Page

from pack_helpers import gradient, sample_pack


def _sample(tmp_path: Path) -> Path:
    path = tmp_path / "UI.pack"
    write_pack(sample_pack(), path)
    return path


def test_unpack_and_pack_commands(tmp_path: Path):
    pack_path = _sample(tmp_path)
    out = tmp_path / "out"
    assert main(["-r", "silent", "unpack", "--sprites", str(pack_path), str(out)]) == 0
    assert (out / "UI2" / "Moodle_Bkg_Good_1.png").exists()
    repacked = tmp_path / "re.pack"
    assert main(["-r", "silent", "-j", "2", "pack", str(out), str(repacked)]) == 0
    assert read_pack(repacked).page_names == ["Empty", "UI", "UI2"]


def test_pack_legacy_format(tmp_path: Path):
    pack_path = _sample(tmp_path)
    out = tmp_path / "out"
    main(["-r", "silent", "unpack", str(pack_path), str(out)])
    legacy = tmp_path / "legacy.pack"
    assert main(["-r", "silent", "pack", "--format", "v2", str(out), str(legacy)]) == 0
    assert legacy.read_bytes()[:4] == b"PZPK"


def test_unpack_page_command(tmp_path: Path):
    pack_path = _sample(tmp_path)
    out = tmp_path / "one"
    assert main(["-r", "silent", "unpack-page", str(pack_path), str(out), "UI"]) == 0
    assert (out / "UI.toml").exists()
    assert (out / "UI" / "Icon_A.png").exists()
    assert not (out / "UI2.png").exists()


def test_missing_page_exit_code(tmp_path: Path):
    pack_path = _sample(tmp_path)
    rc = main(["-r", "silent", "unpack-page", str(pack_path), str(tmp_path), "Nope"])
    assert rc == 2


def test_missing_input_exit_code(tmp_path: Path):
    rc = main(["-r", "silent", "unpack", str(tmp_path / "absent.pack"), str(tmp_path)])
    assert rc == 2


def test_inspect_json(tmp_path: Path, capsys):
    pack_path = _sample(tmp_path)
    assert main(["-r", "silent", "inspect", "--json", str(pack_path)]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["format"] == "native"
    assert info["page_count"] == 3
    assert info["pages"][1]["image_size"] == [64, 64]


def test_validate_exit_codes(tmp_path: Path):
    good = _sample(tmp_path)
    assert main(["-r", "silent", "validate", str(good)]) == 0

    overlapping = tmp_path / "overlap.pack"
    write_pack(
        Pack(
            [
                Page(
                    "P",
                    gradient(8, 8),
                    [
                        Entry("a", pos=(0, 0), size=(4, 4)),
                        Entry("b", pos=(2, 2), size=(4, 4)),
                    ],
                )
            ]
        ),
        overlapping,
    )
    assert main(["-r", "silent", "validate", str(overlapping)]) == 1

    broken = tmp_path / "broken.pack"
    broken.write_bytes(good.read_bytes()[:20])
    assert main(["-r", "silent", "validate", str(broken)]) == 1


def test_json_reporter_emits_summary(tmp_path: Path, capsys):
    pack_path = _sample(tmp_path)
    main(["-r", "json", "unpack", str(pack_path), str(tmp_path / "out")])
    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    summaries = [e for e in events if e.get("event") == "summary"]
    assert summaries and summaries[-1]["summary_type"] == "unpack"
    assert summaries[-1]["pages"] == "3"


def test_parser_defaults():
    args = build_parser().parse_args(["pack", "in", "out.pack"])
    assert args.format == "native"
    assert args.jobs is None
    assert args.reporter == "plain"


def test_unpack_page_with_oversized_frame_exit_code(tmp_path: Path):
    entry = Entry(
        "huge", pos=(0, 0), size=(4, 4), frame_size=(0xFFFFFFFF, 0xFFFFFFFF)
    )
    path = tmp_path / "huge.pack"
    write_pack(Pack([Page("P", gradient(8, 8), [entry])]), path)
    out = tmp_path / "out"
    assert main(["-r", "silent", "unpack-page", str(path), str(out), "P"]) == 2
    assert not (out / "P.png").exists()
