import json

import pytest

import palette_swap_cli as cli
from palette_swap.image_io import load_image
from palette_swap.palette_files import export_gpl, load_palette_file


@pytest.fixture
def art(tmp_path, make_png):
    path = tmp_path / "art.png"
    path.write_bytes(
        make_png([[(250, 250, 250, 255), (20, 20, 20, 255)], [(0, 0, 0, 0), (240, 0, 0, 255)]])
    )
    return path


@pytest.fixture
def bw_gpl(tmp_path):
    path = tmp_path / "bw.gpl"
    path.write_text(export_gpl(["#000000", "#ffffff"], "bw"), encoding="utf-8")
    return path


def test_extract_hex_to_stdout(art, capsys):
    assert cli.main(["extract", str(art)]) == 0
    assert capsys.readouterr().out == "#141414\n#f00000\n#fafafa\n"


@pytest.mark.parametrize("fmt", ["gpl", "kpl", "json"])
def test_extract_to_palette_file(art, fmt):
    assert cli.main(["extract", str(art), "--format", fmt]) == 0
    written = art.with_suffix(f".{fmt}")
    assert load_palette_file(written) == ["#141414", "#f00000", "#fafafa"]


def test_remap_single_file_with_edits(art, bw_gpl, tmp_path, capsys):
    mapping_out = tmp_path / "mapping.json"
    code = cli.main(
        [
            "remap",
            str(art),
            str(bw_gpl),
            "--set",
            "#f00000=#ffffff",
            "--mapping-out",
            str(mapping_out),
        ]
    )
    assert code == 0
    out = load_image(tmp_path / "art_remap.png")
    assert out.flat.tolist() == [
        [255, 255, 255, 255],
        [0, 0, 0, 255],
        [0, 0, 0, 0],
        [255, 255, 255, 255],
    ]
    assert json.loads(mapping_out.read_text(encoding="utf-8")) == {
        "#fafafa": "#ffffff",
        "#141414": "#000000",
        "#f00000": "#ffffff",
    }
    assert "Wrote art_remap.png" in capsys.readouterr().out


def test_remap_with_supplied_mapping(art, bw_gpl, tmp_path):
    mapping_in = tmp_path / "in.json"
    mapping_in.write_text(json.dumps({"#141414": "#ffffff"}), encoding="utf-8")
    outdir = tmp_path / "out"
    code = cli.main(
        ["remap", str(art), str(bw_gpl), "--mapping-in", str(mapping_in), "--outdir", str(outdir)]
    )
    assert code == 0
    out = load_image(outdir / "art_remap.png")
    assert out.flat[0].tolist() == [250, 250, 250, 255]
    assert out.flat[1].tolist() == [255, 255, 255, 255]


def test_remap_onto_palette_of_another_image(art, tmp_path, make_png):
    ref = tmp_path / "ref.png"
    ref.write_bytes(make_png([[(0, 0, 255, 255), (255, 255, 0, 255)]]))
    assert cli.main(["remap", str(art), str(ref)]) == 0
    colours = {tuple(px[:3]) for px in load_image(tmp_path / "art_remap.png").flat.tolist()}
    assert colours <= {(0, 0, 255), (255, 255, 0), (0, 0, 0)}


def test_remap_folder(tmp_path, bw_gpl, make_png, capsys):
    src = tmp_path / "in"
    src.mkdir()
    (src / "b.png").write_bytes(make_png([[(30, 30, 30, 255)]]))
    (src / "a.png").write_bytes(make_png([[(200, 200, 200, 255)]]))
    (src / "notes.txt").write_text("skip me", encoding="utf-8")
    outdir = tmp_path / "out"

    assert cli.main(["remap", str(src), str(bw_gpl), "--outdir", str(outdir), "--jobs", "2"]) == 0

    assert sorted(p.name for p in outdir.iterdir()) == ["a_remap.png", "b_remap.png"]
    assert load_image(outdir / "a_remap.png").flat.tolist() == [[255, 255, 255, 255]]
    assert load_image(outdir / "b_remap.png").flat.tolist() == [[0, 0, 0, 255]]
    out = capsys.readouterr().out
    assert out.index("a.png") < out.index("b.png")


def test_convert_palette(bw_gpl, tmp_path):
    dst = tmp_path / "bw.kpl"
    assert cli.main(["convert", str(bw_gpl), str(dst)]) == 0
    assert load_palette_file(dst) == ["#000000", "#ffffff"]


def test_missing_input_returns_2(tmp_path, capsys):
    assert cli.main(["extract", str(tmp_path / "missing.png")]) == 2
    assert "not found" in capsys.readouterr().err


def test_bad_palette_returns_1(art, tmp_path, capsys):
    bad = tmp_path / "bad.gpl"
    bad.write_text("GIMP Palette\n", encoding="utf-8")
    assert cli.main(["remap", str(art), str(bad)]) == 1
    assert "[error]" in capsys.readouterr().err


def test_bad_edit_argument():
    with pytest.raises(SystemExit):
        cli.parse_cli_args(["remap", "a.png", "b.gpl", "--set", "#ffffff"])


def test_remap_folder_with_failing_file_returns_1(tmp_path, bw_gpl, make_png, capsys):
    src = tmp_path / "in"
    src.mkdir()
    (src / "a.png").write_bytes(b"not a png")
    (src / "b.png").write_bytes(make_png([[(30, 30, 30, 255)]]))
    outdir = tmp_path / "out"

    assert cli.main(["remap", str(src), str(bw_gpl), "--outdir", str(outdir)]) == 1

    assert (outdir / "b_remap.png").exists()
    assert not (outdir / "a_remap.png").exists()
    captured = capsys.readouterr()
    assert "[error] a.png" in captured.out
    assert "1 of 2 file(s) failed: a.png" in captured.err


def test_convert_corrupt_kpl_returns_1(tmp_path, capsys):
    bad = tmp_path / "bad.kpl"
    bad.write_bytes(b"PK\x03\x04 broken")
    assert cli.main(["convert", str(bad), str(tmp_path / "out.gpl")]) == 1
    assert "[error]" in capsys.readouterr().err
