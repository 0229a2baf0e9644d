import base64
import io
import json
import zipfile

import pytest

from palette_swap import api
from palette_swap.constants import MAX_IMAGE_BYTES
from palette_swap.image_io import decode_base64_image
from palette_swap.palette_files import export_gpl, export_kpl


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@pytest.fixture
def image_data(make_png):
    rows = [[(255, 255, 255, 255), (100, 100, 100, 255)], [(0, 0, 0, 0), (100, 100, 100, 60)]]
    return "data:image/png;base64," + b64(make_png(rows))


# extract


def test_extract_palette_request(image_data):
    status, body = api.extract_palette_request({"imageData": image_data})
    assert status == 200
    assert body == {"colors": ["#646464", "#ffffff"]}


@pytest.mark.parametrize("body", [{}, {"imageData": ""}, {"imageData": 5}, ["x"], None])
def test_extract_rejects_bad_body(body):
    status, resp = api.extract_palette_request(body)
    assert status == 400
    assert "error" in resp


def test_extract_undecodable_image_is_400():
    status, resp = api.extract_palette_request({"imageData": b64(b"not an image")})
    assert status == 400
    assert "decode" in resp["error"]


def test_extract_too_large_is_413():
    payload = b64(bytes(MAX_IMAGE_BYTES + 1))
    status, resp = api.extract_palette_request({"imageData": payload})
    assert status == 413
    assert resp["error"].endswith("Maximum size is 500 KB.")


def test_unexpected_failure_is_500(monkeypatch, image_data, capsys):
    def boom(buffer):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(api, "extract_palette", boom)
    status, resp = api.extract_palette_request({"imageData": image_data})
    assert status == 500
    assert resp == {"error": "Failed to extract palette"}
    assert "kaboom" in capsys.readouterr().err


# replace


def test_replace_colors_builds_mapping(image_data):
    status, body = api.replace_colors_request(
        {"imageData": image_data, "targetPalette": ["#000000", "#ffffff"]}
    )
    assert status == 200
    assert body["sourcePalette"] == ["#ffffff", "#646464"]
    assert body["colorMapping"] == {"#ffffff": "#ffffff", "#646464": "#000000"}
    out = decode_base64_image(body["imageData"])
    assert out.flat.tolist() == [
        [255, 255, 255, 255],
        [0, 0, 0, 255],
        [0, 0, 0, 0],
        [0, 0, 0, 60],
    ]


def test_replace_colors_uses_supplied_mapping(image_data):
    mapping = {"#646464": "#ff0000"}
    status, body = api.replace_colors_request(
        {"imageData": image_data, "targetPalette": ["#000000"], "colorMapping": mapping}
    )
    assert status == 200
    assert body["colorMapping"] == mapping
    out = decode_base64_image(body["imageData"])
    assert out.flat[0].tolist() == [255, 255, 255, 255]
    assert out.flat[1].tolist() == [255, 0, 0, 255]


@pytest.mark.parametrize(
    "extra",
    [
        {"targetPalette": "#000000"},
        {"targetPalette": [1, 2]},
        {"targetPalette": []},
        {"targetPalette": ["black"]},
        {"targetPalette": ["#000000"], "colorMapping": ["#000000"]},
        {"targetPalette": ["#000000"], "colorMapping": {"#646464": 3}},
    ],
)
def test_replace_colors_rejects_bad_input(image_data, extra):
    status, resp = api.replace_colors_request({"imageData": image_data, **extra})
    assert status == 400
    assert "error" in resp


# parse


def test_parse_gpl_request():
    status, body = api.parse_palette_request(
        {"content": export_gpl(["#102030", "#ffffff"]), "type": "gpl"}
    )
    assert status == 200
    assert body == {"palette": ["#102030", "#ffffff"]}


def test_parse_kpl_request_takes_base64():
    content = b64(export_kpl(["#ff0000", "#00ff00"]))
    status, body = api.parse_palette_request({"content": content, "type": "KPL"})
    assert status == 200
    assert body == {"palette": ["#ff0000", "#00ff00"]}


@pytest.mark.parametrize(
    "body",
    [
        {"content": "GIMP Palette\n", "type": "gpl"},
        {"content": "[]", "type": "json"},
        {"content": "abc", "type": "aco"},
        {"content": b64(b"not a zip"), "type": "kpl"},
        {"type": "gpl"},
    ],
)
def test_parse_palette_request_errors(body):
    status, resp = api.parse_palette_request(body)
    assert status == 400
    assert "error" in resp


# export


def test_export_gpl_request():
    status, body = api.export_palette_request(
        {"colors": ["#ff0000"], "format": "gpl", "name": "Fire"}
    )
    assert status == 200
    assert body["filename"] == "Fire.gpl"
    assert body["encoding"] == "utf-8"
    assert "Name: Fire\n" in body["content"]


def test_export_kpl_request_is_base64_zip():
    status, body = api.export_palette_request({"colors": ["#ff0000"], "format": "kpl"})
    assert status == 200
    assert body["filename"] == "Palette.kpl"
    assert body["mimeType"] == "application/x-krita-palette"
    assert body["encoding"] == "base64"
    with zipfile.ZipFile(io.BytesIO(base64.b64decode(body["content"]))) as zf:
        assert zf.namelist()[0] == "mimetype"


def test_export_json_request():
    status, body = api.export_palette_request({"colors": ["#00ff00"], "format": "json"})
    assert status == 200
    assert json.loads(body["content"])["colors"][0]["hex"] == "#00ff00"


@pytest.mark.parametrize(
    "body",
    [
        {"colors": "#ff0000", "format": "gpl"},
        {"colors": ["#ff0000"], "format": "aco"},
        {"colors": ["#ff0000"], "format": "gpl", "name": 3},
        {"colors": ["nope"], "format": "gpl"},
    ],
)
def test_export_palette_request_errors(body):
    status, resp = api.export_palette_request(body)
    assert status == 400
    assert "error" in resp


def test_parse_non_finite_kpl_is_400():
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w") as zf:
        zf.writestr("mimetype", "application/x-krita-palette")
        zf.writestr(
            "colorset.xml",
            '<Colorset><ColorSetEntry><sRGB r="inf" g="0" b="0"/></ColorSetEntry></Colorset>',
        )
    status, resp = api.parse_palette_request({"content": b64(out.getvalue()), "type": "kpl"})
    assert status == 400
    assert "error" in resp
