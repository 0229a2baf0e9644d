import base64
import io

import pytest
from PIL import Image

from palette_swap.errors import ImageDecodeError
from palette_swap.image_io import (
    decode_base64_bytes,
    decode_base64_image,
    decode_image,
    encode_png,
    is_image_file,
    load_image,
    save_png,
    strip_data_url,
    to_png_data_url,
)


def test_rgb_png_gets_opaque_alpha(make_png):
    buf = decode_image(make_png([[(10, 20, 30, 255), (40, 50, 60, 255)]], mode="RGB"))
    assert buf.flat.tolist() == [[10, 20, 30, 255], [40, 50, 60, 255]]
    assert (buf.width, buf.height) == (2, 1)


def test_paletted_png_decodes_to_rgba():
    im = Image.new("P", (2, 2))
    im.putpalette([255, 0, 0, 0, 0, 255])
    im.putdata([0, 1, 1, 0])
    out = io.BytesIO()
    im.save(out, format="PNG")
    buf = decode_image(out.getvalue())
    assert buf.pixels.shape == (2, 2, 4)
    assert buf.flat[0].tolist() == [255, 0, 0, 255]
    assert buf.flat[1].tolist() == [0, 0, 255, 255]


def test_rgba_png_round_trip(sample_buffer):
    buf = decode_image(encode_png(sample_buffer))
    assert buf.pixels.tolist() == sample_buffer.pixels.tolist()


@pytest.mark.parametrize("data", [b"", b"garbage bytes"])
def test_undecodable_bytes(data):
    with pytest.raises(ImageDecodeError):
        decode_image(data)


def test_truncated_png(make_png):
    data = make_png([[(1, 2, 3, 255)] * 8] * 8)
    with pytest.raises(ImageDecodeError):
        decode_image(data[: len(data) // 2])


def test_strip_data_url():
    assert strip_data_url("data:image/png;base64,AAAA") == "AAAA"
    assert strip_data_url("data:image/svg+xml;base64,AAAA") == "AAAA"
    assert strip_data_url("AAAA") == "AAAA"


def test_base64_with_and_without_prefix(make_png):
    data = make_png([[(7, 8, 9, 255)]])
    plain = base64.b64encode(data).decode("ascii")
    assert decode_base64_bytes(plain) == data
    assert decode_base64_image("data:image/png;base64," + plain).flat.tolist() == [
        [7, 8, 9, 255]
    ]


def test_invalid_base64():
    with pytest.raises(ImageDecodeError):
        decode_base64_bytes("abc")


def test_to_png_data_url(sample_buffer):
    url = to_png_data_url(sample_buffer)
    assert url.startswith("data:image/png;base64,")
    assert decode_base64_image(url).pixels.tolist() == sample_buffer.pixels.tolist()


def test_save_png_forces_png_suffix(tmp_path, sample_buffer):
    written = save_png(tmp_path / "out.jpg", sample_buffer)
    assert written.name == "out.png"
    assert is_image_file(written)
    assert load_image(written).pixels.tolist() == sample_buffer.pixels.tolist()


def test_is_image_file_rejects_text(tmp_path):
    path = tmp_path / "notes.png"
    path.write_text("hello", encoding="utf-8")
    assert not is_image_file(path)
