# palette_swap/image_io.py
from __future__ import annotations

import base64
import binascii
import io
import re
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .core_types import PixelBuffer
from .errors import ImageDecodeError, InvalidImageDimensions

"""
Image I/O helpers: encoded bytes <-> RGBA PixelBuffer, PNG output, and the
base64 / data-URL wrapping used by the request boundary.

Every decoded image is converted to RGBA; formats without alpha get an opaque
alpha channel (255).
"""

_DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,")

_DECODE_ERRORS = (
    UnidentifiedImageError,
    OSError,
    SyntaxError,
    ValueError,
    Image.DecompressionBombError,
)


def _image_to_buffer(im: Image.Image) -> PixelBuffer:
    width, height = im.size
    if width == 0 or height == 0:
        raise InvalidImageDimensions(f"invalid image dimensions {width}x{height}")
    arr = np.array(im.convert("RGBA"), dtype=np.uint8)
    return PixelBuffer(arr)


def decode_image(data: bytes) -> PixelBuffer:
    """Decode encoded image bytes (PNG, JPEG, GIF, ...) into an RGBA buffer."""
    if not data:
        raise ImageDecodeError("empty image data")
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            return _image_to_buffer(im)
    except InvalidImageDimensions:
        raise
    except _DECODE_ERRORS as e:
        raise ImageDecodeError(f"could not decode image: {e}") from e


def load_image(path: Path) -> PixelBuffer:
    """Read and decode an image file."""
    return decode_image(Path(path).read_bytes())


def encode_png(buffer: PixelBuffer) -> bytes:
    """Encode a buffer as PNG bytes (RGBA)."""
    out = io.BytesIO()
    Image.fromarray(buffer.pixels).save(out, format="PNG")
    return out.getvalue()


def save_png(path: Path, buffer: PixelBuffer) -> Path:
    """Write a buffer as PNG. A non-.png suffix is replaced with .png."""
    path = Path(path)
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    path.write_bytes(encode_png(buffer))
    return path


def is_image_file(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


# Base64 / data URL


def strip_data_url(text: str) -> str:
    """Remove a leading 'data:image/<type>;base64,' marker if present."""
    return _DATA_URL_RE.sub("", text.strip(), count=1)


def decode_base64_bytes(text: str) -> bytes:
    """Base64 text (optionally a data URL) to raw bytes."""
    try:
        return base64.b64decode(strip_data_url(text), validate=False)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"invalid base64 payload: {e}") from e


def decode_base64_image(text: str) -> PixelBuffer:
    """Base64 text (optionally a data URL) to an RGBA buffer."""
    return decode_image(decode_base64_bytes(text))


def to_png_data_url(image: Union[PixelBuffer, bytes]) -> str:
    """PNG-encode a buffer (or take PNG bytes as-is) as 'data:image/png;base64,...'."""
    png = encode_png(image) if isinstance(image, PixelBuffer) else image
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


__all__ = [
    "decode_image",
    "load_image",
    "encode_png",
    "save_png",
    "is_image_file",
    "strip_data_url",
    "decode_base64_bytes",
    "decode_base64_image",
    "to_png_data_url",
]
