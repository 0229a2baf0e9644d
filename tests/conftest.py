"""
Pytest configuration and shared fixtures for palette_swap tests.
"""

import io
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from palette_swap.core_types import PixelBuffer  # noqa: E402


def buffer_from_rows(rows):
    """PixelBuffer from rows of (r, g, b, a) tuples."""
    return PixelBuffer.from_pixels(rows)


def png_bytes(rows, mode="RGBA"):
    """Encode rows of RGBA tuples as PNG bytes, optionally converting the mode."""
    im = Image.fromarray(np.asarray(rows, dtype=np.uint8))
    if mode != "RGBA":
        im = im.convert(mode)
    out = io.BytesIO()
    im.save(out, format="PNG")
    return out.getvalue()


@pytest.fixture
def make_buffer():
    return buffer_from_rows


@pytest.fixture
def make_png():
    return png_bytes


@pytest.fixture
def sample_rgba_rows():
    """
    3x2 image: red, green, transparent / blue, red (half alpha), white.
    """
    return [
        [(255, 0, 0, 255), (0, 255, 0, 255), (9, 9, 9, 0)],
        [(0, 0, 255, 255), (255, 0, 0, 128), (255, 255, 255, 255)],
    ]


@pytest.fixture
def sample_buffer(sample_rgba_rows):
    return buffer_from_rows(sample_rgba_rows)


@pytest.fixture
def bw_palette():
    return ["#000000", "#ffffff"]
