# palette_swap/extract.py
from __future__ import annotations

"""
Palette extraction.

Turns a decoded RGBA buffer into a deduplicated colour list:
  - fully transparent pixels (alpha == 0) contribute nothing
  - colours are keyed by RGB only; alpha > 0 variants collapse
  - extract_palette() orders by luminance, dark to light, with a stable sort
    so equal-luminance colours keep their first-seen raster order
"""

from typing import List, Tuple

import numpy as np

from .colour_convert import keys_to_hex, luminance_keys, pack_rgb_keys, unpack_rgb_keys
from .core_types import Palette, PixelBuffer, HexStr
from .image_io import decode_image


def _visible_keys_first_seen(buffer: PixelBuffer) -> Tuple[np.ndarray, np.ndarray]:
    """
    Packed RGB keys of visible pixels, unique, in first-seen raster order,
    plus the visible pixel count for each key.
    """
    flat = buffer.flat
    visible = flat[:, 3] > 0
    if not np.any(visible):
        return np.zeros((0,), dtype=np.uint32), np.zeros((0,), dtype=np.int64)
    keys = pack_rgb_keys(flat[visible])
    uniq, first_idx, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.argsort(first_idx, kind="stable")
    return uniq[order], counts[order].astype(np.int64, copy=False)


def unique_visible_colours(buffer: PixelBuffer) -> Palette:
    """Unique visible colours in first-seen raster order (no sorting)."""
    keys, _counts = _visible_keys_first_seen(buffer)
    return keys_to_hex(keys)


def extract_palette(buffer: PixelBuffer) -> Palette:
    """
    Deduplicated visible colours sorted ascending by luminance.

    Returns [] when every pixel is fully transparent.
    """
    keys, _counts = _visible_keys_first_seen(buffer)
    if keys.size == 0:
        return []
    lum = luminance_keys(unpack_rgb_keys(keys))
    order = np.argsort(lum, kind="stable")
    return keys_to_hex(keys[order])


def visible_colour_counts(buffer: PixelBuffer) -> List[Tuple[HexStr, int]]:
    """
    (hex, visible pixel count) per colour, most used first.
    Ties keep first-seen order.
    """
    keys, counts = _visible_keys_first_seen(buffer)
    if keys.size == 0:
        return []
    order = np.argsort(-counts, kind="stable")
    hexes = keys_to_hex(keys[order])
    return list(zip(hexes, counts[order].tolist()))


def extract_palette_from_bytes(data: bytes) -> Palette:
    """Decode encoded image bytes, then extract_palette()."""
    return extract_palette(decode_image(data))


__all__ = [
    "unique_visible_colours",
    "extract_palette",
    "visible_colour_counts",
    "extract_palette_from_bytes",
]
