# palette_swap/colour_convert.py
from __future__ import annotations

import math
import re
from typing import List, Sequence

import numpy as np

from .core_types import (
    ColourLike,
    HexStr,
    RGBTuple,
    U8Rows,
    clamp_channel,
    coerce_to_rgb_tuple,
)
from .errors import InvalidColorFormat

"""
Colour primitives: hex <-> RGB, Euclidean RGB distance, luminance.

Scalar versions work on single colours; the array versions are the
vectorised NumPy equivalents used by the extractor and remapper.

Exports:
- rgb_to_hex(r, g, b)
- hex_to_rgb(hex_str)
- normalise_hex(hex_str)
- colour_distance(c1, c2)
- luminance(c)
- hex_list_to_u8_rgb_array(hex_list)
- pack_rgb_keys(rgb_rows)
- unpack_rgb_keys(keys), keys_to_hex(keys)
- luminance_keys(rgb_rows)
- squared_distance_matrix(src_rows, pal_rows)
"""

_HEX_RE = re.compile(r"#[0-9a-fA-F]{6}")

LUMA_WEIGHTS = (0.299, 0.587, 0.114)
LUMA_KEY_WEIGHTS = (299, 587, 114)


def rgb_to_hex(r: float, g: float, b: float) -> HexStr:
    """RGB channels to lowercase '#rrggbb'. Channels are clamped to [0, 255]."""
    return f"#{clamp_channel(r):02x}{clamp_channel(g):02x}{clamp_channel(b):02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rrggbb' (case-insensitive) into an RGB tuple."""
    if not isinstance(hex_str, str) or not _HEX_RE.fullmatch(hex_str):
        raise InvalidColorFormat(f"invalid colour {hex_str!r}, expected '#rrggbb'")
    return (int(hex_str[1:3], 16), int(hex_str[3:5], 16), int(hex_str[5:7], 16))


def normalise_hex(hex_str: str) -> HexStr:
    """Validate and return the canonical lowercase form."""
    hex_to_rgb(hex_str)
    return hex_str.lower()


def _as_rgb(colour: ColourLike) -> RGBTuple:
    if isinstance(colour, str):
        return hex_to_rgb(colour)
    return coerce_to_rgb_tuple(colour)


def colour_distance(c1: ColourLike, c2: ColourLike) -> float:
    """Euclidean distance in RGB space. Range [0, ~441.67]."""
    r1, g1, b1 = _as_rgb(c1)
    r2, g2, b2 = _as_rgb(c2)
    return math.sqrt((r2 - r1) ** 2 + (g2 - g1) ** 2 + (b2 - b1) ** 2)


def luminance(colour: ColourLike) -> float:
    """Weighted sum 0.299*r + 0.587*g + 0.114*b. Used as a sort key only."""
    r, g, b = _as_rgb(colour)
    return LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b


# Vectorised helpers


def hex_list_to_u8_rgb_array(hex_list: Sequence[str]) -> U8Rows:
    """
    Convert a sequence of '#rrggbb' strings to a (N,3) uint8 array.
    Uses hex_to_rgb for a single source of truth.
    """
    out = np.empty((len(hex_list), 3), dtype=np.uint8)
    for i, hx in enumerate(hex_list):
        out[i] = hex_to_rgb(hx)
    return out


def pack_rgb_keys(rgb_rows: np.ndarray) -> np.ndarray:
    """(N,3+) uint8 rows -> uint32 keys r<<16 | g<<8 | b."""
    rows = rgb_rows.astype(np.uint32, copy=False)
    return (rows[:, 0] << 16) | (rows[:, 1] << 8) | rows[:, 2]


def unpack_rgb_keys(keys: np.ndarray) -> U8Rows:
    """Inverse of pack_rgb_keys."""
    k = keys.astype(np.uint32, copy=False)
    out = np.empty((k.shape[0], 3), dtype=np.uint8)
    out[:, 0] = (k >> 16) & 0xFF
    out[:, 1] = (k >> 8) & 0xFF
    out[:, 2] = k & 0xFF
    return out


def keys_to_hex(keys: np.ndarray) -> List[HexStr]:
    """uint32 packed keys -> list of '#rrggbb'."""
    return [f"#{int(k):06x}" for k in keys.tolist()]


def luminance_keys(rgb_rows: np.ndarray) -> np.ndarray:
    """
    Exact integer sort keys 299*r + 587*g + 114*b per (N,3+) row (int64).
    Orders rows like luminance(); equal luminance gives equal keys.
    """
    rows = rgb_rows.astype(np.int64, copy=False)
    return (
        LUMA_KEY_WEIGHTS[0] * rows[:, 0]
        + LUMA_KEY_WEIGHTS[1] * rows[:, 1]
        + LUMA_KEY_WEIGHTS[2] * rows[:, 2]
    )


def squared_distance_matrix(src_rows: np.ndarray, pal_rows: np.ndarray) -> np.ndarray:
    """
    Exact integer squared RGB distances, shape (N_src, N_pal).
    Squared distance orders candidates exactly like the Euclidean distance.
    """
    src = src_rows[:, :3].astype(np.int32, copy=False)
    pal = pal_rows[:, :3].astype(np.int32, copy=False)
    diff = src[:, None, :] - pal[None, :, :]
    return np.sum(diff * diff, axis=2)


__all__ = [
    "LUMA_WEIGHTS",
    "LUMA_KEY_WEIGHTS",
    "rgb_to_hex",
    "hex_to_rgb",
    "normalise_hex",
    "colour_distance",
    "luminance",
    "hex_list_to_u8_rgb_array",
    "pack_rgb_keys",
    "unpack_rgb_keys",
    "keys_to_hex",
    "luminance_keys",
    "squared_distance_matrix",
]
