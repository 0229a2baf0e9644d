# palette_swap/remap.py
from __future__ import annotations

"""
Colour remapping onto a target palette.

  build_colour_mapping(source_palette, target_palette) -> ColourMapping
    Nearest target colour per source colour by Euclidean RGB distance.
    The first target (in palette order) reaching the minimum distance wins;
    later equal-distance targets never displace it.

  apply_colour_mapping(buffer, mapping) -> PixelBuffer
    alpha == 0        -> (0, 0, 0, 0)
    colour in mapping -> mapped RGB, original alpha
    otherwise         -> pixel unchanged

  remap(buffer, target_palette, mapping=None) -> RemapResult
    Builds the mapping only when none is supplied; a supplied mapping is used
    as-is, without checking its targets against target_palette.
"""

from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .colour_convert import (
    hex_list_to_u8_rgb_array,
    hex_to_rgb,
    keys_to_hex,
    normalise_hex,
    pack_rgb_keys,
    squared_distance_matrix,
)
from .core_types import (
    ColourMapping,
    HexStr,
    Palette,
    PixelBuffer,
    RemapResult,
    RGBTuple,
)
from .errors import EmptyTargetPalette
from .extract import unique_visible_colours
from .image_io import decode_image, encode_png

# Upper bound on distance-matrix cells held at once.
_MAX_MATRIX_CELLS = 4_000_000


def _target_rows(target_palette: Sequence[HexStr]) -> np.ndarray:
    if len(target_palette) == 0:
        raise EmptyTargetPalette("target palette is empty")
    return hex_list_to_u8_rgb_array(target_palette)


def nearest_palette_indices(src_rows: np.ndarray, pal_rows: np.ndarray) -> np.ndarray:
    """
    For each (N,3) source row, the index of the nearest palette row.
    np.argmin returns the first minimum, which gives first-wins tie-breaking.
    """
    out = np.empty((src_rows.shape[0],), dtype=np.int64)
    chunk = max(1, _MAX_MATRIX_CELLS // max(1, pal_rows.shape[0]))
    for i in range(0, src_rows.shape[0], chunk):
        dist2 = squared_distance_matrix(src_rows[i : i + chunk], pal_rows)
        out[i : i + chunk] = np.argmin(dist2, axis=1)
    return out


def nearest_colour(colour: HexStr, target_palette: Sequence[HexStr]) -> HexStr:
    """Nearest target colour to a single colour."""
    pal_rows = _target_rows(target_palette)
    src_rows = np.array([hex_to_rgb(colour)], dtype=np.uint8)
    idx = int(nearest_palette_indices(src_rows, pal_rows)[0])
    return keys_to_hex(pack_rgb_keys(pal_rows[idx : idx + 1]))[0]


def build_colour_mapping(
    source_palette: Sequence[HexStr], target_palette: Sequence[HexStr]
) -> ColourMapping:
    """Map every source colour to its nearest target colour."""
    pal_rows = _target_rows(target_palette)
    if len(source_palette) == 0:
        return {}
    src_rows = hex_list_to_u8_rgb_array(source_palette)
    idx = nearest_palette_indices(src_rows, pal_rows)
    targets = keys_to_hex(pack_rgb_keys(pal_rows[idx]))
    return {normalise_hex(s): t for s, t in zip(source_palette, targets)}


def _mapping_lookup(mapping: Mapping[HexStr, HexStr]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sorted packed source keys and their target RGB rows.
    When keys differ only in case, the lowercase key wins.
    """
    by_key: Dict[int, RGBTuple] = {}
    items = sorted(
        mapping.items(), key=lambda kv: isinstance(kv[0], str) and kv[0] == kv[0].lower()
    )
    for src_hex, dst_hex in items:
        r, g, b = hex_to_rgb(src_hex)
        by_key[(r << 16) | (g << 8) | b] = hex_to_rgb(dst_hex)
    keys = np.array(sorted(by_key), dtype=np.uint32)
    dst = np.array(
        [by_key[int(k)] for k in keys.tolist()], dtype=np.uint8
    ).reshape(-1, 3)
    return keys, dst


def apply_colour_mapping(
    buffer: PixelBuffer, mapping: Mapping[HexStr, HexStr]
) -> PixelBuffer:
    """Rewrite every pixel through the mapping, preserving alpha."""
    flat = buffer.flat
    out = flat.copy()

    transparent = flat[:, 3] == 0
    out[transparent] = 0

    keys, dst = _mapping_lookup(mapping)
    visible_idx = np.nonzero(~transparent)[0]
    if keys.size and visible_idx.size:
        pix_keys = pack_rgb_keys(flat[visible_idx])
        pos = np.searchsorted(keys, pix_keys)
        pos = np.minimum(pos, keys.size - 1)
        hit = keys[pos] == pix_keys
        out[visible_idx[hit], :3] = dst[pos[hit]]

    return PixelBuffer(out.reshape(buffer.pixels.shape))


def remap(
    buffer: PixelBuffer,
    target_palette: Sequence[HexStr],
    mapping: Optional[ColourMapping] = None,
) -> RemapResult:
    """
    Repaint buffer onto target_palette.

    Returns the new buffer, the source colours in first-seen order, and the
    mapping used (the supplied one, or the freshly built nearest-colour map).
    """
    _target_rows(target_palette)
    source_palette: Palette = unique_visible_colours(buffer)

    if mapping is None:
        mapping = build_colour_mapping(source_palette, target_palette)

    return RemapResult(apply_colour_mapping(buffer, mapping), source_palette, mapping)


def set_mapping_entry(
    mapping: Mapping[HexStr, HexStr], source: HexStr, target: HexStr
) -> ColourMapping:
    """Copy of mapping with one source colour re-targeted."""
    updated = dict(mapping)
    updated[normalise_hex(source)] = normalise_hex(target)
    return updated


def remap_bytes(
    data: bytes,
    target_palette: Sequence[HexStr],
    mapping: Optional[ColourMapping] = None,
) -> Tuple[bytes, Palette, ColourMapping]:
    """Decode image bytes, remap, and return (png_bytes, source_palette, mapping)."""
    result = remap(decode_image(data), target_palette, mapping)
    return encode_png(result.buffer), result.source_palette, result.mapping


__all__ = [
    "nearest_palette_indices",
    "nearest_colour",
    "build_colour_mapping",
    "apply_colour_mapping",
    "remap",
    "set_mapping_entry",
    "remap_bytes",
]
