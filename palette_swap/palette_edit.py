# palette_swap/palette_edit.py
from __future__ import annotations

"""
Palette editing helpers: selection and removal of colours from an extracted
palette. All functions return new lists and never mutate their inputs.
"""

from typing import Iterable, List, Sequence

from .colour_convert import normalise_hex
from .core_types import HexStr, Palette


def dedupe_palette(colours: Iterable[HexStr]) -> Palette:
    """Canonicalise colours and drop repeats; the first occurrence wins."""
    seen = set()
    out: Palette = []
    for c in colours:
        hx = normalise_hex(c)
        if hx not in seen:
            seen.add(hx)
            out.append(hx)
    return out


def toggle_selection(selection: Sequence[HexStr], colour: HexStr) -> List[HexStr]:
    """Add colour to the selection, or remove it if already selected."""
    if colour in selection:
        return [c for c in selection if c != colour]
    return [*selection, colour]


def select_range(
    palette: Sequence[HexStr],
    selection: Sequence[HexStr],
    from_colour: HexStr,
    to_colour: HexStr,
) -> List[HexStr]:
    """
    Union the inclusive palette slice between two colours into the selection.
    Either endpoint missing from the palette leaves the selection unchanged.
    """
    if from_colour not in palette or to_colour not in palette:
        return list(selection)
    i = palette.index(from_colour)
    j = palette.index(to_colour)
    lo, hi = min(i, j), max(i, j)
    out = list(selection)
    for c in palette[lo : hi + 1]:
        if c not in out:
            out.append(c)
    return out


def remove_colours(palette: Sequence[HexStr], selection: Iterable[HexStr]) -> Palette:
    """Palette without the selected colours, order preserved."""
    drop = set(selection)
    return [c for c in palette if c not in drop]


__all__ = ["dedupe_palette", "toggle_selection", "select_range", "remove_colours"]
