# palette_swap/errors.py
"""
Exception types raised by palette_swap.

Every error derives from PaletteSwapError, itself a ValueError, so callers that
only care about "bad input" can catch ValueError.
"""

from __future__ import annotations


class PaletteSwapError(ValueError):
    """Base class for all structural input errors."""


class ImageDecodeError(PaletteSwapError):
    """Image bytes could not be decoded (unknown format, truncated, corrupt)."""


class InvalidImageDimensions(PaletteSwapError):
    """Image has zero width or height, or the buffer length does not match."""


class InvalidColorFormat(PaletteSwapError):
    """Colour string is not '#rrggbb'."""


class EmptyTargetPalette(PaletteSwapError):
    """Remap requested with no target colours."""


class PaletteFileFormatError(PaletteSwapError):
    """GPL/KPL/JSON palette content could not be parsed or held no colours."""


class NoMappingError(PaletteSwapError):
    """A mapping edit was requested before any mapping exists."""


__all__ = [
    "PaletteSwapError",
    "ImageDecodeError",
    "InvalidImageDimensions",
    "InvalidColorFormat",
    "EmptyTargetPalette",
    "PaletteFileFormatError",
    "NoMappingError",
]
