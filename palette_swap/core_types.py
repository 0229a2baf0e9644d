# palette_swap/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and lightweight helpers.
"""

from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidImageDimensions

# Basic aliases

RGBTuple = Tuple[int, int, int]
RGBATuple = Tuple[int, int, int, int]
HexStr = str

U8Image = NDArray[np.uint8]  # (H, W, 4) RGBA
U8Rows = NDArray[np.uint8]  # (N, 3) or (N, 4)

Palette = List[HexStr]  # ordered, unique "#rrggbb"
ColourMapping = Dict[HexStr, HexStr]  # source "#rrggbb" -> target "#rrggbb"
ColourLike = Union[HexStr, Sequence[int]]

CHANNELS = 4

# Value objects


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    Decoded RGBA image: a contiguous uint8 array of shape (height, width, 4).

    Width and height are always positive; the flat interleaved length is
    width * height * 4.
    """

    pixels: U8Image

    def __post_init__(self) -> None:
        arr = self.pixels
        if not isinstance(arr, np.ndarray) or arr.dtype != np.uint8:
            raise TypeError("expected uint8 ndarray")
        if arr.ndim != 3 or arr.shape[-1] != CHANNELS:
            raise InvalidImageDimensions(
                f"expected (H, W, 4) RGBA array, got shape {arr.shape}"
            )
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InvalidImageDimensions(
                f"invalid image dimensions {arr.shape[1]}x{arr.shape[0]}"
            )
        if not arr.flags["C_CONTIGUOUS"]:
            object.__setattr__(self, "pixels", np.ascontiguousarray(arr))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def flat(self) -> U8Rows:
        """(width * height, 4) view in raster order."""
        return self.pixels.reshape(-1, CHANNELS)

    def to_bytes(self) -> bytes:
        """Flat interleaved RGBA samples."""
        return self.pixels.tobytes()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy())

    @classmethod
    def from_bytes(
        cls, data: Union[bytes, bytearray, Sequence[int]], width: int, height: int
    ) -> "PixelBuffer":
        """
        Build a buffer from flat interleaved RGBA samples.
        Raises InvalidImageDimensions when width/height are not positive or
        the sample count is not width * height * 4.
        """
        if width <= 0 or height <= 0:
            raise InvalidImageDimensions(f"invalid image dimensions {width}x{height}")
        if isinstance(data, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(bytes(data), dtype=np.uint8)
        else:
            flat = np.asarray(data, dtype=np.uint8).reshape(-1)
        expected = width * height * CHANNELS
        if flat.size != expected:
            raise InvalidImageDimensions(
                f"buffer holds {flat.size} samples, expected {expected} for {width}x{height}"
            )
        return cls(flat.reshape(height, width, CHANNELS).copy())

    @classmethod
    def from_pixels(
        cls, rows: Sequence[Sequence[RGBATuple]]
    ) -> "PixelBuffer":
        """Build a buffer from rows of (r, g, b, a) tuples."""
        arr = np.asarray(rows, dtype=np.uint8)
        if arr.ndim != 3:
            raise InvalidImageDimensions("expected rows of RGBA tuples")
        return cls(arr)


class RemapResult(NamedTuple):
    """Output of remap(): new image, source colours (first-seen), mapping used."""

    buffer: PixelBuffer
    source_palette: Palette
    mapping: ColourMapping


# Small helpers


def clamp_channel(value: float) -> int:
    """Clamp a channel value to an int in [0, 255]."""
    v = int(value)
    return 0 if v < 0 else 255 if v > 255 else v


def coerce_to_rgb_tuple(value: Union[Sequence[int], NDArray[np.generic]]) -> RGBTuple:
    """
    Coerce a 3+ length sequence or array to an (int, int, int) RGB tuple.
    Helpful when extracting values from NumPy rows.
    """
    if isinstance(value, np.ndarray):
        if value.size < 3:
            raise ValueError("array too small for RGB")
        flat = value.reshape(-1)
        return (int(flat[0]), int(flat[1]), int(flat[2]))
    if len(value) < 3:
        raise ValueError("sequence too small for RGB")
    return (int(value[0]), int(value[1]), int(value[2]))


__all__ = [
    # aliases / types
    "RGBTuple",
    "RGBATuple",
    "HexStr",
    "U8Image",
    "U8Rows",
    "Palette",
    "ColourMapping",
    "ColourLike",
    "CHANNELS",
    # value objects
    "PixelBuffer",
    "RemapResult",
    # helpers
    "clamp_channel",
    "coerce_to_rgb_tuple",
]
