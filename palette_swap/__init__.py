# palette_swap/__init__.py
"""
palette_swap package.

Purpose:
  Extract colour palettes from pixel art and remap images onto a target
  palette. See palette_swap_cli.py for the CLI.

Public API:
  extract_palette : unique visible colours, dark to light.
  remap           : repaint an image onto a target palette (nearest RGB).
  RemapSession    : mapping built once, then edited one entry at a time.
  colour_convert  : hex <-> RGB, distance, luminance.
  core_types      : PixelBuffer, RemapResult and shared aliases.
  image_io        : Pillow decode/encode, base64 data URLs.
  palette_files   : GPL / KPL / JSON palette readers and writers.
  palette_edit    : selection and removal helpers.
  api             : JSON request handlers.
  utils           : formatting and logging helpers.

Quick start:
  from palette_swap import decode_image, extract_palette, remap
  buf = decode_image(png_bytes)
  colours = extract_palette(buf)
  result = remap(buf, ["#000000", "#ffffff"])
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import errors
from . import core_types
from . import colour_convert
from . import image_io
from . import extract
from . import remap as remap_module
from . import palette_edit
from . import palette_files
from . import session
from . import utils
from . import api

from .core_types import PixelBuffer, RemapResult  # noqa: E402,F401
from .errors import (  # noqa: E402,F401
    PaletteSwapError,
    ImageDecodeError,
    InvalidImageDimensions,
    InvalidColorFormat,
    EmptyTargetPalette,
    PaletteFileFormatError,
    NoMappingError,
)
from .colour_convert import rgb_to_hex, hex_to_rgb, colour_distance, luminance  # noqa: E402,F401
from .image_io import decode_image, encode_png  # noqa: E402,F401
from .extract import extract_palette, unique_visible_colours  # noqa: E402,F401
from .remap import remap, build_colour_mapping, apply_colour_mapping  # noqa: E402,F401
from .session import RemapSession, SessionState  # noqa: E402,F401

__all__ = [
    "__version__",
    # namespaces
    "errors",
    "core_types",
    "colour_convert",
    "image_io",
    "extract",
    "remap_module",
    "palette_edit",
    "palette_files",
    "session",
    "utils",
    "api",
    # types
    "PixelBuffer",
    "RemapResult",
    # errors
    "PaletteSwapError",
    "ImageDecodeError",
    "InvalidImageDimensions",
    "InvalidColorFormat",
    "EmptyTargetPalette",
    "PaletteFileFormatError",
    "NoMappingError",
    # primitives
    "rgb_to_hex",
    "hex_to_rgb",
    "colour_distance",
    "luminance",
    # engine
    "decode_image",
    "encode_png",
    "extract_palette",
    "unique_visible_colours",
    "remap",
    "build_colour_mapping",
    "apply_colour_mapping",
    "RemapSession",
    "SessionState",
]
