# palette_swap/constants.py
"""
Tunables and fixed values shared across the project.

- Request limits (MAX_IMAGE_BYTES)
- Palette file layout (GPL_*, KPL_*)
- Export defaults and CLI file naming
"""
from __future__ import annotations

from typing import Dict, FrozenSet

# =========================
# Request boundary
# =========================
MAX_IMAGE_BYTES: int = 500 * 1024  # decoded image payload ceiling

# =========================
# Palette files
# =========================
DEFAULT_PALETTE_NAME: str = "Palette"
EXPORT_DESCRIPTION: str = "Exported from Pixel Palette Exporter"

GPL_HEADER: str = "GIMP Palette"
GPL_COLUMNS: int = 8

KPL_MIMETYPE: str = "application/x-krita-palette"
KPL_COLORSET_ENTRY: str = "colorset.xml"
KPL_VERSION: str = "2.0"
KPL_COLUMNS: int = 8

PALETTE_FORMATS: FrozenSet[str] = frozenset({"gpl", "kpl", "json"})

EXPORT_MIME_TYPES: Dict[str, str] = {
    "gpl": "text/plain",
    "kpl": "application/x-krita-palette",
    "json": "application/json",
}

# =========================
# CLI
# =========================
IMAGE_SUFFIXES: FrozenSet[str] = frozenset(
    {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp"}
)
PALETTE_SUFFIXES: FrozenSet[str] = frozenset({".gpl", ".kpl", ".json"})
OUTPUT_SUFFIX: str = "_remap"

__all__ = [
    "MAX_IMAGE_BYTES",
    "DEFAULT_PALETTE_NAME",
    "EXPORT_DESCRIPTION",
    "GPL_HEADER",
    "GPL_COLUMNS",
    "KPL_MIMETYPE",
    "KPL_COLORSET_ENTRY",
    "KPL_VERSION",
    "KPL_COLUMNS",
    "PALETTE_FORMATS",
    "EXPORT_MIME_TYPES",
    "IMAGE_SUFFIXES",
    "PALETTE_SUFFIXES",
    "OUTPUT_SUFFIX",
]
