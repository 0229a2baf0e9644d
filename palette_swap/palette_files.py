# palette_swap/palette_files.py
from __future__ import annotations

"""
Palette file readers and writers.

Formats:
  gpl  : GIMP palette text. 'R G B<TAB>name' rows after a small header.
  kpl  : Krita palette. ZIP holding 'mimetype' (stored, first) and
         'colorset.xml' with <ColorSetEntry><sRGB r g b/></ColorSetEntry>
         entries whose channels are fractions of 1.0.
  json : {"name", "description", "colors": [{"name", "hex", "rgb": {r,g,b}}]}

Readers return a deduplicated Palette and raise PaletteFileFormatError when
the content cannot be parsed or holds no colours.
"""

import io
import json
import math
import zipfile
import zlib
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Union

from .colour_convert import hex_to_rgb, normalise_hex, rgb_to_hex
from .constants import (
    DEFAULT_PALETTE_NAME,
    EXPORT_DESCRIPTION,
    GPL_COLUMNS,
    GPL_HEADER,
    KPL_COLORSET_ENTRY,
    KPL_COLUMNS,
    KPL_MIMETYPE,
    KPL_VERSION,
    PALETTE_FORMATS,
)
from .core_types import HexStr, Palette
from .errors import InvalidColorFormat, PaletteFileFormatError
from .palette_edit import dedupe_palette

_GPL_SKIP_PREFIXES = ("#", "GIMP", "Name:", "Columns:")


def _finish(colours: Iterable[HexStr], kind: str) -> Palette:
    palette = dedupe_palette(colours)
    if not palette:
        raise PaletteFileFormatError(f"no colours found in {kind} palette")
    return palette


def fraction_to_channel(value: float) -> int:
    """0.0-1.0 fraction to a 0-255 channel, rounding half up."""
    x = float(value)
    if not math.isfinite(x):
        raise ValueError(f"channel value {value!r} is not finite")
    v = int(math.floor(x * 255.0 + 0.5))
    return 0 if v < 0 else 255 if v > 255 else v


# GPL


def parse_gpl(text: str) -> Palette:
    colours: List[HexStr] = []
    for line in text.splitlines():
        s = line.strip()
        if not s or s.startswith(_GPL_SKIP_PREFIXES):
            continue
        parts = s.split()
        if len(parts) < 3:
            continue
        try:
            r, g, b = int(parts[0]), int(parts[1]), int(parts[2])
        except ValueError:
            continue
        colours.append(rgb_to_hex(r, g, b))
    return _finish(colours, "gpl")


def export_gpl(colours: Sequence[HexStr], name: str = DEFAULT_PALETTE_NAME) -> str:
    name = " ".join(name.splitlines())
    lines = [GPL_HEADER, f"Name: {name}", f"Columns: {GPL_COLUMNS}", "#"]
    for hx in colours:
        r, g, b = hex_to_rgb(hx)
        lines.append(f"{r:3d} {g:3d} {b:3d}\t{normalise_hex(hx)}")
    return "\n".join(lines) + "\n"


# KPL


def _kpl_colours(root: ET.Element) -> List[HexStr]:
    colours: List[HexStr] = []
    for el in root.iter():
        if el.tag == "sRGB":
            try:
                r, g, b = (fraction_to_channel(el.attrib[k]) for k in ("r", "g", "b"))
            except (KeyError, ValueError) as e:
                raise PaletteFileFormatError(f"bad sRGB entry: {e}") from e
            colours.append(rgb_to_hex(r, g, b))
        elif "sRGB" in el.attrib:
            # Older writers put the channels in one comma-separated attribute.
            try:
                r, g, b = (fraction_to_channel(v) for v in el.attrib["sRGB"].split(","))
            except ValueError as e:
                raise PaletteFileFormatError(f"bad sRGB attribute: {e}") from e
            colours.append(rgb_to_hex(r, g, b))
    return colours


def parse_kpl(data: bytes) -> Palette:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            xml_bytes = zf.read(KPL_COLORSET_ENTRY)
    except KeyError as e:
        raise PaletteFileFormatError("no colorset.xml found in KPL file") from e
    except (zipfile.BadZipFile, zlib.error, EOFError, OSError, ValueError) as e:
        raise PaletteFileFormatError(f"invalid KPL archive: {e}") from e
    try:
        root = ET.fromstring(xml_bytes)
    except ET.ParseError as e:
        raise PaletteFileFormatError(f"invalid colorset.xml: {e}") from e
    return _finish(_kpl_colours(root), "kpl")


def _colorset_xml(colours: Sequence[HexStr], name: str) -> bytes:
    rows = math.ceil(len(colours) / KPL_COLUMNS)
    root = ET.Element(
        "Colorset",
        {
            "version": KPL_VERSION,
            "name": name,
            "comment": EXPORT_DESCRIPTION,
            "columns": str(KPL_COLUMNS),
            "rows": str(rows),
        },
    )
    for i, hx in enumerate(colours):
        r, g, b = hex_to_rgb(hx)
        hx = normalise_hex(hx)
        entry = ET.SubElement(
            root,
            "ColorSetEntry",
            {"name": hx, "id": f"color-{i}", "spot": "false", "bitdepth": "U8"},
        )
        ET.SubElement(
            entry,
            "sRGB",
            {"r": f"{r / 255:.6f}", "g": f"{g / 255:.6f}", "b": f"{b / 255:.6f}"},
        )
        ET.SubElement(
            entry,
            "Position",
            {"row": str(i // KPL_COLUMNS), "column": str(i % KPL_COLUMNS)},
        )
    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return ('<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n").encode("utf-8")


def export_kpl(colours: Sequence[HexStr], name: str = DEFAULT_PALETTE_NAME) -> bytes:
    """KPL archive bytes. 'mimetype' is written first and uncompressed."""
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w") as zf:
        mime = zipfile.ZipInfo("mimetype", date_time=(1980, 1, 1, 0, 0, 0))
        mime.compress_type = zipfile.ZIP_STORED
        zf.writestr(mime, KPL_MIMETYPE)
        zf.writestr(
            KPL_COLORSET_ENTRY,
            _colorset_xml(colours, name),
            compress_type=zipfile.ZIP_DEFLATED,
            compresslevel=9,
        )
    return out.getvalue()


# JSON


def _json_item_to_hex(item: Any) -> HexStr:
    if isinstance(item, str):
        return normalise_hex(item)
    if isinstance(item, dict):
        if "hex" in item:
            return normalise_hex(item["hex"])
        rgb = item.get("rgb")
        if isinstance(rgb, dict):
            return rgb_to_hex(int(rgb["r"]), int(rgb["g"]), int(rgb["b"]))
    raise PaletteFileFormatError(f"unrecognised colour entry {item!r}")


def parse_json_palette(text: str) -> Palette:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PaletteFileFormatError(f"invalid JSON: {e}") from e

    items: Optional[list] = None
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        for key in ("palette", "colors"):
            if isinstance(data.get(key), list):
                items = data[key]
                break
    if items is None:
        raise PaletteFileFormatError("JSON palette has no colour list")

    try:
        colours = [_json_item_to_hex(item) for item in items]
    except PaletteFileFormatError:
        raise
    except (InvalidColorFormat, KeyError, TypeError, ValueError, OverflowError) as e:
        raise PaletteFileFormatError(f"bad colour entry: {e}") from e
    return _finish(colours, "json")


def export_json(colours: Sequence[HexStr], name: str = DEFAULT_PALETTE_NAME) -> str:
    entries = []
    for hx in colours:
        r, g, b = hex_to_rgb(hx)
        hx = normalise_hex(hx)
        entries.append({"name": hx, "hex": hx, "rgb": {"r": r, "g": g, "b": b}})
    doc = {"name": name, "description": EXPORT_DESCRIPTION, "colors": entries}
    return json.dumps(doc, indent=2)


# Dispatch


def _as_text(content: Union[str, bytes]) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise PaletteFileFormatError(f"palette file is not UTF-8 text: {e}") from e


def parse_palette_file(content: Union[str, bytes], kind: str) -> Palette:
    """Parse palette content of the given kind ('gpl', 'kpl', 'json')."""
    kind = kind.lower()
    if kind == "gpl":
        return parse_gpl(_as_text(content))
    if kind == "json":
        return parse_json_palette(_as_text(content))
    if kind == "kpl":
        if isinstance(content, str):
            raise PaletteFileFormatError("KPL content must be bytes")
        return parse_kpl(content)
    raise PaletteFileFormatError(f"unsupported palette format {kind!r}")


def export_palette(
    colours: Sequence[HexStr], kind: str, name: str = DEFAULT_PALETTE_NAME
) -> Union[str, bytes]:
    """Serialise a palette; KPL yields bytes, the others text."""
    kind = kind.lower()
    if kind == "gpl":
        return export_gpl(colours, name)
    if kind == "json":
        return export_json(colours, name)
    if kind == "kpl":
        return export_kpl(colours, name)
    raise PaletteFileFormatError(f"unsupported palette format {kind!r}")


def palette_kind_for(path: Path) -> str:
    kind = Path(path).suffix.lower().lstrip(".")
    if kind not in PALETTE_FORMATS:
        raise PaletteFileFormatError(f"unsupported palette file {Path(path).name}")
    return kind


def load_palette_file(path: Path) -> Palette:
    path = Path(path)
    return parse_palette_file(path.read_bytes(), palette_kind_for(path))


def save_palette_file(
    path: Path, colours: Sequence[HexStr], name: Optional[str] = None
) -> Path:
    path = Path(path)
    content = export_palette(colours, palette_kind_for(path), name or path.stem)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


__all__ = [
    "fraction_to_channel",
    "parse_gpl",
    "export_gpl",
    "parse_kpl",
    "export_kpl",
    "parse_json_palette",
    "export_json",
    "parse_palette_file",
    "export_palette",
    "palette_kind_for",
    "load_palette_file",
    "save_palette_file",
]
