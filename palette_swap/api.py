# palette_swap/api.py
from __future__ import annotations

"""
Request boundary.

Each handler takes a decoded JSON request body and returns (status, body),
ready for whatever HTTP layer hosts it:

  extract_palette_request  {"imageData"}                 -> {"colors"}
  parse_palette_request    {"content", "type"}            -> {"palette"}
  replace_colors_request   {"imageData", "targetPalette",
                            "colorMapping"?}              -> {"imageData",
                                                              "sourcePalette",
                                                              "colorMapping"}
  export_palette_request   {"colors", "format", "name"?}  -> {"filename",
                                                              "mimeType",
                                                              "content",
                                                              "encoding"}

Images travel as base64, optionally prefixed 'data:image/<type>;base64,'.
Result images are PNG data URLs. KPL palette content travels as base64.

Status codes:
  400  missing or ill-typed fields, or a structural error in the input
  413  decoded image larger than MAX_IMAGE_BYTES
  500  anything unexpected (logged; generic message returned)
"""

import base64
import binascii
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .constants import DEFAULT_PALETTE_NAME, EXPORT_MIME_TYPES, MAX_IMAGE_BYTES
from .core_types import ColourMapping
from .errors import PaletteFileFormatError, PaletteSwapError
from .extract import extract_palette
from .image_io import decode_base64_bytes, decode_image, to_png_data_url
from .palette_files import export_palette, parse_palette_file
from .remap import remap
from .utils import error

Response = Tuple[int, Dict[str, Any]]


class RequestError(Exception):
    """Malformed request body; carries the status code to return."""

    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.status = status


def _handle(
    failure_message: str, handler: Callable[[Mapping[str, Any]], Dict[str, Any]]
) -> Callable[[Any], Response]:
    def run(body: Any) -> Response:
        try:
            if not isinstance(body, Mapping):
                raise RequestError("request body must be a JSON object")
            return 200, handler(body)
        except RequestError as e:
            return e.status, {"error": str(e)}
        except PaletteSwapError as e:
            return 400, {"error": str(e)}
        except Exception as e:  # boundary: report, never propagate
            error(f"{failure_message}: {e!r}")
            return 500, {"error": failure_message}

    run.__name__ = handler.__name__
    run.__doc__ = handler.__doc__
    return run


def _require_str(body: Mapping[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value:
        raise RequestError(f"missing or invalid '{key}'")
    return value


def _image_bytes(body: Mapping[str, Any]) -> bytes:
    data = decode_base64_bytes(_require_str(body, "imageData"))
    if len(data) > MAX_IMAGE_BYTES:
        raise RequestError(
            f"Image is too large ({len(data) / 1024:.1f} KB). "
            f"Maximum size is {MAX_IMAGE_BYTES // 1024} KB.",
            status=413,
        )
    return data


def _optional_mapping(body: Mapping[str, Any]) -> Optional[ColourMapping]:
    raw = body.get("colorMapping")
    if raw is None:
        return None
    if not isinstance(raw, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
    ):
        raise RequestError("'colorMapping' must map colour strings to colour strings")
    return dict(raw)


def _extract_palette(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Unique visible colours of an image, dark to light."""
    colours = extract_palette(decode_image(_image_bytes(body)))
    return {"colors": colours}


def _parse_palette(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Colours from GPL / JSON text or base64 KPL content."""
    content = _require_str(body, "content")
    kind = _require_str(body, "type").lower()
    if kind == "kpl":
        try:
            payload: Any = base64.b64decode(content, validate=False)
        except (binascii.Error, ValueError) as e:
            raise PaletteFileFormatError(f"invalid base64 KPL content: {e}") from e
    else:
        payload = content
    return {"palette": parse_palette_file(payload, kind)}


def _replace_colors(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Remap an image onto a target palette, building the mapping if absent."""
    target = body.get("targetPalette")
    if not isinstance(target, list) or not all(isinstance(c, str) for c in target):
        raise RequestError("'targetPalette' must be a list of colour strings")
    mapping = _optional_mapping(body)
    result = remap(decode_image(_image_bytes(body)), target, mapping)
    return {
        "imageData": to_png_data_url(result.buffer),
        "sourcePalette": result.source_palette,
        "colorMapping": result.mapping,
    }


def _export_palette(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Serialise colours as GPL, KPL or JSON."""
    colours = body.get("colors")
    if not isinstance(colours, list) or not all(isinstance(c, str) for c in colours):
        raise RequestError("'colors' must be a list of colour strings")
    kind = _require_str(body, "format").lower()
    name = body.get("name") or DEFAULT_PALETTE_NAME
    if not isinstance(name, str):
        raise RequestError("'name' must be a string")
    content = export_palette(colours, kind, name)
    if isinstance(content, bytes):
        encoded, encoding = base64.b64encode(content).decode("ascii"), "base64"
    else:
        encoded, encoding = content, "utf-8"
    return {
        "filename": f"{name}.{kind}",
        "mimeType": EXPORT_MIME_TYPES[kind],
        "content": encoded,
        "encoding": encoding,
    }


extract_palette_request = _handle("Failed to extract palette", _extract_palette)
parse_palette_request = _handle("Failed to parse palette file", _parse_palette)
replace_colors_request = _handle("Failed to replace colors", _replace_colors)
export_palette_request = _handle("Failed to export palette", _export_palette)


__all__ = [
    "Response",
    "RequestError",
    "extract_palette_request",
    "parse_palette_request",
    "replace_colors_request",
    "export_palette_request",
]
