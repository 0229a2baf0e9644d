# palette_swap/session.py
from __future__ import annotations

"""
Remap editing session.

Holds what a caller needs between remap requests: the source image, the
target palette, and the mapping built on the first render. The mapping is
built once, then edited one entry at a time; it is only rebuilt when the
source image or the target palette is replaced.

  NO_MAPPING --render()--> AUTO_MAPPED --retarget()--> USER_EDITED --retarget()--> ...
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .colour_convert import normalise_hex
from .core_types import ColourMapping, HexStr, Palette, PixelBuffer, RemapResult
from .errors import NoMappingError, PaletteSwapError
from .palette_edit import dedupe_palette
from .remap import remap, set_mapping_entry


class SessionState(str, Enum):
    NO_MAPPING = "no_mapping"
    AUTO_MAPPED = "auto_mapped"
    USER_EDITED = "user_edited"


@dataclass
class RemapSession:
    source: Optional[PixelBuffer] = None
    target_palette: Palette = field(default_factory=list)
    mapping: Optional[ColourMapping] = None
    source_palette: Optional[Palette] = None
    result: Optional[PixelBuffer] = None
    state: SessionState = SessionState.NO_MAPPING
    edits: List[Tuple[HexStr, HexStr]] = field(default_factory=list)

    def set_source(self, buffer: PixelBuffer) -> None:
        """Replace the source image; the mapping is dropped."""
        self.source = buffer
        self._drop_mapping()

    def set_target_palette(self, palette: Palette) -> None:
        """Replace the target palette; the mapping is dropped."""
        self.target_palette = dedupe_palette(palette)
        self._drop_mapping()

    def use_mapping(self, mapping: ColourMapping) -> None:
        """Adopt a mapping from a previous session; render() will not rebuild it."""
        self.mapping = {normalise_hex(s): normalise_hex(t) for s, t in mapping.items()}
        self.state = SessionState.AUTO_MAPPED

    def render(self) -> RemapResult:
        """
        Remap the source onto the target palette.
        Builds the mapping on the first call only.
        """
        if self.source is None:
            raise PaletteSwapError("no source image set")
        result = remap(self.source, self.target_palette, self.mapping)
        if self.state is SessionState.NO_MAPPING:
            self.state = SessionState.AUTO_MAPPED
        self.mapping = result.mapping
        self.source_palette = result.source_palette
        self.result = result.buffer
        return result

    def retarget(self, source_colour: HexStr, target_colour: HexStr) -> RemapResult:
        """Point one source colour at a new target, then re-render."""
        if self.mapping is None:
            raise NoMappingError("render() must run before editing the mapping")
        self.mapping = set_mapping_entry(self.mapping, source_colour, target_colour)
        self.edits.append((normalise_hex(source_colour), normalise_hex(target_colour)))
        self.state = SessionState.USER_EDITED
        return self.render()

    def reset(self) -> None:
        self.source = None
        self.target_palette = []
        self._drop_mapping()

    def _drop_mapping(self) -> None:
        self.mapping = None
        self.source_palette = None
        self.result = None
        self.edits = []
        self.state = SessionState.NO_MAPPING


__all__ = ["SessionState", "RemapSession"]
