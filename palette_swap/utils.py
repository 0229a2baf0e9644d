# palette_swap/utils.py
from __future__ import annotations

"""
Shared utilities for palette_swap.

Duration formatting, colour usage reporting for CLI output, and tidy logging.
The engine modules (extract, remap) never log; the CLI and request boundary do.
"""

import io
import sys
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Mapping, TextIO, Tuple

from .core_types import ColourMapping, HexStr, PixelBuffer
from .extract import visible_colour_counts


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


def format_total_duration_compact(seconds: float) -> str:
    """Compact total duration: 'Mm Ss', 'Ss.s', or 'ms'."""
    if seconds >= 60.0:
        minutes = int(seconds // 60)
        rem = int(round(seconds - 60 * minutes))
        return f"{minutes}m {rem}s"
    if seconds >= 1.0:
        return f"{seconds:.1f}s"
    return f"{seconds * 1000.0:.1f}ms"


# Colour reports


def colour_usage_report(buffer: PixelBuffer) -> List[Tuple[HexStr, int]]:
    """(hex, count) for visible pixels, most used first."""
    return visible_colour_counts(buffer)


def mapping_changes(mapping: Mapping[HexStr, HexStr]) -> ColourMapping:
    """Entries whose target differs from the source."""
    return {s: t for s, t in mapping.items() if s.lower() != t.lower()}


#  CLI / progress logging


def enable_line_buffered_stdout() -> None:
    """
    Enable line-buffered stdout when supported.
    Helps ordered output in terminals that expose .reconfigure().
    """
    reconfig = getattr(sys.stdout, "reconfigure", None)
    if callable(reconfig):
        try:
            reconfig(line_buffering=True, write_through=True)
        except (OSError, ValueError):
            pass


# Pretty logging


def format_bool_on_off(value: Any) -> str:
    """Pretty boolean: 'on'/'off' for bools; str(value) otherwise."""
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def format_number_compact(value: Any) -> str:
    """Pretty number: 1,234 style for ints; compact for floats; passthrough otherwise."""
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".")
    return str(value)


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """
    Format (name, value) pairs as 'Name: value' blocks separated by sep.
    Uses format_bool_on_off / format_number_compact for readability.
    """
    out: List[str] = []
    for name, value in pairs:
        display = (
            format_bool_on_off(value)
            if isinstance(value, bool)
            else format_number_compact(value)
        )
        out.append(f"{name}{eq}{display}")
    return sep.join(out)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool
) -> None:
    """
    Emit a single human-readable config line, e.g.:
      [run] CPU cores: 8  Jobs: 2  Target colours: 16
    Routes to debug_log() when debug=True, else to log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Section banner."""
    print(f"\n=== {title} ===", file=_stdout(), flush=True)


def log(message: str) -> None:
    """Plain log line."""
    print(message, file=_stdout(), flush=True)


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", file=_stdout(), flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", file=_stdout(), flush=True)


def error(message: str) -> None:
    """Error log line to stderr."""
    print(f"[error] {message}", file=sys.stderr, flush=True)


# Per-thread capture


_capture = threading.local()


def _stdout() -> TextIO:
    return getattr(_capture, "stream", None) or sys.stdout


@contextmanager
def captured_output() -> Iterator[io.StringIO]:
    """
    Route this thread's log lines into a buffer.

    Worker threads each capture their own block; sys.stdout is left alone,
    so concurrent captures never see each other's lines.
    """
    buf = io.StringIO()
    previous = getattr(_capture, "stream", None)
    _capture.stream = buf
    try:
        yield buf
    finally:
        _capture.stream = previous


__all__ = [
    "format_seconds_compact",
    "format_total_duration_compact",
    "colour_usage_report",
    "mapping_changes",
    "enable_line_buffered_stdout",
    "format_bool_on_off",
    "format_number_compact",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "log",
    "debug_log",
    "warn",
    "error",
    "captured_output",
]
