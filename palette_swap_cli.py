#!/usr/bin/env python3
"""
palette_swap_cli.py
Extract palettes from pixel art, convert palette files, and remap images onto
a target palette.

Usage:
  python palette_swap_cli.py extract IMAGE [--format gpl|kpl|json|hex] [--name N] [--out PATH]
  python palette_swap_cli.py remap SRC PALETTE [--outdir DIR] [--mapping-in JSON]
                                   [--mapping-out JSON] [--set SRC=DST ...] [--jobs N] [--debug]
  python palette_swap_cli.py convert PALETTE OUT

Remap:
  SRC may be an image or a folder of images. PALETTE may be a GPL/KPL/JSON
  palette file or an image, whose extracted palette is used as the target.
  Each source colour maps to its nearest target colour (RGB distance) unless
  a mapping file is given; --set re-targets single colours afterwards.
  Fully transparent pixels are written as (0,0,0,0). Alpha is preserved.

Output:
  PNG. Without --outdir, writes <stem>_remap.png next to the input.

Notes:
  Folder mode processes files in parallel (--jobs) and prints each file's log
  as one block, in name order.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple

from palette_swap.constants import IMAGE_SUFFIXES, OUTPUT_SUFFIX, PALETTE_SUFFIXES
from palette_swap.core_types import ColourMapping, Palette
from palette_swap.errors import PaletteSwapError
from palette_swap.extract import extract_palette
from palette_swap.image_io import load_image, save_png
from palette_swap.palette_files import (
    export_palette,
    load_palette_file,
    save_palette_file,
)
from palette_swap.session import RemapSession
from palette_swap.utils import (
    # formatting
    format_seconds_compact,
    format_total_duration_compact,
    # reports
    colour_usage_report,
    mapping_changes,
    # pretty logging
    print_banner,
    log,
    debug_log,
    warn,
    error,
    print_config_line,
    key_value_pairs_to_string,
    enable_line_buffered_stdout,
    captured_output,
)

# CLI args & small helpers


def _parse_edit(text: str) -> Tuple[str, str]:
    """'#aabbcc=#ddeeff' -> ('#aabbcc', '#ddeeff')."""
    src, sep, dst = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected SRC=DST, got {text!r}")
    return src.strip(), dst.strip()


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with `command` in {"extract", "remap", "convert"}
      plus that command's options.
    """
    parser = argparse.ArgumentParser(
        prog="palette-swap",
        description="Extract, convert and remap pixel-art colour palettes.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_ext = sub.add_parser("extract", help="Extract an image's palette")
    p_ext.add_argument("image", type=Path, help="Input image")
    p_ext.add_argument(
        "--format",
        choices=["gpl", "kpl", "json", "hex"],
        default="hex",
        help='Output format. "hex" prints one colour per line.',
    )
    p_ext.add_argument("--name", default=None, help="Palette name (default: file stem)")
    p_ext.add_argument("--out", type=Path, default=None, help="Output file (optional)")

    p_map = sub.add_parser("remap", help="Remap image(s) onto a target palette")
    p_map.add_argument("src", type=Path, help="Input image or folder")
    p_map.add_argument("palette", type=Path, help="Palette file or image")
    p_map.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    p_map.add_argument(
        "--mapping-in", type=Path, default=None, help="JSON mapping to use as-is"
    )
    p_map.add_argument(
        "--mapping-out",
        type=Path,
        default=None,
        help="Write the mapping used as JSON (single file only)",
    )
    p_map.add_argument(
        "--set",
        dest="edits",
        action="append",
        type=_parse_edit,
        default=[],
        metavar="SRC=DST",
        help="Re-target one source colour; repeatable",
    )
    p_map.add_argument("--jobs", type=int, default=2, help="Files processed in parallel")
    p_map.add_argument("--debug", action="store_true", help="Verbose mapping details")

    p_conv = sub.add_parser("convert", help="Convert a palette file by suffix")
    p_conv.add_argument("src", type=Path, help="GPL/KPL/JSON palette")
    p_conv.add_argument("dst", type=Path, help="Output .gpl/.kpl/.json")

    return parser.parse_args(argv)


def _load_target_palette(path: Path) -> Palette:
    """Palette file by suffix, otherwise the extracted palette of an image."""
    if path.suffix.lower() in PALETTE_SUFFIXES:
        return load_palette_file(path)
    return extract_palette(load_image(path))


def _load_mapping(path: Path) -> ColourMapping:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PaletteSwapError(f"invalid mapping file {path.name}: {e}") from e
    if not isinstance(raw, dict):
        raise PaletteSwapError(f"mapping file {path.name} must hold a JSON object")
    return {str(k): str(v) for k, v in raw.items()}


def _output_path(src_path: Path, outdir: Optional[Path]) -> Path:
    name = f"{src_path.stem}{OUTPUT_SUFFIX}.png"
    return (outdir / name) if outdir else src_path.with_name(name)


# Per-file processing


def _process_single_image(
    src_path: Path,
    out_path: Path,
    target: Palette,
    mapping_in: Optional[ColourMapping],
    edits: List[Tuple[str, str]],
    mapping_out: Optional[Path],
    debug: bool,
) -> None:
    """
    Process a single image end-to-end:
      load -> map (auto or supplied) -> apply edits -> save -> report.
    """
    t_start = time.perf_counter()
    print_banner(src_path.name)

    session = RemapSession()
    session.set_target_palette(target)
    session.set_source(load_image(src_path))
    if mapping_in is not None:
        session.use_mapping(mapping_in)
    t_loaded = time.perf_counter()

    if debug:
        buf = session.source
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Loaded", f"{buf.width}x{buf.height}"),
                    ("Alpha=0", int((buf.flat[:, 3] == 0).sum())),
                    ("Mapping", "supplied" if mapping_in is not None else "auto"),
                ]
            )
        )

    result = session.render()
    for src_hex, dst_hex in edits:
        result = session.retarget(src_hex, dst_hex)
    t_mapped = time.perf_counter()

    written = save_png(out_path, result.buffer)
    if mapping_out is not None:
        mapping_out.write_text(json.dumps(result.mapping, indent=2), encoding="utf-8")
    t_saved = time.perf_counter()

    log(
        f"Wrote {written.name} | size={result.buffer.width}x{result.buffer.height} "
        f"| source_colours={len(result.source_palette)} | target_colours={len(target)}"
    )
    if debug:
        debug_log(f"state: {session.state.value}  edits: {len(session.edits)}")
        unmapped = [c for c in result.source_palette if c not in result.mapping]
        if unmapped:
            debug_log(f"unmapped colours kept as-is: {len(unmapped)}")
        for src_hex, dst_hex in mapping_changes(result.mapping).items():
            debug_log(f"  {src_hex} -> {dst_hex}")
    log("Colours used:")
    for hex_code, count in colour_usage_report(result.buffer):
        log(f"  {hex_code}: {count:,}")

    if debug:
        debug_log(
            f"Total {format_total_duration_compact(t_saved - t_start)}  "
            f"(load={format_seconds_compact(t_loaded - t_start)}, "
            f"map={format_seconds_compact(t_mapped - t_loaded)}, "
            f"save={format_seconds_compact(t_saved - t_mapped)})"
        )
    else:
        log(f"Total time {format_total_duration_compact(t_saved - t_start)}")


def _process_one_captured(
    path: Path,
    outdir: Optional[Path],
    target: Palette,
    mapping_in: Optional[ColourMapping],
    edits: List[Tuple[str, str]],
    debug: bool,
) -> Tuple[str, bool]:
    """
    Process a single file with stdout capture.

    Useful for concurrent execution where output should be printed in order.
    Returns (captured log block, succeeded).
    """
    ok = True
    with captured_output() as buf:
        try:
            _process_single_image(
                path, _output_path(path, outdir), target, mapping_in, edits, None, debug
            )
        except PaletteSwapError as e:
            log(f"[error] {path.name}: {e}")
            ok = False
    return buf.getvalue(), ok


# Commands


def _cmd_extract(args: argparse.Namespace) -> int:
    palette = extract_palette(load_image(args.image))
    name = args.name or args.image.stem
    if args.format == "hex":
        text = "\n".join(palette) + ("\n" if palette else "")
        if args.out is not None:
            args.out.write_text(text, encoding="utf-8")
            log(f"Wrote {args.out.name} | colours={len(palette)}")
        else:
            sys.stdout.write(text)
        return 0
    if not palette:
        warn(f"{args.image.name}: no visible colours")
    out = args.out or args.image.with_suffix(f".{args.format}")
    content = export_palette(palette, args.format, name)
    if isinstance(content, bytes):
        out.write_bytes(content)
    else:
        out.write_text(content, encoding="utf-8")
    log(f"Wrote {out.name} | colours={len(palette)}")
    return 0


def _cmd_convert(args: argparse.Namespace) -> int:
    palette = load_palette_file(args.src)
    written = save_palette_file(args.dst, palette)
    log(f"Wrote {written.name} | colours={len(palette)}")
    return 0


def _cmd_remap(args: argparse.Namespace) -> int:
    src: Path = args.src
    target = _load_target_palette(args.palette)
    mapping_in = _load_mapping(args.mapping_in) if args.mapping_in else None
    if args.outdir is not None:
        args.outdir.mkdir(parents=True, exist_ok=True)

    print_config_line(
        "run",
        [
            ("CPU cores", os.cpu_count() or 1),
            ("Jobs", args.jobs),
            ("Target colours", len(target)),
            ("Edits", len(args.edits)),
        ],
        debug=False,
    )

    if not src.is_dir():
        _process_single_image(
            src,
            _output_path(src, args.outdir),
            target,
            mapping_in,
            args.edits,
            args.mapping_out,
            args.debug,
        )
        return 0

    if args.mapping_out is not None:
        warn("--mapping-out is ignored in folder mode")
    all_entries = list(src.iterdir())
    files = [
        p
        for p in all_entries
        if p.is_file()
        and p.suffix.lower() in IMAGE_SUFFIXES
        and not p.stem.endswith(OUTPUT_SUFFIX)
    ]
    files.sort(key=lambda p: p.name.lower())
    if args.debug:
        debug_log(
            key_value_pairs_to_string(
                [("Folder entries", len(all_entries)), ("Images", len(files))]
            )
        )

    with ThreadPoolExecutor(max_workers=max(1, args.jobs)) as ex:
        futures = [
            ex.submit(
                _process_one_captured,
                p,
                args.outdir,
                target,
                mapping_in,
                args.edits,
                args.debug,
            )
            for p in files
        ]
        results = [f.result() for f in futures]
    print("".join(block for block, _ok in results), end="", flush=True)
    failed = [p.name for p, (_block, ok) in zip(files, results) if not ok]
    if failed:
        error(f"{len(failed)} of {len(files)} file(s) failed: {', '.join(failed)}")
        return 1
    return 0


# Entry point


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    for attr in ("image", "src", "palette"):
        path = getattr(args, attr, None)
        if path is not None and not path.exists():
            error(f"not found: {path}")
            return 2

    commands = {"extract": _cmd_extract, "remap": _cmd_remap, "convert": _cmd_convert}
    try:
        return commands[args.command](args)
    except PaletteSwapError as e:
        error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
