"""
Binary morphology tool.

Batch mode:
    morphlab input.png --op erode --op dilate -o out.png

Interactive mode (OpenCV windows):
    morphlab input.png --interactive
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import cv2
import yaml

from morphlab.codec import save_image
from morphlab.display import MorphologyDisplay
from morphlab.errors import DecodeFailure, PreconditionViolation
from morphlab.morphology import OPERATIONS
from morphlab.session import MorphologySession
from morphlab.utils import DEFAULT_SETTINGS, kernel_from_settings, load_settings, merge_settings


KEY_OPERATIONS = {
    ord("d"): "dilate",
    ord("e"): "erode",
    ord("o"): "open",
    ord("c"): "close",
    ord("h"): "hit_or_miss",
    ord("t"): "thinning",
    ord("k"): "thickening",
}


# ============================================================================
# Configuration Helpers
# ============================================================================

def build_settings(args: argparse.Namespace) -> Dict[str, Any]:
    """Settings file (if any) with command line overrides applied."""
    if args.config:
        settings = load_settings(args.config)
    else:
        settings = merge_settings(DEFAULT_SETTINGS, {})

    if args.threshold is not None:
        settings["threshold"] = args.threshold
    if args.workers is not None:
        settings["workers"] = args.workers
    if args.kernel_size is not None:
        settings["kernel"] = {"dimension": args.kernel_size, "rows": None}
    if args.kernel:
        settings["kernel"] = {"rows": args.kernel}
    if args.op:
        settings.setdefault("pipeline", {})["operations"] = list(args.op)
    if args.output:
        settings["output"] = args.output

    return settings


def build_session(settings: Dict[str, Any]) -> MorphologySession:
    session = MorphologySession(
        threshold=float(settings.get("threshold", 128)),
        workers=int(settings.get("workers", 1)),
    )
    session.kernel = kernel_from_settings(settings)
    return session


def configure_logging(settings: Dict[str, Any]) -> None:
    level_name = str(settings.get("logging", {}).get("level", "WARNING")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level: {level_name}")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def default_output_path(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}_morph.png")


# ============================================================================
# Pipelines
# ============================================================================

def run_batch(session: MorphologySession, operations: List[str], output: Path) -> Path:
    """Apply operations in order and write the final raster."""
    for name in operations:
        started = time.time()
        session.apply(name)
        print(f"[INFO] {name}: {time.time() - started:.3f}s")

    save_image(session.current, output)
    print(f"[INFO] Saved: {output}")
    return output


def run_interactive(session: MorphologySession, settings: Dict[str, Any], output: Path) -> None:
    """Keyboard/mouse driven loop over the session."""
    display_cfg = settings.get("display", {})
    display = MorphologyDisplay(
        window_size=(int(display_cfg.get("window_width", 480)), int(display_cfg.get("window_height", 360))),
        cell_size=int(display_cfg.get("cell_size", 24)),
    )

    def handle_click(x: int, y: int, dont_care: bool) -> None:
        if dont_care:
            session.mark_dont_care(x, y)
        else:
            session.toggle_cell(x, y)

    display.on_cell_click(handle_click)

    print("\n" + "=" * 55)
    print("  BINARY MORPHOLOGY")
    print("=" * 55)
    print("  D/E/O/C - Dilate, Erode, Open, Close")
    print("  H/T/K   - Hit-or-miss, Thinning, Thickening")
    print("  +/-     - Kernel size     R - Reset")
    print("  S       - Save            Q - Quit")
    print("=" * 55 + "\n")

    try:
        while True:
            display.update(session.original, session.current, session.kernel, session.history)

            key = cv2.waitKey(30) & 0xFF
            if key == 255:
                continue
            lowered = ord(chr(key).lower())

            if lowered == ord("q"):
                break
            elif lowered in KEY_OPERATIONS:
                name = KEY_OPERATIONS[lowered]
                started = time.time()
                session.apply(name)
                print(f"[INFO] {name}: {time.time() - started:.3f}s")
            elif lowered == ord("r"):
                session.reset()
                print("[INFO] Image reset")
            elif key in (ord("+"), ord("=")):
                session.resize_kernel(session.kernel.dimension + 2)
                print(f"[INFO] Kernel size: {session.kernel.dimension}")
            elif key in (ord("-"), ord("_")):
                session.resize_kernel(max(1, session.kernel.dimension - 2))
                print(f"[INFO] Kernel size: {session.kernel.dimension}")
            elif lowered == ord("s"):
                save_image(session.current, output)
                print(f"[INFO] Saved: {output}")

    except KeyboardInterrupt:
        print("\nStopped.")
    finally:
        display.destroy()


# ============================================================================
# Entry Point
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Binary image morphology")
    parser.add_argument("input", help="Image file to load")
    parser.add_argument("--config", "-c", default=None, help="Path to YAML configuration file")
    parser.add_argument("--output", "-o", default=None)
    parser.add_argument(
        "--op",
        action="append",
        choices=sorted(OPERATIONS),
        help="Operation to apply (repeatable, applied in order)",
    )
    parser.add_argument("--kernel-size", "-k", type=int, default=None)
    parser.add_argument("--kernel", default=None, help='Kernel rows, e.g. "x1x/111/x1x"')
    parser.add_argument("--threshold", type=float, default=None)
    parser.add_argument("--workers", "-w", type=int, default=None)
    parser.add_argument("--interactive", "-i", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = build_settings(args)
        configure_logging(settings)

        session = build_session(settings)
        input_path = Path(args.input)
        session.load_path(input_path)
        print(f"[INFO] Loaded {input_path} ({session.current.width}x{session.current.height})")

        output = Path(settings["output"]) if settings.get("output") else default_output_path(input_path)

        if args.interactive:
            run_interactive(session, settings, output)
        else:
            operations = settings.get("pipeline", {}).get("operations") or []
            run_batch(session, operations, output)

    except (FileNotFoundError, DecodeFailure, PreconditionViolation, ValueError, yaml.YAMLError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
