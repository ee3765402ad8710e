"""
Command-line entry point: span one image across all monitors without the GUI.

Usage:
    wallpaper-span IMAGE [--bezels "l,t;l,t"] [--zoom Z] [--top T] [--left L]
    wallpaper-span --list-monitors
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from wallpaper_span_tool.backends import UnsupportedBackendError
from wallpaper_span_tool.config import BACKEND_CHOICES, BACKEND_DEFAULT, MIN_ZOOM, output_dir
from wallpaper_span_tool.geometry import EmptyMonitorSetError, normalize
from wallpaper_span_tool.models import CropRequest
from wallpaper_span_tool.monitors import MonitorQueryError, query_xrandr
from wallpaper_span_tool.worker import apply_span

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wallpaper-span",
        description="Span one image across all connected monitors.",
    )
    parser.add_argument("image", nargs="?", default=None, help="Image to span.")
    parser.add_argument(
        "-b", "--bezels",
        default="",
        help="Bezels in mm, 'left,top' per monitor from left to right, separated by ';'.",
    )
    parser.add_argument(
        "--zoom", type=float, default=MIN_ZOOM,
        help="Zoom factor relative to the image spanning the full width (>= 1).",
    )
    parser.add_argument("--top", type=int, default=0, help="Crop origin from the top, in canvas pixels.")
    parser.add_argument("--left", type=int, default=0, help="Crop origin from the left, in canvas pixels.")
    parser.add_argument(
        "--backend", default=BACKEND_DEFAULT, choices=BACKEND_CHOICES,
        help="Wallpaper setter to use (default: auto).",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=None,
        help="Where to write the per-monitor slices (default: config directory).",
    )
    parser.add_argument("--list-monitors", action="store_true", help="Print detected monitors and exit.")
    parser.add_argument("--dry-run", action="store_true", help="Write the slices but do not apply them.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parsed = parser.parse_args(argv)
    if parsed.image is None and not parsed.list_monitors:
        parser.error("an image is required unless --list-monitors is given")
    if parsed.zoom < MIN_ZOOM:
        parser.error(f"--zoom must be >= {MIN_ZOOM:g}")
    if parsed.top < 0 or parsed.left < 0:
        parser.error("--top and --left must not be negative")
    return parsed


def _print_monitors(canvas) -> None:
    for monitor, placement in zip(canvas.monitors, canvas.placements):
        print(
            f"{monitor.name}: {monitor.pixel_width}x{monitor.pixel_height}"
            f"{monitor.x:+d}{monitor.y:+d}  "
            f"{monitor.physical_width_mm:.0f}x{monitor.physical_height_mm:.0f} mm  "
            f"{monitor.dpi * 25.4:.1f} DPI  canvas x={placement.x} y={placement.y}"
        )
    print(f"Canvas: {canvas.total_width}x{canvas.max_height}, aspect {canvas.aspect_ratio:.4f}")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        canvas = normalize(query_xrandr(args.bezels))
    except (MonitorQueryError, EmptyMonitorSetError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    if args.list_monitors:
        _print_monitors(canvas)
        return 0

    image = Path(args.image).expanduser()
    if not image.is_file():
        logger.error("Image not found: %s", image)
        return 1

    request = CropRequest(path=str(image), scale=args.zoom, top=args.top, left=args.left)
    try:
        outputs = apply_span(
            canvas, request,
            args.output_dir or output_dir(),
            backend_id=args.backend,
            dry_run=args.dry_run,
        )
    except (UnsupportedBackendError, RuntimeError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    for name, path in outputs:
        print(f"{name}: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
