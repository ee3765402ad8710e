"""
Monitor enumeration through ``xrandr --query``.

Each active, connected output becomes a MonitorDescriptor, in the order xrandr
lists them.  Bezels are given separately as ``"left,top;left,top;..."`` in
millimetres, one entry per monitor from left to right.

The Qt-based enumerator used by the GUI lives in ``span_widget``.  This
module is Qt-free.
"""

import logging
import re
import subprocess
from dataclasses import replace

from wallpaper_span_tool.config import FALLBACK_DPI_MM
from wallpaper_span_tool.models import MonitorDescriptor

logger = logging.getLogger(__name__)

# "DP-1 connected primary 2560x1440+0+0 (normal left ...) 597mm x 336mm"
_OUTPUT_RE = re.compile(
    r"^(?P<name>\S+) connected (?:primary )?"
    r"(?P<w>\d+)x(?P<h>\d+)(?P<x>[+-]\d+)(?P<y>[+-]\d+)"
)
_PHYSICAL_RE = re.compile(r"(?P<w>\d+)mm x (?P<h>\d+)mm\s*$")


class MonitorQueryError(RuntimeError):
    """xrandr could not be run or produced output we cannot parse."""


# =============================================================================
# Bezels
# =============================================================================
def parse_bezels(text: str) -> list[tuple[float, float]]:
    """Parse ``"l,t;l,t"`` into ``[(l, t), ...]``.  Empty entries mean no bezel."""
    bezels: list[tuple[float, float]] = []
    if not text or not text.strip():
        return bezels
    for entry in text.split(";"):
        entry = entry.strip()
        if not entry:
            bezels.append((0.0, 0.0))
            continue
        parts = entry.split(",")
        if len(parts) != 2:
            raise ValueError(f"Bezel entry {entry!r} is not of the form left,top")
        try:
            left, top = float(parts[0]), float(parts[1])
        except ValueError:
            raise ValueError(f"Bezel entry {entry!r} is not numeric") from None
        if left < 0 or top < 0:
            raise ValueError(f"Bezel entry {entry!r} is negative")
        bezels.append((left, top))
    return bezels


def with_bezels(monitors, bezels) -> list[MonitorDescriptor]:
    """Apply *bezels* (from ``parse_bezels``) to *monitors* in order."""
    result = []
    for i, monitor in enumerate(monitors):
        bezel_x, bezel_y = bezels[i] if i < len(bezels) else (0.0, 0.0)
        result.append(replace(monitor, bezel_x_mm=bezel_x, bezel_y_mm=bezel_y))
    if len(bezels) > len(result):
        logger.warning("Ignoring %d bezel entries without a monitor", len(bezels) - len(result))
    return result


# =============================================================================
# xrandr
# =============================================================================
def _physical_size(line: str, pixel_w: int, pixel_h: int, name: str) -> tuple[float, float]:
    match = _PHYSICAL_RE.search(line)
    phys_w = float(match.group("w")) if match else 0.0
    phys_h = float(match.group("h")) if match else 0.0
    if phys_w <= 0 or phys_h <= 0:
        logger.warning("%s reports no physical size; assuming %.0f DPI", name, FALLBACK_DPI_MM * 25.4)
        return pixel_w / FALLBACK_DPI_MM, pixel_h / FALLBACK_DPI_MM
    # xrandr reports the unrotated panel size; match it to the pixel orientation
    if (pixel_w > pixel_h) != (phys_w > phys_h) and pixel_w != pixel_h:
        phys_w, phys_h = phys_h, phys_w
    return phys_w, phys_h


def parse_xrandr(text: str, bezels: str = "") -> list[MonitorDescriptor]:
    """Parse ``xrandr --query`` output into monitors, in listing order.

    Connected outputs without an active mode are skipped.
    """
    monitors = []
    for line in text.splitlines():
        match = _OUTPUT_RE.match(line)
        if match is None:
            if " connected" in line:
                logger.debug("Skipping inactive output: %s", line.split(" ", 1)[0])
            continue
        name = match.group("name")
        pixel_w = int(match.group("w"))
        pixel_h = int(match.group("h"))
        phys_w, phys_h = _physical_size(line, pixel_w, pixel_h, name)
        try:
            monitors.append(MonitorDescriptor(
                name=name,
                physical_width_mm=phys_w,
                physical_height_mm=phys_h,
                pixel_width=pixel_w,
                pixel_height=pixel_h,
                x=int(match.group("x")),
                y=int(match.group("y")),
            ))
        except ValueError as exc:
            raise MonitorQueryError(f"Malformed xrandr output line: {line!r}") from exc
    return with_bezels(monitors, parse_bezels(bezels))


def query_xrandr(bezels: str = "") -> list[MonitorDescriptor]:
    """Run ``xrandr --query`` and return the active monitors."""
    try:
        result = subprocess.run(
            ["xrandr", "--query"], capture_output=True, text=True, timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise MonitorQueryError(f"Could not run xrandr: {exc}") from exc
    if result.returncode != 0:
        raise MonitorQueryError(f"xrandr failed: {result.stderr.strip()}")
    monitors = parse_xrandr(result.stdout, bezels)
    logger.info("xrandr reported %d active monitors", len(monitors))
    for m in monitors:
        logger.debug(
            "%s: %dx%d%+d%+d, %.0fx%.0f mm, %.3f px/mm",
            m.name, m.pixel_width, m.pixel_height, m.x, m.y,
            m.physical_width_mm, m.physical_height_mm, m.dpi,
        )
    return monitors
