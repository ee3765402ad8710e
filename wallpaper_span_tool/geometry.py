"""
Monitor geometry normalization.

Turns an ordered list of MonitorDescriptor into a VirtualCanvas.  Monitors are
laid out left to right in the order the enumerator reported them; that order
is never re-sorted, so any change to the set means calling ``normalize`` again.

This module is Qt-free and safe for worker import.
"""

import logging
import math

from wallpaper_span_tool.models import MonitorDescriptor, MonitorPlacement, VirtualCanvas

logger = logging.getLogger(__name__)


class EmptyMonitorSetError(ValueError):
    """No displays were reported; there is nothing to lay out."""


def dpi(monitor: MonitorDescriptor) -> float:
    """Vertical pixel density of *monitor* in pixels per millimetre."""
    return monitor.dpi


def normalize(monitors) -> VirtualCanvas:
    """Build the virtual canvas for *monitors* (in enumerator order)."""
    monitors = tuple(monitors)
    if not monitors:
        raise EmptyMonitorSetError("No monitors to lay out")

    total_width = sum(m.pixel_width for m in monitors)
    max_height = max(m.pixel_height for m in monitors)
    origin_x = min(m.x for m in monitors)
    origin_y = min(m.y for m in monitors)
    dpis = tuple(dpi(m) for m in monitors)
    min_dpi = min(dpis)

    placements = []
    x = 0
    for monitor, monitor_dpi in zip(monitors, dpis):
        # Keep vertically offset monitors inside the canvas
        y = min(monitor.y - origin_y, max_height - monitor.pixel_height)
        placements.append(MonitorPlacement(
            name=monitor.name,
            x=x,
            y=y,
            width=monitor.pixel_width,
            height=monitor.pixel_height,
            dpi_scale=monitor_dpi / min_dpi,
        ))
        x += monitor.pixel_width

    canvas = VirtualCanvas(
        monitors=monitors,
        origin_x=origin_x,
        origin_y=origin_y,
        total_width=total_width,
        max_height=max_height,
        dpis=dpis,
        placements=tuple(placements),
    )
    logger.debug(
        "Normalized %d monitors: %dx%d canvas, aspect %.4f, min dpi %.3f px/mm",
        len(monitors), total_width, max_height, canvas.aspect_ratio, min_dpi,
    )
    return canvas


def minimum_image_width(canvas: VirtualCanvas) -> int:
    """Smallest source image width that reaches every monitor without upscaling.

    At zoom 1 the image spans the canvas width, and the densest monitor samples
    its region at ``dpi_scale`` times the canvas resolution.  Informational: the
    UI warns below this, nothing is rejected.
    """
    scale = max(p.dpi_scale for p in canvas.placements)
    return int(math.ceil(canvas.total_width * scale))
