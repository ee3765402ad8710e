"""
Placement resolution: from the interactive viewport to crop coordinates.

``resolve`` converts the preview's pan/zoom into a CropRequest in canvas
pixels.  ``monitor_regions`` then splits one CropRequest into the slice each
monitor shows, compensating for pixel density and bezels.

Everything here is pure and Qt-free; safe for worker import.
"""

import math

from wallpaper_span_tool.models import CropRequest, MonitorRegion, VirtualCanvas, ViewportState


class NoImageLoadedError(RuntimeError):
    """A commit was attempted before any image was loaded."""


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def canvas_scale(container_width: float, canvas: VirtualCanvas) -> float:
    """Container pixels per canvas pixel."""
    return container_width / canvas.total_width


def resolve(viewport: ViewportState, canvas: VirtualCanvas, container_width: float) -> CropRequest:
    """Crop request for the current viewport.  *container_width* must be positive."""
    if not viewport.source_path:
        raise NoImageLoadedError("No image loaded")
    if container_width <= 0:
        raise ValueError(f"Container width must be positive, got {container_width}")
    scale = canvas_scale(container_width, canvas)
    return CropRequest(
        path=viewport.source_path,
        scale=viewport.zoom,
        top=round_half_away(-viewport.offset.y / scale),
        left=round_half_away(-viewport.offset.x / scale),
    )


# =============================================================================
# Per-monitor slicing
# =============================================================================
def span_size(canvas: VirtualCanvas) -> tuple[int, int]:
    """Canvas size grown by the bezel gaps between and above the monitors."""
    width = canvas.total_width + sum(2 * m.bezel_x_px for m in canvas.monitors)
    height = canvas.max_height + max(m.bezel_y_px for m in canvas.monitors)
    return width, height


def rendered_size(image_size: tuple[int, int], canvas: VirtualCanvas, scale: float) -> tuple[int, int]:
    """Size the source image is resized to before slicing.

    At scale 1 the image spans the full width, exactly as it is laid out in
    the preview.
    """
    img_w, img_h = image_size
    span_w, _ = span_size(canvas)
    width = span_w * scale
    return max(1, round_half_away(width)), max(1, round_half_away(width * img_h / img_w))


def monitor_regions(canvas: VirtualCanvas, request: CropRequest) -> list[MonitorRegion]:
    """Boxes, in rendered-image pixels, that each monitor shows.

    A monitor denser than the sparsest one samples a proportionally smaller
    box, which the dispatch then upscales to the monitor's resolution, so an
    object keeps the same physical size across screens.
    """
    span_w, _ = span_size(canvas)
    factor = span_w / canvas.total_width
    origin_x = round_half_away(request.left * factor)
    origin_y = round_half_away(request.top * factor)

    regions = []
    gap = 0
    for monitor, placement in zip(canvas.monitors, canvas.placements):
        bezel_x = monitor.bezel_x_px
        x = origin_x + placement.x + gap + bezel_x
        y = origin_y + placement.y + monitor.bezel_y_px
        w = round_half_away(placement.width / placement.dpi_scale)
        h = round_half_away(placement.height / placement.dpi_scale)
        regions.append(MonitorRegion(
            name=placement.name,
            box=(x, y, x + w, y + h),
            size=(placement.width, placement.height),
        ))
        gap += 2 * bezel_x
    return regions
