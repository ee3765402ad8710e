"""
Data models shared across the layout engine, the UI and the dispatch worker.

MonitorDescriptor is what an enumerator reports for one display.  VirtualCanvas
is derived from a list of them by ``geometry.normalize``.  ViewportState is the
pan/zoom of the loaded image against the preview container, and CropRequest /
MonitorRegion are what a commit hands to the wallpaper dispatch.

All of these are frozen: every change produces a new value.
"""

from dataclasses import dataclass, field


# =============================================================================
# Monitors
# =============================================================================
@dataclass(frozen=True)
class MonitorDescriptor:
    """One physical display as reported by the OS."""
    name: str
    physical_width_mm: float
    physical_height_mm: float
    pixel_width: int
    pixel_height: int
    x: int = 0
    y: int = 0
    bezel_x_mm: float = 0.0  # left/right bezel, each side
    bezel_y_mm: float = 0.0  # top bezel

    def __post_init__(self):
        if self.pixel_width <= 0 or self.pixel_height <= 0:
            raise ValueError(
                f"Monitor {self.name!r} has invalid pixel size "
                f"{self.pixel_width}x{self.pixel_height}"
            )
        if self.physical_width_mm <= 0 or self.physical_height_mm <= 0:
            raise ValueError(
                f"Monitor {self.name!r} has invalid physical size "
                f"{self.physical_width_mm}x{self.physical_height_mm} mm"
            )
        if self.bezel_x_mm < 0 or self.bezel_y_mm < 0:
            raise ValueError(f"Monitor {self.name!r} has negative bezels")

    @property
    def dpi(self) -> float:
        """Pixel density along the vertical axis, in pixels per millimetre."""
        return self.pixel_height / self.physical_height_mm

    @property
    def bezel_x_px(self) -> int:
        return int(round(self.bezel_x_mm * self.dpi))

    @property
    def bezel_y_px(self) -> int:
        return int(round(self.bezel_y_mm * self.dpi))


@dataclass(frozen=True)
class MonitorPlacement:
    """Where one monitor sits on the virtual canvas."""
    name: str
    x: int
    y: int
    width: int
    height: int
    dpi_scale: float = 1.0  # dpi / min_dpi, always >= 1


@dataclass(frozen=True)
class VirtualCanvas:
    """Normalized layout of the whole monitor set.  Build with ``geometry.normalize``."""
    monitors: tuple = ()
    origin_x: int = 0
    origin_y: int = 0
    total_width: int = 0
    max_height: int = 0
    dpis: tuple = ()
    placements: tuple = ()

    @property
    def aspect_ratio(self) -> float:
        return self.max_height / self.total_width

    @property
    def min_dpi(self) -> float:
        return min(self.dpis)


# =============================================================================
# Viewport
# =============================================================================
@dataclass(frozen=True)
class Offset:
    """Image top-left position in container pixels."""
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class ViewportState:
    """Pan/zoom of the loaded image against the preview container.

    ``natural_width``/``natural_height`` are the image size as laid out in the
    container at zoom 1.  ``aspect_ratio`` is the canvas aspect ratio
    (``max_height / total_width``).
    """
    offset: Offset = field(default_factory=Offset)
    zoom: float = 1.0
    natural_width: float = 0.0
    natural_height: float = 0.0
    container_width: float = 0.0
    aspect_ratio: float = 0.0
    wheel_offset: float = 0.0  # accumulated wheel travel, <= 0
    source_path: str = ""

    @property
    def has_image(self) -> bool:
        return bool(self.source_path)


# =============================================================================
# Dispatch
# =============================================================================
@dataclass(frozen=True)
class CropRequest:
    """What a commit asks the wallpaper dispatch to do, in canvas pixels."""
    path: str
    scale: float
    top: int
    left: int


@dataclass(frozen=True)
class MonitorRegion:
    """Slice of the rendered span image shown on one monitor."""
    name: str
    box: tuple  # (left, top, right, bottom) in rendered span pixels
    size: tuple  # (width, height) of the output slice


@dataclass(frozen=True)
class BackendResult:
    ok: bool
    error: str | None = None
