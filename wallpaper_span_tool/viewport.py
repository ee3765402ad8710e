"""
Pan/zoom state of the loaded image against the preview container.

The transitions here are pure: each takes a ViewportState and returns a new
one, with offset and zoom always written together.  After every transition,
per axis::

    bound <= offset <= 0      where bound = container_extent - natural_extent * zoom

and when ``bound > 0`` (the image does not cover the canvas on that axis) the
offset is pinned to 0, i.e. the image stays top/left aligned.

``ViewportSession`` is the mutable owner the UI talks to.  It also owns the
decoded image handle and guarantees it is released exactly once.

This module is Qt-free.
"""

import logging
from dataclasses import replace

from wallpaper_span_tool.config import MIN_ZOOM, WHEEL_ZOOM_DIVISOR
from wallpaper_span_tool.models import Offset, ViewportState

logger = logging.getLogger(__name__)


class DegenerateBoundError(ValueError):
    """The image cannot cover the canvas on some axis, even at minimum zoom."""


# =============================================================================
# Bound math
# =============================================================================
def fitted_size(image_w: int, image_h: int, container_width: float) -> tuple[float, float]:
    """Size of an image laid out at the container's width, preserving aspect."""
    if image_w <= 0 or image_h <= 0:
        return 0.0, 0.0
    return float(container_width), container_width * image_h / image_w


def axis_bound(container_extent: float, natural_extent: float, zoom: float) -> float:
    """Most negative offset allowed on one axis (positive when degenerate)."""
    return container_extent - natural_extent * zoom


def clamp_axis(value: float, bound: float) -> float:
    """Clamp *value* into ``[bound, 0]``; collapses to 0 when ``bound > 0``."""
    return min(max(value, bound), 0.0)


def bounds(state: ViewportState, zoom: float | None = None) -> tuple[float, float]:
    """``(bound_x, bound_y)`` for *state*, at *zoom* if given."""
    if zoom is None:
        zoom = state.zoom
    bound_x = axis_bound(state.container_width, state.natural_width, zoom)
    bound_y = axis_bound(state.container_width * state.aspect_ratio, state.natural_height, zoom)
    return bound_x, bound_y


def clamp_offset(state: ViewportState, x: float, y: float, zoom: float) -> Offset:
    bound_x, bound_y = bounds(state, zoom)
    return Offset(clamp_axis(x, bound_x), clamp_axis(y, bound_y))


def zoom_for_wheel(wheel_delta_y: float) -> float:
    """Zoom factor for an accumulated wheel travel (negative = scrolled up)."""
    return max(MIN_ZOOM, 1 - wheel_delta_y / WHEEL_ZOOM_DIVISOR)


def degenerate_axes(state: ViewportState) -> tuple[str, ...]:
    """Axes on which the image fails to cover the canvas at the current zoom."""
    bound_x, bound_y = bounds(state)
    axes = []
    if bound_x > 0:
        axes.append("x")
    if bound_y > 0:
        axes.append("y")
    return tuple(axes)


def require_cover(state: ViewportState) -> None:
    """Raise DegenerateBoundError if the image leaves part of the canvas empty."""
    axes = degenerate_axes(state)
    if axes:
        raise DegenerateBoundError(
            f"Image does not cover the canvas along {', '.join(axes)} at zoom {state.zoom:g}"
        )


# =============================================================================
# Transitions
# =============================================================================
def load_image(
    path: str,
    natural_size: tuple[float, float],
    container_width: float,
    aspect_ratio: float,
) -> ViewportState:
    """Fresh state for a newly loaded image: no pan, zoom 1."""
    natural_w, natural_h = natural_size
    return ViewportState(
        offset=Offset(0.0, 0.0),
        zoom=MIN_ZOOM,
        natural_width=float(natural_w),
        natural_height=float(natural_h),
        container_width=float(container_width),
        aspect_ratio=aspect_ratio,
        wheel_offset=0.0,
        source_path=str(path),
    )


def apply_drag(state: ViewportState, dx: float, dy: float) -> ViewportState:
    """Pan by ``(dx, dy)`` container pixels, clamped per axis."""
    offset = clamp_offset(state, state.offset.x + dx, state.offset.y + dy, state.zoom)
    if offset == state.offset:
        return state
    return replace(state, offset=offset)


def apply_zoom(state: ViewportState, wheel_delta_y: float) -> ViewportState:
    """Set zoom from accumulated wheel travel and re-clamp the offset at the new zoom."""
    zoom = zoom_for_wheel(wheel_delta_y)
    offset = clamp_offset(state, state.offset.x, state.offset.y, zoom)
    return replace(state, offset=offset, zoom=zoom, wheel_offset=wheel_delta_y)


def resize(
    state: ViewportState,
    container_width: float,
    natural_size: tuple[float, float],
    aspect_ratio: float,
) -> ViewportState:
    """Re-fit the state after the container or the canvas changed.

    The offset is rescaled with the container so the same part of the image
    stays under the monitors.
    """
    natural_w, natural_h = natural_size
    factor = container_width / state.container_width if state.container_width else 0.0
    resized = replace(
        state,
        natural_width=float(natural_w),
        natural_height=float(natural_h),
        container_width=float(container_width),
        aspect_ratio=aspect_ratio,
    )
    offset = clamp_offset(resized, state.offset.x * factor, state.offset.y * factor, state.zoom)
    return replace(resized, offset=offset)


# =============================================================================
# Session
# =============================================================================
def _release_handle(handle) -> None:
    close = getattr(handle, "close", None)
    if close is not None:
        close()


class ViewportSession:
    """Owns the current ViewportState and the image handle behind it.

    Every change swaps ``state`` in a single assignment, then notifies
    listeners with the new state.  Use as a context manager (or call
    ``close``) so the image handle is released when the owning view goes away.
    """

    def __init__(self, container_width: float = 0.0, aspect_ratio: float = 0.0, release=_release_handle):
        self._release = release
        self._handle = None
        self._image_size = (0, 0)
        self._closed = False
        self._listeners = []
        self._state = ViewportState(container_width=float(container_width), aspect_ratio=aspect_ratio)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # --- Accessors ---

    @property
    def state(self) -> ViewportState:
        return self._state

    @property
    def handle(self):
        return self._handle

    @property
    def image_size(self) -> tuple[int, int]:
        return self._image_size

    @property
    def closed(self) -> bool:
        return self._closed

    def has_image(self) -> bool:
        return self._handle is not None and self._state.has_image

    def subscribe(self, callback):
        """Call *callback(state)* after every change.  Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    def _commit(self, state: ViewportState):
        if state is self._state:
            return
        self._state = state
        for callback in list(self._listeners):
            callback(state)

    # --- Operations ---

    def load_image(self, path, handle, image_size: tuple[int, int]):
        """Install a decoded image, releasing the previous one afterwards.

        Loads are not cancelled: whichever load resolves last is the one kept.
        """
        if self._closed:
            # Late load after the view was torn down
            if handle is not None:
                self._release(handle)
            logger.debug("Discarded late load of %s", path)
            return
        previous = self._handle
        self._handle = handle
        self._image_size = (int(image_size[0]), int(image_size[1]))
        natural = fitted_size(*self._image_size, self._state.container_width)
        try:
            self._commit(load_image(path, natural, self._state.container_width, self._state.aspect_ratio))
        finally:
            # The new handle is already referenced, even if a listener raised
            if previous is not None and previous is not handle:
                self._release(previous)
        logger.debug("Loaded %s (%dx%d)", path, *self._image_size)

    def drag(self, dx: float, dy: float):
        self._commit(apply_drag(self._state, dx, dy))

    def scroll(self, wheel_delta_y: float):
        """Accumulate wheel travel and zoom.  Travel past zoom 1 is not banked."""
        travel = min(0.0, self._state.wheel_offset + wheel_delta_y)
        self._commit(apply_zoom(self._state, travel))

    def resize(self, container_width: float, aspect_ratio: float | None = None):
        if aspect_ratio is None:
            aspect_ratio = self._state.aspect_ratio
        natural = fitted_size(*self._image_size, container_width)
        self._commit(resize(self._state, container_width, natural, aspect_ratio))

    def set_canvas(self, canvas):
        """Adopt a new canvas (or None when no monitors are known)."""
        self.resize(self._state.container_width, canvas.aspect_ratio if canvas is not None else 0.0)

    def close(self):
        """Release the image handle.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        handle, self._handle = self._handle, None
        if handle is not None:
            self._release(handle)
        self._listeners.clear()
