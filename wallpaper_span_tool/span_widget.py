"""
Interactive span preview widget and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``ImageLoaderThread``, the Qt screen
enumerator, and the ``SpanPreviewWidget`` that lets the user pan and zoom
the image behind the monitor layout.
"""

from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QPainter, QPixmap, QColor, QPen, QImage,
    QKeyEvent, QMouseEvent, QPaintEvent, QResizeEvent, QWheelEvent,
)

from wallpaper_span_tool.config import (
    FALLBACK_DPI_MM, NUDGE_SMALL, NUDGE_LARGE,
    WHEEL_ANGLE_PER_NOTCH, WHEEL_PIXELS_PER_NOTCH,
)
from wallpaper_span_tool.image_io import ImageHandle, load_handle
from wallpaper_span_tool.models import MonitorDescriptor, VirtualCanvas
from wallpaper_span_tool.viewport import ViewportSession

# Space kept free around the monitor layout (screen pixels)
CONTAINER_MARGIN = 20


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgb = pil_img.convert("RGBA")
    data = img_rgb.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgb.width, img_rgb.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg)


def monitors_from_screens(screens) -> list[MonitorDescriptor]:
    """Describe Qt screens as monitors, left to right.

    Geometry is in device pixels (logical size times the device pixel ratio).
    """
    monitors = []
    for screen in sorted(screens, key=lambda s: (s.geometry().x(), s.geometry().y())):
        geo = screen.geometry()
        ratio = screen.devicePixelRatio()
        pixel_w = max(1, round(geo.width() * ratio))
        pixel_h = max(1, round(geo.height() * ratio))
        physical = screen.physicalSize()
        phys_w, phys_h = physical.width(), physical.height()
        if phys_w <= 0 or phys_h <= 0:
            phys_w, phys_h = pixel_w / FALLBACK_DPI_MM, pixel_h / FALLBACK_DPI_MM
        monitors.append(MonitorDescriptor(
            name=screen.name(),
            physical_width_mm=phys_w,
            physical_height_mm=phys_h,
            pixel_width=pixel_w,
            pixel_height=pixel_h,
            x=round(geo.x() * ratio),
            y=round(geo.y() * ratio),
        ))
    return monitors


# =============================================================================
# Background image loader
# =============================================================================

class ImageLoaderThread(QThread):
    """Background thread for decoding images (especially large PSDs)."""
    finished = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, path: Path, parent=None):
        super().__init__(parent)
        self._path = path

    def run(self):
        try:
            handle = load_handle(self._path)
            self.finished.emit(handle)
        except Exception as e:
            self.error.emit(str(e))


# =============================================================================
# Span Preview Widget: monitor layout over a pannable, zoomable image
# =============================================================================

class SpanPreviewWidget(QWidget):
    """Widget that shows the monitor layout over the image and handles pan/zoom."""

    viewport_changed = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 200)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._canvas: VirtualCanvas | None = None
        self._pixmap: QPixmap | None = None
        self._session = ViewportSession()
        self._session.subscribe(self._on_state_changed)

        # Container placement inside the widget
        self._container = QRectF()

        # Interaction state
        self._dragging = False
        self._last_pos = QPointF()
        self._loading = False

    # --- Public API ---

    @property
    def session(self) -> ViewportSession:
        return self._session

    @property
    def canvas(self) -> VirtualCanvas | None:
        return self._canvas

    def container_width(self) -> float:
        return self._container.width()

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def set_canvas(self, canvas: VirtualCanvas | None):
        """Show a new monitor layout; the image stays where it was relative to it."""
        self._canvas = canvas
        if canvas is None:
            self._session.set_canvas(None)
        self._update_container()
        self.update()

    def set_image(self, handle: ImageHandle):
        """Install a decoded image.  The previous one is released by the session."""
        self._loading = False
        self._session.load_image(str(handle.path), handle, handle.size)
        if self._session.closed:
            # Late load after shutdown; the session already released it
            return
        self._pixmap = pil_to_qpixmap(handle.image)
        self.update()

    def has_image(self) -> bool:
        return self._pixmap is not None and self._session.has_image()

    def shutdown(self):
        """Release the image.  Called when the owning window closes."""
        self._session.close()
        self._pixmap = None

    # --- Layout ---

    def _update_container(self):
        """Fit the canvas into the widget, keeping its aspect ratio."""
        if self._canvas is None:
            self._container = QRectF()
            return
        avail_w = max(1.0, self.width() - 2 * CONTAINER_MARGIN)
        avail_h = max(1.0, self.height() - 2 * CONTAINER_MARGIN)
        aspect = self._canvas.aspect_ratio
        cw = min(avail_w, avail_h / aspect)
        ch = cw * aspect
        self._container = QRectF((self.width() - cw) / 2, (self.height() - ch) / 2, cw, ch)
        self._session.resize(cw, aspect)

    def _on_state_changed(self, state):
        self.viewport_changed.emit()
        self.update()

    def _image_rect(self) -> QRectF:
        state = self._session.state
        return QRectF(
            self._container.left() + state.offset.x,
            self._container.top() + state.offset.y,
            state.natural_width * state.zoom,
            state.natural_height * state.zoom,
        )

    def _monitor_rects(self) -> list[tuple[str, QRectF, float]]:
        if self._canvas is None:
            return []
        scale = self._container.width() / self._canvas.total_width
        rects = []
        for p in self._canvas.placements:
            rect = QRectF(
                self._container.left() + p.x * scale,
                self._container.top() + p.y * scale,
                p.width * scale,
                p.height * scale,
            )
            rects.append((p.name, rect, p.dpi_scale))
        return rects

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if self._canvas is None:
            painter.setPen(QColor(128, 128, 128))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No monitors detected")
            painter.end()
            return

        monitors = self._monitor_rects()

        if self._pixmap:
            image_rect = self._image_rect()
            # Whole image dimmed, then full brightness inside each monitor
            painter.setOpacity(0.35)
            painter.drawPixmap(image_rect.toRect(), self._pixmap)
            painter.setOpacity(1.0)
            for _, rect, _ in monitors:
                painter.save()
                painter.setClipRect(rect)
                painter.drawPixmap(image_rect.toRect(), self._pixmap)
                painter.restore()

        # Monitor outlines and labels
        painter.setPen(QPen(QColor(255, 255, 255), 2))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        for _, rect, _ in monitors:
            painter.drawRect(rect)
        pen_dpi = QPen(QColor(255, 255, 255, 110), 1, Qt.PenStyle.DashLine)
        for name, rect, dpi_scale in monitors:
            if dpi_scale > 1.0:
                # Area a denser monitor actually samples
                painter.setPen(pen_dpi)
                painter.drawRect(QRectF(rect.left(), rect.top(), rect.width() / dpi_scale, rect.height() / dpi_scale))
            painter.setPen(QColor(255, 255, 255))
            painter.drawText(
                rect.adjusted(6, 4, -6, -4).toRect(),
                Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop,
                name,
            )

        if not self._pixmap:
            painter.setPen(QColor(160, 160, 160))
            msg = "Loading image…" if self._loading else "Load an image to begin"
            painter.drawText(self._container.toRect(), Qt.AlignmentFlag.AlignCenter, msg)

        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        self._update_container()
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self.has_image():
            return
        self._dragging = True
        self._last_pos = event.position()
        self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self._dragging:
            return
        pos = event.position()
        delta = pos - self._last_pos
        self._last_pos = pos
        self._session.drag(delta.x(), delta.y())

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton and self._dragging:
            self._dragging = False
            self.unsetCursor()

    def wheelEvent(self, event: QWheelEvent):
        if not self.has_image():
            event.ignore()
            return
        angle = event.angleDelta().y()
        if angle:
            # Qt reports scroll-up as positive; wheel travel counts it negative
            travel = -angle / WHEEL_ANGLE_PER_NOTCH * WHEEL_PIXELS_PER_NOTCH
        else:
            travel = -event.pixelDelta().y()
        self._session.scroll(travel)
        event.accept()

    # --- Keyboard nudge ---

    def keyPressEvent(self, event: QKeyEvent):
        if not self.has_image():
            super().keyPressEvent(event)
            return
        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        moves = {
            Qt.Key.Key_Left: (-amount, 0),
            Qt.Key.Key_Right: (amount, 0),
            Qt.Key.Key_Up: (0, -amount),
            Qt.Key.Key_Down: (0, amount),
        }
        move = moves.get(event.key())
        if move is None:
            super().keyPressEvent(event)
            return
        self._session.drag(*move)
