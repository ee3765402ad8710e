"""
Main application window.

Orchestrates monitor enumeration, image loading, the span preview, and the
commit that slices the image and hands it to a wallpaper backend via a
worker process.
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QLabel, QFileDialog, QMessageBox,
    QProgressDialog, QStatusBar, QToolBar, QComboBox, QLineEdit, QApplication,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence, QShortcut

from wallpaper_span_tool.config import (
    BACKEND_CHOICES, BACKEND_DEFAULT, HAS_XRANDR, IMAGE_FILTER, output_dir,
)
from wallpaper_span_tool.geometry import EmptyMonitorSetError, minimum_image_width, normalize
from wallpaper_span_tool.monitors import MonitorQueryError, parse_bezels, query_xrandr, with_bezels
from wallpaper_span_tool.placement import NoImageLoadedError, resolve
from wallpaper_span_tool.span_widget import ImageLoaderThread, SpanPreviewWidget, monitors_from_screens
from wallpaper_span_tool.viewport import degenerate_axes
from wallpaper_span_tool.worker import dispatch_worker

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Wallpaper Span Tool")
        self.setMinimumSize(800, 400)

        # Screen-aware startup size, clamped to 80% of the primary screen
        preferred_w, preferred_h = 1600, 900
        screen = QApplication.primaryScreen()
        if screen is not None:
            avail = screen.availableGeometry()
            preferred_w = min(preferred_w, int(avail.width() * 0.8))
            preferred_h = min(preferred_h, int(avail.height() * 0.8))
        self.resize(preferred_w, preferred_h)

        self._monitors = []
        self._loaders: set[ImageLoaderThread] = set()
        self._image_path: Path | None = None

        self._build_ui()
        self._refresh_monitors()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(4, 4, 4, 4)

        self._preview = SpanPreviewWidget()
        self._preview.viewport_changed.connect(self._update_viewport_info)
        layout.addWidget(self._preview, stretch=1)

        self._hint_label = QLabel("Drag to pan · Wheel to zoom · Arrow keys nudge (Shift ×10)")
        self._hint_label.setStyleSheet("color: #aaa; font-size: 8pt; padding: 2px;")
        layout.addWidget(self._hint_label)

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._viewport_label = QLabel("")
        self._status.addPermanentWidget(self._viewport_label)

        QShortcut(QKeySequence(QKeySequence.StandardKey.Open), self, self._select_image)
        QShortcut(QKeySequence(Qt.Key.Key_F5), self, self._refresh_monitors)

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_load = QAction("📂 Load Image", self)
        act_load.triggered.connect(self._select_image)
        toolbar.addAction(act_load)

        act_apply = QAction("▶ Set Wallpaper", self)
        act_apply.triggered.connect(self._set_wallpaper)
        toolbar.addAction(act_apply)
        self._act_apply = act_apply

        toolbar.addSeparator()

        act_refresh = QAction("⟳ Refresh Monitors", self)
        act_refresh.triggered.connect(self._refresh_monitors)
        toolbar.addAction(act_refresh)

        toolbar.addWidget(QLabel("  Bezels (mm): "))
        self._bezels_edit = QLineEdit()
        self._bezels_edit.setPlaceholderText("left,top;left,top…")
        self._bezels_edit.setToolTip("Bezel sizes per monitor from left to right, e.g. 10,12;10,12")
        self._bezels_edit.setMaximumWidth(220)
        self._bezels_edit.editingFinished.connect(self._refresh_monitors)
        toolbar.addWidget(self._bezels_edit)

        toolbar.addWidget(QLabel("  Backend: "))
        self._backend_combo = QComboBox()
        self._backend_combo.addItems(BACKEND_CHOICES)
        self._backend_combo.setCurrentText(BACKEND_DEFAULT)
        toolbar.addWidget(self._backend_combo)

    # =========================================================================
    # Monitors
    # =========================================================================

    def _enumerate_monitors(self):
        if HAS_XRANDR:
            try:
                return query_xrandr()
            except MonitorQueryError as exc:
                logger.warning("xrandr enumeration failed, using Qt screens: %s", exc)
        return monitors_from_screens(QApplication.screens())

    def _refresh_monitors(self):
        try:
            bezels = parse_bezels(self._bezels_edit.text())
        except ValueError as exc:
            self._status.showMessage(f"Invalid bezels: {exc}")
            return

        self._monitors = with_bezels(self._enumerate_monitors(), bezels)
        try:
            canvas = normalize(self._monitors)
        except EmptyMonitorSetError:
            canvas = None
            self._status.showMessage("No monitors detected.")
        else:
            names = ", ".join(m.name for m in self._monitors)
            self._status.showMessage(
                f"{len(self._monitors)} monitors ({names}) · canvas {canvas.total_width}×{canvas.max_height}"
            )
            logger.info("Monitor layout: %s", names)
        self._preview.set_canvas(canvas)
        self._update_button_states()

    # =========================================================================
    # Image loading
    # =========================================================================

    def _select_image(self):
        start = str(self._image_path.parent if self._image_path else Path.home())
        path, _ = QFileDialog.getOpenFileName(self, "Select Image", start, IMAGE_FILTER)
        if not path:
            return
        self._load_image(Path(path))

    def _load_image(self, path: Path):
        """Decode *path* in the background.  Loads are not cancelled; the last to finish wins."""
        self._preview.set_loading(True)
        loader = ImageLoaderThread(path, self)
        loader.finished.connect(self._on_image_loaded)
        loader.error.connect(lambda err, p=path: self._on_image_load_error(p, err))
        loader.finished.connect(lambda _handle, t=loader: self._forget_loader(t))
        loader.error.connect(lambda _err, t=loader: self._forget_loader(t))
        self._loaders.add(loader)
        loader.start()

    def _forget_loader(self, loader: ImageLoaderThread):
        # Signals are emitted at the very end of run(); let it return first
        loader.wait()
        self._loaders.discard(loader)
        loader.deleteLater()

    def _on_image_loaded(self, handle):
        self._image_path = handle.path
        self._preview.set_image(handle)
        canvas = self._preview.canvas
        img_w, _ = handle.size
        msg = f"Loaded {handle.path.name} ({handle.size[0]}×{handle.size[1]})"
        if canvas is not None and img_w < minimum_image_width(canvas):
            msg += f" · low resolution: {minimum_image_width(canvas)} px wide recommended"
        self._status.showMessage(msg)
        self._update_button_states()

    def _on_image_load_error(self, path: Path, error: str):
        self._preview.set_loading(False)
        self._status.showMessage(f"Failed to load {path.name}: {error}")
        logger.warning("Failed to load %s: %s", path, error)

    # =========================================================================
    # Viewport info
    # =========================================================================

    def _update_viewport_info(self):
        state = self._preview.session.state
        canvas = self._preview.canvas
        if canvas is None or not state.has_image or self._preview.container_width() <= 0:
            self._viewport_label.setText("")
            return
        request = resolve(state, canvas, self._preview.container_width())
        text = f"Zoom {request.scale:.2f}× · left {request.left} · top {request.top}"
        axes = degenerate_axes(state)
        if axes:
            text += f" · image too small along {'/'.join(axes)}"
        self._viewport_label.setText(text)

    def _update_button_states(self):
        can_apply = self._preview.canvas is not None and self._preview.has_image()
        self._act_apply.setEnabled(can_apply)

    # =========================================================================
    # Commit
    # =========================================================================

    def _set_wallpaper(self):
        canvas = self._preview.canvas
        if canvas is None or self._preview.container_width() <= 0:
            return
        try:
            request = resolve(self._preview.session.state, canvas, self._preview.container_width())
        except NoImageLoadedError:
            return

        name = Path(request.path).name
        progress = QProgressDialog(f"Setting wallpaper: {name}…", None, 0, 0, self)
        progress.setWindowModality(Qt.WindowModality.WindowModal)
        progress.setMinimumDuration(0)
        progress.setValue(0)
        QApplication.processEvents()

        args = {
            "canvas": canvas,
            "request": request,
            "output_root": str(output_dir()),
            "backend": self._backend_combo.currentText(),
        }
        logger.info("Applying %s: scale %.3f, left %d, top %d", name, request.scale, request.left, request.top)

        with ProcessPoolExecutor(max_workers=1) as executor:
            future = executor.submit(dispatch_worker, args)
            while not future.done():
                QApplication.processEvents()
                time.sleep(0.05)

            result = future.result()

        progress.close()

        if result["success"]:
            self._status.showMessage(f"Wallpaper set on {len(result['outputs'])} monitors: {name}")
        else:
            QMessageBox.critical(self, "Error", f"Failed to set wallpaper from {name}:\n{result['error']}")

    def closeEvent(self, event):
        """Release the loaded image before closing."""
        self._preview.shutdown()
        super().closeEvent(event)
