"""
Application constants and configuration.

All viewport, dispatch, and file-handling constants live here.  Command
detection for the external tools used by monitor enumeration and the
wallpaper backends runs once at import time.

The ``config_dir()`` helper returns the XDG config directory (the tool
only targets X11); ``output_dir()`` is where sliced per-monitor images are written.
"""

import os
import shutil
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "wallpaper-span-tool"


def config_dir() -> Path:
    """Return the XDG config directory for the app, creating it if needed."""
    base = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def output_dir() -> Path:
    """Return the directory holding the per-monitor slices of the last span."""
    d = config_dir() / "span"
    d.mkdir(parents=True, exist_ok=True)
    return d


# =============================================================================
# VIEWPORT
# =============================================================================
# The image may never be shrunk below covering the canvas at native placement
MIN_ZOOM = 1.0

# Wheel travel (in wheel pixels) that adds 1.0 to the zoom factor
WHEEL_ZOOM_DIVISOR = 750

# One Qt wheel notch is 120 units of angleDelta; map it to wheel pixels
WHEEL_PIXELS_PER_NOTCH = 100
WHEEL_ANGLE_PER_NOTCH = 120

# Nudge amounts for arrow keys (screen pixels)
NUDGE_SMALL = 1
NUDGE_LARGE = 10

# =============================================================================
# MONITORS
# =============================================================================
# Pixels per millimetre assumed when a display reports no physical size
# (96 DPI, the X11 default)
FALLBACK_DPI_MM = 96 / 25.4

# =============================================================================
# DISPATCH
# =============================================================================
# PNG compression level (0-9); slices are rewritten on every commit, keep it fast
PNG_COMPRESS_LEVEL = 1

BACKEND_CHOICES = ("auto", "xwallpaper", "feh")
BACKEND_DEFAULT = "auto"

# ---------------------------------------------------------------------------
# External tool detection
# ---------------------------------------------------------------------------
HAS_XRANDR = shutil.which("xrandr") is not None

# Supported image extensions
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp", ".psd"}
IMAGE_FILTER = "Images ({})".format(" ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS)))
