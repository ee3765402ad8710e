import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_REPO_ROOT))

from wallpaper_span_tool.geometry import normalize  # noqa: E402
from wallpaper_span_tool.models import MonitorDescriptor  # noqa: E402


def _monitor(name, width, height, x=0, y=0, mm_per_px=0.25, **kwargs):
    return MonitorDescriptor(
        name=name,
        physical_width_mm=width * mm_per_px,
        physical_height_mm=height * mm_per_px,
        pixel_width=width,
        pixel_height=height,
        x=x,
        y=y,
        **kwargs,
    )


@pytest.fixture
def make_monitor():
    """Factory for monitors; 0.25 mm per pixel (4 px/mm) unless told otherwise."""
    return _monitor


@pytest.fixture
def landscape_portrait():
    """A 1920x1080 landscape monitor with a 1080x1920 portrait one to its right."""
    return [
        _monitor("DP-1", 1920, 1080, x=0, y=0),
        _monitor("DP-2", 1080, 1920, x=1920, y=0),
    ]


@pytest.fixture
def landscape_portrait_canvas(landscape_portrait):
    return normalize(landscape_portrait)


@pytest.fixture
def small_canvas():
    """Tiny two-monitor canvas (150x100) for tests that render pixels."""
    return normalize([
        _monitor("LEFT", 100, 50),
        _monitor("RIGHT", 50, 100, x=100),
    ])
