"""
Qt-free image I/O utilities.

Opens images (including PSD composites), reads dimensions without full
loading, and wraps decoded images in an ``ImageHandle`` that the viewport
session releases exactly once.  Safe to import in worker processes.
"""

import logging
from pathlib import Path

from PIL import Image
from psd_tools import PSDImage

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None


class ImageHandle:
    """A decoded image plus its path.  ``close()`` frees the pixel buffer once."""

    def __init__(self, path: Path, image: Image.Image):
        self.path = Path(path)
        self.image = image
        self.size = image.size
        self.closed = False

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.image.close()
        logger.debug("Released image buffer for %s", self.path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    path = Path(path)
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.composite()
    return Image.open(path)


def load_handle(path: Path) -> ImageHandle:
    """Fully decode *path* into an RGBA ImageHandle."""
    img = open_image(path)
    try:
        rgba = img.convert("RGBA")
    finally:
        img.close()
    return ImageHandle(path, rgba)


def get_image_size(path: Path) -> tuple[int, int]:
    """Get image dimensions without fully loading/compositing."""
    path = Path(path)
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.width, psd.height
    with Image.open(path) as img:
        return img.size
