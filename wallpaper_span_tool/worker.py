"""
Span slicing and wallpaper dispatch (Qt-free).

This module is imported in the child process spawned by
``concurrent.futures.ProcessPoolExecutor`` when the user commits a layout.
It must **never** import PyQt6.
"""

import logging
import re
from pathlib import Path

from PIL import Image

from wallpaper_span_tool.backends import resolve_backend
from wallpaper_span_tool.config import PNG_COMPRESS_LEVEL
from wallpaper_span_tool.image_io import open_image
from wallpaper_span_tool.models import CropRequest, MonitorRegion, VirtualCanvas
from wallpaper_span_tool.placement import monitor_regions, rendered_size

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _slice(img: Image.Image, rendered: tuple[int, int], region: MonitorRegion) -> Image.Image:
    """Cut *region* out of *img* as if it had first been resized to *rendered*.

    Parts of the box outside the rendered image stay black.
    """
    left, top, right, bottom = region.box
    out_w, out_h = region.size
    rendered_w, rendered_h = rendered
    out = Image.new("RGB", (out_w, out_h))

    clip_l, clip_t = max(left, 0), max(top, 0)
    clip_r, clip_b = min(right, rendered_w), min(bottom, rendered_h)
    if clip_r <= clip_l or clip_b <= clip_t:
        return out

    # Destination rectangle inside the output slice
    sx = out_w / (right - left)
    sy = out_h / (bottom - top)
    dest = (
        round((clip_l - left) * sx), round((clip_t - top) * sy),
        round((clip_r - left) * sx), round((clip_b - top) * sy),
    )
    dest_w, dest_h = dest[2] - dest[0], dest[3] - dest[1]
    if dest_w <= 0 or dest_h <= 0:
        return out

    # Same rectangle in source pixels; resize straight from the source
    fx = img.width / rendered_w
    fy = img.height / rendered_h
    src = (
        clip_l * fx, clip_t * fy,
        min(clip_r * fx, img.width), min(clip_b * fy, img.height),
    )
    piece = img.resize((dest_w, dest_h), Image.Resampling.LANCZOS, box=src)
    out.paste(piece, dest[:2])
    return out


def slice_span(img: Image.Image, canvas: VirtualCanvas, request: CropRequest) -> list[tuple[MonitorRegion, Image.Image]]:
    """One output image per monitor, in canvas order."""
    rgb = img.convert("RGB")
    rendered = rendered_size(rgb.size, canvas, request.scale)
    logger.debug("Rendering %s at %dx%d (scale %.3f)", request.path, *rendered, request.scale)
    return [(region, _slice(rgb, rendered, region)) for region in monitor_regions(canvas, request)]


def slice_filename(name: str) -> str:
    return f"{_UNSAFE_NAME_CHARS.sub('_', name)}.png"


def apply_span(
    canvas: VirtualCanvas,
    request: CropRequest,
    output_root: Path,
    backend_id: str = "auto",
    dry_run: bool = False,
) -> list[tuple[str, Path]]:
    """Slice the request's image, write one PNG per monitor and hand them to a backend.

    Raises on any failure; returns the ``(output, path)`` pairs that were applied.
    """
    output_root = Path(output_root)
    output_root.mkdir(parents=True, exist_ok=True)
    backend = None if dry_run else resolve_backend(backend_id)

    with open_image(Path(request.path)) as img:
        slices = slice_span(img, canvas, request)

    outputs = []
    for region, piece in slices:
        out_path = output_root / slice_filename(region.name)
        piece.save(str(out_path), "PNG", compress_level=PNG_COMPRESS_LEVEL)
        outputs.append((region.name, out_path))
        logger.debug("Wrote %s box=%s size=%s", out_path, region.box, region.size)

    if backend is None:
        logger.info("Dry run: wrote %d slices to %s", len(outputs), output_root)
        return outputs

    result = backend.apply(outputs)
    if not result.ok:
        raise RuntimeError(result.error or f"Backend '{backend.id}' failed")
    logger.info("Applied %d slices with %s", len(outputs), backend.id)
    return outputs


def dispatch_worker(args: dict) -> dict:
    """Worker function for applying a span.  Runs in a separate process."""
    request = args["request"]
    name = Path(request.path).name
    try:
        outputs = apply_span(
            args["canvas"],
            request,
            Path(args["output_root"]),
            backend_id=args.get("backend", "auto"),
            dry_run=args.get("dry_run", False),
        )
        return {"success": True, "name": name, "outputs": [(n, str(p)) for n, p in outputs]}
    except Exception as e:
        return {"success": False, "name": name, "error": str(e)}
