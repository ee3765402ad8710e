"""
Wallpaper backends: hand per-monitor image files to the desktop.

A backend receives ``[(output_name, image_path), ...]`` in monitor order and
applies them in one go.  Failed commands are reported as a BackendResult,
never raised.  This module is Qt-free and safe for worker import.
"""

import logging
import shutil
import subprocess
from pathlib import Path

from wallpaper_span_tool.models import BackendResult

logger = logging.getLogger(__name__)


class UnsupportedBackendError(RuntimeError):
    pass


def run_command(command: list[str]) -> BackendResult:
    logger.debug("Running: %s", " ".join(command))
    try:
        result = subprocess.run(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        return BackendResult(ok=False, error=str(exc))

    if result.returncode != 0:
        detail = result.stderr.decode(errors="replace").strip() if result.stderr else ""
        message = f"Command failed with exit code {result.returncode}: {' '.join(command)}"
        if detail:
            message = f"{message}\n{detail}"
        return BackendResult(ok=False, error=message)
    return BackendResult(ok=True)


class CommandBackend:
    id = "base"
    binary = ""

    def is_available(self) -> bool:
        return bool(self.binary) and shutil.which(self.binary) is not None

    def command(self, outputs: list[tuple[str, Path]]) -> list[str]:
        raise NotImplementedError

    def apply(self, outputs: list[tuple[str, Path]]) -> BackendResult:
        if not outputs:
            return BackendResult(ok=False, error="No monitors to apply")
        return run_command(self.command(outputs))


class XwallpaperBackend(CommandBackend):
    """One ``--output NAME --maximize FILE`` pair per monitor, single invocation."""
    id = "xwallpaper"
    binary = "xwallpaper"

    def command(self, outputs: list[tuple[str, Path]]) -> list[str]:
        command = [self.binary]
        for name, path in outputs:
            command.extend(["--output", name, "--maximize", str(path)])
        return command


class FehBackend(CommandBackend):
    """feh assigns files to Xinerama screens in order; it cannot target outputs by name."""
    id = "feh"
    binary = "feh"

    def command(self, outputs: list[tuple[str, Path]]) -> list[str]:
        return [self.binary, "--no-fehbg", "--bg-fill", *(str(path) for _, path in outputs)]


BACKENDS = {
    XwallpaperBackend.id: XwallpaperBackend,
    FehBackend.id: FehBackend,
}

# Output-addressed backends first
_AUTO_ORDER = ("xwallpaper", "feh")


def resolve_backend(backend_id: str = "auto") -> CommandBackend:
    """Return the backend named *backend_id*, or the first available one for ``"auto"``."""
    if backend_id != "auto":
        cls = BACKENDS.get(backend_id)
        if cls is None:
            raise UnsupportedBackendError(f"Unknown backend: {backend_id}")
        backend = cls()
        if not backend.is_available():
            raise UnsupportedBackendError(f"Backend '{backend_id}' is not installed")
        return backend

    for candidate in _AUTO_ORDER:
        backend = BACKENDS[candidate]()
        if backend.is_available():
            logger.debug("Auto-selected backend '%s'", backend.id)
            return backend
    raise UnsupportedBackendError("No supported wallpaper setter found (install xwallpaper or feh)")
