import sys
from pathlib import Path

import pytest

from wallpaper_span_tool import backends
from wallpaper_span_tool.backends import (
    FehBackend, UnsupportedBackendError, XwallpaperBackend, resolve_backend, run_command,
)

OUTPUTS = [("DP-1", Path("/tmp/span/DP-1.png")), ("HDMI-1", Path("/tmp/span/HDMI-1.png"))]


def _installed(*names):
    return lambda binary: f"/usr/bin/{binary}" if binary in names else None


def test_xwallpaper_addresses_outputs_by_name():
    assert XwallpaperBackend().command(OUTPUTS) == [
        "xwallpaper",
        "--output", "DP-1", "--maximize", "/tmp/span/DP-1.png",
        "--output", "HDMI-1", "--maximize", "/tmp/span/HDMI-1.png",
    ]


def test_feh_lists_files_in_monitor_order():
    assert FehBackend().command(OUTPUTS) == [
        "feh", "--no-fehbg", "--bg-fill", "/tmp/span/DP-1.png", "/tmp/span/HDMI-1.png",
    ]


def test_auto_prefers_xwallpaper(monkeypatch):
    monkeypatch.setattr(backends.shutil, "which", _installed("feh", "xwallpaper"))
    assert resolve_backend().id == "xwallpaper"


def test_auto_falls_back_to_feh(monkeypatch):
    monkeypatch.setattr(backends.shutil, "which", _installed("feh"))
    assert isinstance(resolve_backend("auto"), FehBackend)


def test_explicit_backend_must_be_installed(monkeypatch):
    monkeypatch.setattr(backends.shutil, "which", _installed("feh"))
    with pytest.raises(UnsupportedBackendError, match="not installed"):
        resolve_backend("xwallpaper")


def test_unknown_backend(monkeypatch):
    monkeypatch.setattr(backends.shutil, "which", _installed("feh", "xwallpaper"))
    with pytest.raises(UnsupportedBackendError, match="Unknown backend"):
        resolve_backend("nitrogen")


def test_no_backend_available(monkeypatch):
    monkeypatch.setattr(backends.shutil, "which", _installed())
    with pytest.raises(UnsupportedBackendError, match="No supported wallpaper setter"):
        resolve_backend()


def test_run_command_reports_missing_binary():
    result = run_command(["wallpaper-span-no-such-binary"])
    assert not result.ok
    assert result.error


def test_run_command_reports_exit_code_and_stderr():
    result = run_command([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"])
    assert not result.ok
    assert "exit code 3" in result.error
    assert "boom" in result.error


def test_run_command_success():
    assert run_command([sys.executable, "-c", "pass"]).ok


def test_apply_without_outputs_fails():
    result = FehBackend().apply([])
    assert not result.ok
    assert result.error == "No monitors to apply"
