"""Locate an installed Chrome or Chromium executable on the host."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

WINDOWS = "windows"
LINUX = "linux"
MACOS = "macos"

CHROME_UNINSTALL_KEY = (
    r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion"
    r"\Uninstall\Google Chrome"
)
WINDOWS_SUBDIRECTORY = os.path.join("Google", "Chrome", "Application")
LINUX_DIRECTORIES = (
    "/usr/local/sbin",
    "/usr/local/bin",
    "/usr/sbin",
    "/usr/bin",
    "/sbin",
    "/bin",
    "/opt/google/chrome",
)

RegistryLookup = Callable[[], Optional[str]]


class UnsupportedPlatformError(RuntimeError):
    """Raised when browser discovery is not available on this platform."""


def current_platform(value: Optional[str] = None) -> Optional[str]:
    """Map ``sys.platform`` (or ``value``) onto a known platform name."""

    raw = value if value is not None else sys.platform
    if raw in (WINDOWS, LINUX, MACOS):
        return raw
    if raw in ("win32", "cygwin"):
        return WINDOWS
    if raw.startswith("linux"):
        return LINUX
    if raw == "darwin":
        return MACOS
    return None


def _read_install_location() -> Optional[str]:
    """Return Chrome's InstallLocation from the Windows registry."""

    try:
        import winreg  # type: ignore[import-not-found]
    except ImportError:
        return None

    try:
        with winreg.OpenKey(
            winreg.HKEY_LOCAL_MACHINE, CHROME_UNINSTALL_KEY
        ) as key:
            value, _ = winreg.QueryValueEx(key, "InstallLocation")
    except OSError:
        return None
    return str(value) if value else None


def _executable_names(platform: str) -> List[str]:
    if platform == WINDOWS:
        return ["chrome.exe"]
    if platform == LINUX:
        return ["google-chrome", "chrome", "chromium", "chromium-browser"]
    return []


def _application_directories(platform: str) -> List[str]:
    if platform == WINDOWS:
        roots = (
            os.environ.get("ProgramFiles", r"C:\Program Files"),
            os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)"),
        )
        return [os.path.join(root, WINDOWS_SUBDIRECTORY) for root in roots]
    if platform == LINUX:
        return list(LINUX_DIRECTORIES)
    return []


def _app_directory() -> Path:
    """Return the directory that holds the running program."""

    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve().parent
    return Path.cwd()


def find(
    platform: Optional[str] = None,
    *,
    registry_lookup: Optional[RegistryLookup] = None,
    app_dir: Optional[Path] = None,
) -> Optional[str]:
    """Return the path of a Chrome/Chromium executable, or ``None``.

    On Windows the uninstall registry entry is consulted first because it also
    covers non-default install locations. After that, the program's own
    directory and the usual installation directories are probed for every
    known executable name.
    """

    resolved = current_platform(platform)
    if resolved == MACOS:
        raise UnsupportedPlatformError(
            "Finding Chrome on macOS is not supported; set browser_path"
            " explicitly."
        )

    if resolved == WINDOWS:
        lookup = registry_lookup or _read_install_location
        install_location = lookup()
        if install_location:
            candidate = os.path.join(install_location, "chrome.exe")
            if os.path.isfile(candidate):
                logger.debug("Found Chrome via registry: %s", candidate)
                return candidate

    if resolved is None:
        return None

    names = _executable_names(resolved)

    base = app_dir if app_dir is not None else _app_directory()
    for name in names:
        candidate = os.path.join(str(base), name)
        if os.path.isfile(candidate):
            return candidate

    directories = _application_directories(resolved)
    for name in names:
        for directory in directories:
            candidate = os.path.join(directory, name)
            if os.path.isfile(candidate):
                return candidate

    return None


def main() -> None:
    """Print the located browser executable for the current host."""

    try:
        path = find()
    except UnsupportedPlatformError as exc:
        raise SystemExit(str(exc)) from exc
    if path is None:
        raise SystemExit("No Chrome or Chromium executable found.")
    print(path)


__all__ = [
    "LINUX",
    "MACOS",
    "UnsupportedPlatformError",
    "WINDOWS",
    "current_platform",
    "find",
]


if __name__ == "__main__":
    main()
