"""Filesystem locations resolved at runtime."""
from __future__ import annotations

import os
from pathlib import Path

try:
    import winreg  # type: ignore[import-not-found]
except ImportError:
    winreg = None  # type: ignore[assignment]

# Known folder value name for Downloads under User Shell Folders.
_DOWNLOADS_GUID = "{374DE290-123F-4565-9164-39C4925E467B}"
_SHELL_FOLDERS_KEY = r"Software\Microsoft\Windows\CurrentVersion\Explorer\User Shell Folders"


def get_downloads_directory() -> Path:
    """Return the current user's Downloads folder, honouring a relocated shell folder."""
    if winreg is not None:
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, _SHELL_FOLDERS_KEY) as key:
                value, _ = winreg.QueryValueEx(key, _DOWNLOADS_GUID)
            if value:
                return Path(os.path.expandvars(value))
        except OSError:
            pass
    return Path.home() / "Downloads"
