"""Lifecycle of the HPIA working directory."""
from __future__ import annotations

import fnmatch
import logging
import os
import shutil
import stat
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

FILE_ATTRIBUTE_REPARSE_POINT = getattr(stat, "FILE_ATTRIBUTE_REPARSE_POINT", 0x400)


def is_reparse_point(path: Path) -> bool:
    try:
        info = os.lstat(path)
    except OSError:
        return False
    attributes = getattr(info, "st_file_attributes", 0)
    if attributes & FILE_ATTRIBUTE_REPARSE_POINT:
        return True
    return stat.S_ISLNK(info.st_mode)


def _remove(path: Path) -> None:
    if is_reparse_point(path):
        # Remove the link itself, never what it points at.
        try:
            path.unlink()
        except (IsADirectoryError, PermissionError):
            os.rmdir(path)
        return
    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()


class HPIAWorkspace:
    def __init__(
        self,
        root: Path,
        *,
        softpaq_dir_name: str = "Softpaqs",
        report_dir_name: str = "Reports",
        log_file_name: str = "HPIALog.txt",
    ) -> None:
        self.root = Path(root)
        self.softpaq_dir = self.root / softpaq_dir_name
        self.report_dir = self.root / report_dir_name
        self.log_path = self.root / log_file_name

    @property
    def preserved(self) -> frozenset[str]:
        return frozenset({self.report_dir.name.lower(), self.log_path.name.lower()})

    def prepare(self) -> list[Path]:
        self.root.mkdir(parents=True, exist_ok=True)
        removed = self._clear()
        self.report_dir.mkdir(parents=True, exist_ok=True)
        return removed

    def cleanup(self) -> list[Path]:
        if not self.root.exists():
            return []
        return self._clear()

    def has_packages(self) -> bool:
        if not self.softpaq_dir.is_dir():
            return False
        return any(entry.is_file() for entry in self.softpaq_dir.rglob("*"))

    def _clear(self) -> list[Path]:
        removed: list[Path] = []
        for entry in sorted(self.root.iterdir()):
            if entry.name.lower() in self.preserved:
                continue
            _remove(entry)
            removed.append(entry)
            logger.debug("Removed %s", entry)
        return removed


def remove_link_artifacts(directories: Iterable[Path], patterns: Iterable[str]) -> list[Path]:
    """Delete link-type entries (symlinks, junctions) whose name matches one of the patterns."""
    pattern_list = [pattern.lower() for pattern in patterns]
    removed: list[Path] = []
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            continue
        for entry in directory.iterdir():
            name = entry.name.lower()
            if not any(fnmatch.fnmatchcase(name, pattern) for pattern in pattern_list):
                continue
            if not is_reparse_point(entry):
                continue
            _remove(entry)
            removed.append(entry)
            logger.debug("Removed link artifact %s", entry)
    return removed


def remove_directory(path: Path) -> bool:
    path = Path(path)
    if not path.exists():
        return False
    _remove(path)
    return True
