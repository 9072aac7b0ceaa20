"""Fixed settings for the HPIA and Windows Update workflows."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple


@dataclass(frozen=True)
class HPIASetting:
    workspace_root: Path
    softpaq_dir_name: str
    report_dir_name: str
    log_file_name: str
    page_url: str
    installer_name: str
    system_temp_dir: Path
    report_extensions: Tuple[str, ...]
    link_artifact_patterns: Tuple[str, ...]
    link_artifact_dirs: Tuple[Path, ...]


@dataclass(frozen=True)
class WindowsUpdateSetting:
    module_name: str
    reboot_command: Tuple[str, ...]


@dataclass(frozen=True)
class ImmutableConfig:
    hpia: HPIASetting
    windows_update: WindowsUpdateSetting


def _public_desktop() -> Path:
    return Path(os.environ.get("PUBLIC", r"C:\Users\Public")) / "Desktop"


HPIA_SETTING = HPIASetting(
    workspace_root=Path(os.getenv("HPIA_WORKSPACE", r"C:\HPIA")),
    softpaq_dir_name="Softpaqs",
    report_dir_name="Reports",
    log_file_name="HPIALog.txt",
    page_url=os.getenv("HPIA_PAGE_URL", "https://ftp.ext.hp.com/pub/caps-softpaq/cmit/HPIA.html"),
    installer_name="hp-hpia-setup.exe",
    system_temp_dir=Path(r"C:\SWSetup"),
    report_extensions=(".html", ".json", ".xml"),
    link_artifact_patterns=("HP Image Assistant*", "HPImageAssistant*"),
    link_artifact_dirs=(_public_desktop(),),
)

WINDOWS_UPDATE_SETTING = WindowsUpdateSetting(
    module_name="PSWindowsUpdate",
    reboot_command=("shutdown", "/r", "/t", "0"),
)

IMMUTABLE_CONFIG = ImmutableConfig(
    hpia=HPIA_SETTING,
    windows_update=WINDOWS_UPDATE_SETTING,
)
