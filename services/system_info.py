"""Host hardware identification through WMI."""
from __future__ import annotations

import json
from dataclasses import dataclass

from services.commands import Command, CommandRunner, SubprocessRunner


class SystemInfoError(RuntimeError):
    pass


_SCRIPT = (
    "$cs = Get-CimInstance Win32_ComputerSystem; "
    "@{ Manufacturer = $cs.Manufacturer; Model = $cs.Model } | ConvertTo-Json -Compress"
)


@dataclass
class SystemInfo:
    manufacturer: str | None = None
    model: str | None = None


def get_system_info(runner: CommandRunner | None = None, *, powershell: str = "powershell") -> SystemInfo:
    runner = runner or SubprocessRunner()
    result = Command(powershell, ("-NoProfile", "-Command", _SCRIPT)).execute(runner)
    if not result.succeeded or not result.stdout.strip():
        raise SystemInfoError(f"Unable to query Win32_ComputerSystem: {result.stderr.strip() or 'no output'}")
    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise SystemInfoError(f"Unexpected Win32_ComputerSystem output: {exc}") from exc
    if not isinstance(data, dict):
        raise SystemInfoError("Unexpected Win32_ComputerSystem output")
    manufacturer = (data.get("Manufacturer") or "").strip() or None
    model = (data.get("Model") or "").strip() or None
    return SystemInfo(manufacturer=manufacturer, model=model)


def get_system_model(runner: CommandRunner | None = None, *, powershell: str = "powershell") -> str:
    info = get_system_info(runner, powershell=powershell)
    if not info.model:
        raise SystemInfoError("Host model string is empty")
    return info.model
