"""Windows Update through the PSWindowsUpdate PowerShell module."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from maintenance_config.constants import IMMUTABLE_CONFIG, WindowsUpdateSetting
from services.commands import Command, CommandRunner, SubprocessRunner
from services.privilege import ElevationToken

logger = logging.getLogger(__name__)

LogCallback = Callable[[str], None]

_CHECK_SCRIPT = (
    "Import-Module {module} -ErrorAction Stop; "
    "$updates = @(Get-WindowsUpdate -ErrorAction Stop); "
    "$items = @($updates | ForEach-Object {{ @{{ Title = $_.Title; KB = $_.KB; Size = [string]$_.Size }} }}); "
    "ConvertTo-Json -InputObject $items -Depth 3 -Compress"
)

_INSTALL_SCRIPT = (
    "Import-Module {module} -ErrorAction Stop; "
    "$results = @(Install-WindowsUpdate -AcceptAll -IgnoreReboot -ErrorAction Stop); "
    "$items = @($results | ForEach-Object {{ "
    "@{{ Title = $_.Title; KB = $_.KB; Result = [string]$_.Result; RebootRequired = [bool]$_.RebootRequired }} }}); "
    "$reboot = [bool]@($results | Where-Object {{ $_.RebootRequired }}).Count; "
    "@{{ Items = $items; RebootRequired = $reboot }} | ConvertTo-Json -Depth 4 -Compress"
)


class WindowsUpdateError(RuntimeError):
    pass


@dataclass
class WindowsUpdateItem:
    title: str
    kb: str | None = None
    size: str | None = None
    result: str | None = None
    reboot_required: bool = False


@dataclass
class InstallOutcome:
    items: list[WindowsUpdateItem] = field(default_factory=list)
    reboot_required: bool = False


@dataclass
class WindowsUpdateResult:
    available: list[WindowsUpdateItem] = field(default_factory=list)
    installed: list[WindowsUpdateItem] = field(default_factory=list)
    reboot_required: bool = False
    rebooted: bool = False


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _to_item(data: dict[str, Any]) -> WindowsUpdateItem:
    return WindowsUpdateItem(
        title=str(data.get("Title") or "Unknown update"),
        kb=data.get("KB") or None,
        size=data.get("Size") or None,
        result=data.get("Result") or None,
        reboot_required=bool(data.get("RebootRequired")),
    )


class WindowsUpdateClient:
    def __init__(
        self,
        *,
        command_runner: CommandRunner | None = None,
        powershell: str = "powershell",
        module_name: str = IMMUTABLE_CONFIG.windows_update.module_name,
    ) -> None:
        self._runner = command_runner or SubprocessRunner()
        self._powershell = powershell
        self._module = module_name

    def check(self) -> list[WindowsUpdateItem]:
        data = self._run_json(_CHECK_SCRIPT.format(module=self._module), "update query")
        return [_to_item(item) for item in _as_list(data) if isinstance(item, dict)]

    def install_all(self) -> InstallOutcome:
        data = self._run_json(_INSTALL_SCRIPT.format(module=self._module), "update install")
        if not isinstance(data, dict):
            raise WindowsUpdateError("Unexpected update install output")
        items = [_to_item(item) for item in _as_list(data.get("Items")) if isinstance(item, dict)]
        reboot = bool(data.get("RebootRequired")) or any(item.reboot_required for item in items)
        return InstallOutcome(items=items, reboot_required=reboot)

    def _run_json(self, script: str, label: str) -> Any:
        command = Command(self._powershell, ("-NoProfile", "-ExecutionPolicy", "Bypass", "-Command", script))
        result = command.execute(self._runner)
        if not result.succeeded:
            detail = result.stderr.strip() or result.stdout.strip() or f"exit {result.returncode}"
            raise WindowsUpdateError(f"Windows {label} failed: {detail}")
        output = result.stdout.strip()
        if not output:
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as exc:
            raise WindowsUpdateError(f"Unable to parse Windows {label} output: {exc}") from exc


class WindowsUpdateWorkflow:
    def __init__(
        self,
        *,
        client: WindowsUpdateClient | None = None,
        command_runner: CommandRunner | None = None,
        config: WindowsUpdateSetting = IMMUTABLE_CONFIG.windows_update,
        log_callback: LogCallback | None = None,
    ) -> None:
        self._runner = command_runner or SubprocessRunner()
        self._client = client or WindowsUpdateClient(command_runner=self._runner, module_name=config.module_name)
        self._config = config
        self._log_callback = log_callback

    def run(self, token: ElevationToken, confirm_reboot: Callable[[], bool]) -> WindowsUpdateResult:
        if not token.granted:
            message = "Not running as administrator; Windows Update aborted."
            logger.warning(message)
            self._emit(f"[WARN] {message}")
            token.require()

        result = WindowsUpdateResult()
        self._emit("Checking for Windows updates...")
        result.available = self._client.check()
        if not result.available:
            self._emit("No Windows updates available.")
            return result
        for item in result.available:
            self._emit(f"Available: {self._label(item)}")

        self._emit(f"Installing {len(result.available)} update(s)...")
        outcome = self._client.install_all()
        result.installed = outcome.items
        result.reboot_required = outcome.reboot_required
        for item in outcome.items:
            self._emit(f"[{item.result or 'Done'}] {self._label(item)}")

        if not result.reboot_required:
            self._emit("Windows Update finished; no reboot required.")
            return result
        self._emit("A reboot is required to finish installing updates.")
        if confirm_reboot():
            self.reboot()
            result.rebooted = True
        else:
            self._emit("Reboot postponed.")
        return result

    def reboot(self) -> None:
        executable, *args = self._config.reboot_command
        outcome = Command(executable, tuple(args)).execute(self._runner)
        if not outcome.succeeded:
            raise WindowsUpdateError(f"Reboot command failed: {outcome.stderr.strip() or outcome.returncode}")
        self._emit("Rebooting...")

    def _label(self, item: WindowsUpdateItem) -> str:
        return f"{item.kb} {item.title}" if item.kb else item.title

    def _emit(self, message: str) -> None:
        logger.info(message)
        if self._log_callback:
            self._log_callback(message)
