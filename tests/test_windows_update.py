from __future__ import annotations

import json
import subprocess
from typing import Sequence

import pytest

from services.privilege import ElevationToken, PrivilegeError
from services.windows_update import WindowsUpdateClient, WindowsUpdateError, WindowsUpdateWorkflow

AVAILABLE = [
    {"Title": "2026-10 Cumulative Update for Windows 11", "KB": "KB5050001", "Size": "650MB"},
    {"Title": "Intel - Display - 31.0.101.5590", "KB": "", "Size": "400MB"},
]


class FakeRunner:
    def __init__(self, *, available: list[dict] | None = None, reboot: bool = False, returncode: int = 0) -> None:
        self.available = AVAILABLE if available is None else available
        self.reboot = reboot
        self.returncode = returncode
        self.commands: list[tuple[str, ...]] = []

    def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
        self.commands.append(tuple(command))
        script = command[-1]
        if self.returncode:
            return subprocess.CompletedProcess(command, self.returncode, "", "Import-Module : module not found")
        if "Install-WindowsUpdate" in script:
            items = [
                {"Title": item["Title"], "KB": item["KB"], "Result": "Installed", "RebootRequired": self.reboot}
                for item in self.available
            ]
            payload = {"Items": items, "RebootRequired": self.reboot}
            return subprocess.CompletedProcess(command, 0, json.dumps(payload), "")
        if "Get-WindowsUpdate" in script:
            return subprocess.CompletedProcess(command, 0, json.dumps(self.available), "")
        return subprocess.CompletedProcess(command, 0, "", "")

    def scripts_containing(self, needle: str) -> int:
        return sum(1 for cmd in self.commands if needle in cmd[-1])


def _workflow(runner: FakeRunner) -> WindowsUpdateWorkflow:
    return WindowsUpdateWorkflow(command_runner=runner)


def test_install_and_reboot_when_confirmed() -> None:
    runner = FakeRunner(reboot=True)
    result = _workflow(runner).run(ElevationToken(granted=True), lambda: True)
    assert len(result.installed) == 2
    assert result.reboot_required
    assert result.rebooted
    assert ("shutdown", "/r", "/t", "0") in runner.commands


def test_reboot_flag_comes_from_single_install_call() -> None:
    runner = FakeRunner(reboot=True)
    _workflow(runner).run(ElevationToken(granted=True), lambda: False)
    assert runner.scripts_containing("Install-WindowsUpdate") == 1
    assert ("shutdown", "/r", "/t", "0") not in runner.commands


def test_no_prompt_without_reboot_requirement() -> None:
    runner = FakeRunner(reboot=False)
    prompts: list[bool] = []

    def confirm() -> bool:
        prompts.append(True)
        return True

    result = _workflow(runner).run(ElevationToken(granted=True), confirm)
    assert not result.reboot_required
    assert prompts == []


def test_nothing_available_skips_install() -> None:
    runner = FakeRunner(available=[])
    result = _workflow(runner).run(ElevationToken(granted=True), lambda: True)
    assert result.available == []
    assert runner.scripts_containing("Install-WindowsUpdate") == 0


def test_not_elevated_runs_nothing() -> None:
    runner = FakeRunner()
    with pytest.raises(PrivilegeError):
        _workflow(runner).run(ElevationToken(granted=False), lambda: True)
    assert runner.commands == []


def test_missing_module_raises() -> None:
    client = WindowsUpdateClient(command_runner=FakeRunner(returncode=1))
    with pytest.raises(WindowsUpdateError, match="module not found"):
        client.check()


def test_single_update_object_is_accepted() -> None:
    class SingleRunner(FakeRunner):
        def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
            self.commands.append(tuple(command))
            return subprocess.CompletedProcess(command, 0, json.dumps(AVAILABLE[0]), "")

    items = WindowsUpdateClient(command_runner=SingleRunner()).check()
    assert [item.kb for item in items] == ["KB5050001"]


def test_garbage_output_raises() -> None:
    class GarbageRunner(FakeRunner):
        def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
            return subprocess.CompletedProcess(command, 0, "WARNING: not json", "")

    with pytest.raises(WindowsUpdateError):
        WindowsUpdateClient(command_runner=GarbageRunner()).install_all()
