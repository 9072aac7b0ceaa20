"""Typed command construction and the process runner seam."""
from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

HPIA_OPERATIONS = frozenset({"Analyze", "DownloadSoftPaqs"})
HPIA_CATEGORIES = frozenset({"All", "BIOS", "Drivers", "Software", "Firmware", "Accessories"})
HPIA_SELECTIONS = frozenset({"All", "Critical", "Recommended", "Routine"})
HPIA_ACTIONS = frozenset({"List", "Download", "Extract", "Install"})


class CommandError(ValueError):
    pass


@dataclass
class CommandExecutionResult:
    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:  # pragma: no cover - protocol
        ...


class SubprocessRunner:
    def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
        return subprocess.run(list(command), capture_output=True, text=True, check=False)


@dataclass(frozen=True)
class Command:
    executable: str
    args: tuple[str, ...] = ()

    def validate(self) -> None:
        if not self.executable or not self.executable.strip():
            raise CommandError("Command executable is empty")
        for arg in (self.executable, *self.args):
            if not arg:
                raise CommandError(f"Empty argument in command for {self.executable}")
            if any(ch in arg for ch in ("\n", "\r", "\x00")):
                raise CommandError(f"Illegal control character in argument {arg!r}")

    def argv(self) -> list[str]:
        self.validate()
        return [self.executable, *self.args]

    def execute(self, runner: CommandRunner) -> CommandExecutionResult:
        argv = self.argv()
        completed = runner.run(argv)
        return CommandExecutionResult(argv, completed.returncode, completed.stdout or "", completed.stderr or "")


@dataclass(frozen=True)
class HPIACommand:
    """HPImageAssistant.exe switches, checked against the values HPIA accepts."""

    softpaq_folder: Path
    operation: str = "Analyze"
    category: str = "All"
    selection: str = "All"
    action: str = "Extract"
    silent: bool = True

    def validate(self) -> None:
        checks = (
            ("Operation", self.operation, HPIA_OPERATIONS),
            ("Category", self.category, HPIA_CATEGORIES),
            ("Selection", self.selection, HPIA_SELECTIONS),
            ("Action", self.action, HPIA_ACTIONS),
        )
        for switch, value, allowed in checks:
            if value not in allowed:
                raise CommandError(f"Unsupported /{switch} value {value!r}; expected one of {sorted(allowed)}")

    def to_command(self, executable: Path | str) -> Command:
        self.validate()
        args = [
            f"/Operation:{self.operation}",
            f"/Category:{self.category}",
            f"/Selection:{self.selection}",
            f"/Action:{self.action}",
            f"/SoftpaqDownloadFolder:{self.softpaq_folder}",
        ]
        if self.silent:
            args.append("/Silent")
        command = Command(str(executable), tuple(args))
        command.validate()
        return command
