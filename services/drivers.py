"""Driver and BIOS update run built on HP Image Assistant."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, TypeVar

from maintenance_config.constants import IMMUTABLE_CONFIG, HPIASetting
from maintenance_config.paths import get_downloads_directory
from services.commands import CommandRunner, SubprocessRunner
from services.hpia import (
    Fetcher,
    HPIAClient,
    describe_install_script,
    download_file,
    fetch_page,
    find_install_script,
    resolve_download_url,
)
from services.privilege import ElevationToken
from services.reports import ReportRelocation, relocate_reports
from services.run_log import RunLog
from services.system_info import get_system_model
from services.workspace import HPIAWorkspace, remove_directory, remove_link_artifacts

logger = logging.getLogger(__name__)

LogCallback = Callable[[str], None]
T = TypeVar("T")


class DriverUpdateError(RuntimeError):
    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step} failed: {message}")
        self.step = step


@dataclass
class DriverUpdateResult:
    bios_only: bool
    installer_url: str | None = None
    packages_found: bool = False
    installed: bool = False
    skipped_reason: str | None = None
    packages: list[str] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)
    reports: ReportRelocation | None = None


class DriverUpdateWorkflow:
    """Download HPIA, let it pick Softpaqs for this machine, install them and tidy up.

    Steps run strictly in order. The first failing step is written to the run log
    and raised as ``DriverUpdateError``; whatever the earlier steps produced stays
    on disk.
    """

    def __init__(
        self,
        *,
        config: HPIASetting = IMMUTABLE_CONFIG.hpia,
        workspace: HPIAWorkspace | None = None,
        command_runner: CommandRunner | None = None,
        fetch: Fetcher = fetch_page,
        downloader: Callable[[str, Path], Path] = download_file,
        model_provider: Callable[[], str] | None = None,
        downloads_dir: Path | None = None,
        log_callback: LogCallback | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config
        self._workspace = workspace or HPIAWorkspace(
            config.workspace_root,
            softpaq_dir_name=config.softpaq_dir_name,
            report_dir_name=config.report_dir_name,
            log_file_name=config.log_file_name,
        )
        self._runner = command_runner or SubprocessRunner()
        self._fetch = fetch
        self._downloader = downloader
        self._model_provider = model_provider or (lambda: get_system_model(self._runner))
        self._downloads_dir = downloads_dir
        self._log_callback = log_callback
        self._run_log = RunLog(self._workspace.log_path, clock=clock)
        self._client = HPIAClient(
            self._workspace.root,
            self._workspace.softpaq_dir,
            command_runner=self._runner,
        )

    @property
    def workspace(self) -> HPIAWorkspace:
        return self._workspace

    @property
    def run_log(self) -> RunLog:
        return self._run_log

    def run(self, token: ElevationToken, *, bios_only: bool = False) -> DriverUpdateResult:
        if not token.granted:
            message = "Not running as administrator; driver update aborted."
            logger.warning(message)
            self._emit(f"[WARN] {message}")
            token.require()

        result = DriverUpdateResult(bios_only=bios_only)
        self._step("Prepare workspace", self._workspace.prepare)
        scope = "BIOS" if bios_only else "drivers and BIOS"
        self._record(f"HPIA update started for {scope}")

        result.installer_url = self._step(
            "Resolve HPIA download link", resolve_download_url, self._config.page_url, self._fetch
        )
        installer = self._step(
            "Download HPIA",
            self._downloader,
            result.installer_url,
            self._workspace.root / self._config.installer_name,
        )
        self._step("Extract HPIA", self._client.extract, installer)
        self._step("Analyze system", self._client.analyze, bios_only=bios_only)

        self._install(result)

        result.removed = self._step("Clean up", self._cleanup)
        model = self._step("Read system model", self._model_provider)
        downloads = self._downloads_dir or get_downloads_directory()
        result.reports = self._step(
            "Relocate reports",
            relocate_reports,
            downloads,
            self._workspace.report_dir,
            model,
            self._config.report_extensions,
        )
        for message in result.reports.skipped:
            self._emit(message)
        self._record(f"Moved {len(result.reports.moved)} report(s) to {self._workspace.report_dir}")
        self._record("HPIA update finished")
        return result

    def _install(self, result: DriverUpdateResult) -> None:
        result.packages_found = self._workspace.has_packages()
        if not result.packages_found:
            result.skipped_reason = "No updates found"
            self._record("No updates found")
            self._emit("No updates found.")
            return
        script = find_install_script(self._workspace.softpaq_dir)
        if script is None:
            result.skipped_reason = "Install script missing"
            message = "Softpaqs were downloaded but no install script was generated; installation skipped"
            logger.warning(message)
            self._emit(f"[WARN] {message}")
            self._record(message)
            return
        result.packages = describe_install_script(script)
        for package in result.packages:
            self._record(f"Installing {package}")
        self._step("Install packages", self._client.run_install_script, script)
        result.installed = True
        self._record("Driver installation completed")

    def _cleanup(self) -> list[Path]:
        removed = self._workspace.cleanup()
        removed.extend(
            remove_link_artifacts(self._config.link_artifact_dirs, self._config.link_artifact_patterns)
        )
        if remove_directory(self._config.system_temp_dir):
            removed.append(self._config.system_temp_dir)
        return removed

    def _step(self, name: str, action: Callable[..., T], *args: object, **kwargs: object) -> T:
        self._emit(f"{name}...")
        try:
            return action(*args, **kwargs)
        except Exception as exc:
            logger.error("%s failed: %s", name, exc)
            self._record(f"{name} failed: {exc}")
            raise DriverUpdateError(name, str(exc)) from exc

    def _record(self, message: str) -> None:
        try:
            self._run_log.append(message)
        except OSError:
            logger.exception("Unable to write %s to %s", message, self._run_log.path)

    def _emit(self, message: str) -> None:
        if self._log_callback:
            self._log_callback(message)
