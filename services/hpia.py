"""HP Image Assistant acquisition and execution."""
from __future__ import annotations

import logging
import re
import shutil
import urllib.request
from pathlib import Path
from typing import Callable
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from services.commands import Command, CommandRunner, HPIACommand, SubprocessRunner

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120"
INSTALL_SCRIPT_NAME = "InstallAll.cmd"
COMMENT_PATTERN = re.compile(r"^\s*(?:@?rem\b|::)\s*(.*)$", re.IGNORECASE)

Fetcher = Callable[[str], str]


class HPIAError(RuntimeError):
    pass


def fetch_page(url: str) -> str:
    request = urllib.request.Request(
        url,
        headers={"User-Agent": USER_AGENT, "Accept-Language": "en-US,en;q=0.9"},
    )
    try:
        with urllib.request.urlopen(request, timeout=30) as response:
            return response.read().decode("utf-8", errors="ignore")
    except OSError as exc:
        raise HPIAError(f"Unable to fetch {url}: {exc}") from exc


def find_installer_link(html: str, base_url: str, extension: str = ".exe") -> str | None:
    soup = BeautifulSoup(html, "html.parser")
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if urlparse(href).path.lower().endswith(extension):
            return urljoin(base_url, href)
    return None


def resolve_download_url(page_url: str, fetch: Fetcher = fetch_page) -> str:
    html = fetch(page_url)
    link = find_installer_link(html, page_url)
    if not link:
        raise HPIAError(f"No .exe download link found on {page_url}")
    logger.info("Resolved HPIA installer link %s", link)
    return link


def download_file(url: str, destination: Path) -> Path:
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    destination.parent.mkdir(parents=True, exist_ok=True)
    temp_path = destination.with_suffix(destination.suffix + ".download")
    try:
        with urllib.request.urlopen(request, timeout=60) as response, temp_path.open("wb") as handle:
            shutil.copyfileobj(response, handle)
        temp_path.replace(destination)
    except OSError as exc:
        if temp_path.exists():
            temp_path.unlink()
        raise HPIAError(f"Download failed for {url}: {exc}") from exc
    return destination


def find_install_script(softpaq_dir: Path) -> Path | None:
    candidate = softpaq_dir / INSTALL_SCRIPT_NAME
    if candidate.is_file():
        return candidate
    return next((path for path in softpaq_dir.rglob("*.cmd") if path.name.lower() == INSTALL_SCRIPT_NAME.lower()), None)


def describe_install_script(script: Path) -> list[str]:
    """Pull readable package names out of the script's comment lines. Best effort only."""
    try:
        text = script.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return []
    described: list[str] = []
    for line in text.splitlines():
        match = COMMENT_PATTERN.match(line)
        if not match:
            continue
        detail = match.group(1).strip()
        if detail:
            described.append(detail)
    return described


class HPIAClient:
    EXECUTABLE_NAME = "HPImageAssistant.exe"
    # 256/257: analysis finished without recommendations, 3010: reboot pending.
    SUCCESS_CODES = frozenset({0, 256, 257, 3010})

    def __init__(
        self,
        working_dir: Path,
        softpaq_dir: Path,
        *,
        command_runner: CommandRunner | None = None,
        executable: Path | None = None,
    ) -> None:
        self._working_dir = Path(working_dir)
        self._softpaq_dir = Path(softpaq_dir)
        self._runner = command_runner or SubprocessRunner()
        self._executable = executable

    def extract(self, installer: Path) -> Path:
        command = Command(str(installer), ("/s", "/e", "/f", str(self._working_dir)))
        result = command.execute(self._runner)
        if not result.succeeded:
            raise HPIAError(f"HPIA extract failed with exit {result.returncode}: {result.stderr.strip()}")
        extracted = next(self._working_dir.rglob(self.EXECUTABLE_NAME), None)
        if extracted is None:
            raise HPIAError(f"{self.EXECUTABLE_NAME} not found after extracting {installer.name}")
        self._executable = extracted
        return extracted

    def analyze(self, *, bios_only: bool = False) -> int:
        exe = self._require_executable()
        self._softpaq_dir.mkdir(parents=True, exist_ok=True)
        invocation = HPIACommand(
            softpaq_folder=self._softpaq_dir,
            category="BIOS" if bios_only else "All",
        )
        result = invocation.to_command(exe).execute(self._runner)
        if result.returncode not in self.SUCCESS_CODES:
            raise HPIAError(f"HPIA analysis failed with exit {result.returncode}: {result.stderr.strip()}")
        return result.returncode

    def run_install_script(self, script: Path) -> int:
        result = Command(str(script)).execute(self._runner)
        if result.returncode not in {0, 3010}:
            raise HPIAError(f"{script.name} failed with exit {result.returncode}: {result.stderr.strip()}")
        return result.returncode

    def _require_executable(self) -> Path:
        if self._executable is None or not self._executable.exists():
            raise HPIAError(f"{self.EXECUTABLE_NAME} not found")
        return self._executable

