from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

from services.reports import relocate_reports
from services.run_log import RunLog
from services.workspace import HPIAWorkspace, is_reparse_point, remove_directory, remove_link_artifacts

MODEL = "HP ProBook 450 G9"


def _populate(root: Path) -> None:
    (root / "Softpaqs" / "sp1").mkdir(parents=True)
    (root / "Softpaqs" / "sp1" / "sp1.exe").write_text("x")
    (root / "HPImageAssistant.exe").write_text("x")
    (root / "hp-hpia-setup.exe").write_text("x")
    (root / "Reports").mkdir(exist_ok=True)
    (root / "Reports" / "old.html").write_text("x")
    (root / "HPIALog.txt").write_text("earlier run on: 2026-01-01 00:00:00\n")


def test_cleanup_keeps_only_log_and_reports(tmp_path: Path) -> None:
    _populate(tmp_path)
    workspace = HPIAWorkspace(tmp_path)
    removed = workspace.cleanup()
    assert sorted(entry.name for entry in tmp_path.iterdir()) == ["HPIALog.txt", "Reports"]
    assert (tmp_path / "Reports" / "old.html").exists()
    assert {path.name for path in removed} == {"Softpaqs", "HPImageAssistant.exe", "hp-hpia-setup.exe"}


def test_prepare_clears_stale_state_and_creates_reports(tmp_path: Path) -> None:
    root = tmp_path / "HPIA"
    root.mkdir()
    (root / "Softpaqs").mkdir()
    (root / "Softpaqs" / "stale.exe").write_text("x")
    (root / "HPIALog.txt").write_text("earlier\n")
    workspace = HPIAWorkspace(root)
    workspace.prepare()
    assert not workspace.has_packages()
    assert workspace.report_dir.is_dir()
    assert workspace.log_path.read_text() == "earlier\n"


def test_cleanup_on_missing_root_is_noop(tmp_path: Path) -> None:
    assert HPIAWorkspace(tmp_path / "absent").cleanup() == []


def test_remove_link_artifacts_only_touches_links(tmp_path: Path) -> None:
    target = tmp_path / "real"
    target.mkdir()
    (target / "payload.txt").write_text("x")
    links = tmp_path / "links"
    links.mkdir()
    os.symlink(target, links / "HPImageAssistant", target_is_directory=True)
    os.symlink(target / "payload.txt", links / "Other Link")
    (links / "HPImageAssistant.txt").write_text("plain file")

    removed = remove_link_artifacts([links, tmp_path / "missing"], ["HPImageAssistant*"])

    assert removed == [links / "HPImageAssistant"]
    assert (target / "payload.txt").exists()
    assert is_reparse_point(links / "Other Link")
    assert (links / "HPImageAssistant.txt").exists()


def test_remove_directory(tmp_path: Path) -> None:
    swsetup = tmp_path / "SWSetup"
    (swsetup / "sp1").mkdir(parents=True)
    assert remove_directory(swsetup)
    assert not swsetup.exists()
    assert not remove_directory(swsetup)


def test_relocate_reports_requires_prefix_and_extension(tmp_path: Path) -> None:
    downloads = tmp_path / "Downloads"
    downloads.mkdir()
    (downloads / f"{MODEL}_report.HTML").write_text("x")
    (downloads / f"{MODEL}_report.json").write_text("x")
    (downloads / f"{MODEL}_report.zip").write_text("x")
    (downloads / f"{MODEL.lower()}_report.html").write_text("x")
    (downloads / f"Copy of {MODEL}.html").write_text("x")
    reports = tmp_path / "Reports"

    outcome = relocate_reports(downloads, reports, MODEL, (".html", ".json"))

    assert sorted(path.name for path in outcome.moved) == [f"{MODEL}_report.HTML", f"{MODEL}_report.json"]
    assert len(outcome.skipped) == 1 and f"{MODEL}_report.zip" in outcome.skipped[0]
    assert (downloads / f"{MODEL}_report.zip").exists()
    assert (downloads / f"{MODEL.lower()}_report.html").exists()
    assert (downloads / f"Copy of {MODEL}.html").exists()


def test_relocate_reports_overwrites_previous_copy(tmp_path: Path) -> None:
    downloads = tmp_path / "Downloads"
    downloads.mkdir()
    reports = tmp_path / "Reports"
    reports.mkdir()
    (reports / f"{MODEL}.html").write_text("old")
    (downloads / f"{MODEL}.html").write_text("new")
    relocate_reports(downloads, reports, MODEL, ("html",))
    assert (reports / f"{MODEL}.html").read_text() == "new"


def test_run_log_appends_timestamped_lines(tmp_path: Path) -> None:
    stamps = iter([datetime(2026, 10, 18, 8, 0, 0), datetime(2026, 10, 18, 8, 5, 7)])
    log = RunLog(tmp_path / "HPIA" / "HPIALog.txt", clock=lambda: next(stamps))
    assert log.lines() == []
    log.append("HPIA update started")
    log.append("No updates found")
    assert log.lines() == [
        "HPIA update started on: 2026-10-18 08:00:00",
        "No updates found on: 2026-10-18 08:05:07",
    ]
