"""Move HPIA analysis reports out of the Downloads folder."""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


@dataclass
class ReportRelocation:
    moved: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def relocate_reports(
    source_dir: Path,
    destination_dir: Path,
    model: str,
    extensions: Iterable[str],
) -> ReportRelocation:
    """Move files named ``<model>*`` with an allowed extension into ``destination_dir``.

    The prefix comparison is exact (case-sensitive); the extension check is not.
    Prefix matches with any other extension stay where they are.
    """
    outcome = ReportRelocation()
    if not model or not source_dir.is_dir():
        return outcome
    allowed = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions}
    destination_dir.mkdir(parents=True, exist_ok=True)
    for candidate in sorted(source_dir.iterdir()):
        if not candidate.is_file() or not candidate.name.startswith(model):
            continue
        if candidate.suffix.lower() not in allowed:
            message = f"Skipping {candidate.name}: extension {candidate.suffix or '(none)'} is not a report type"
            logger.info(message)
            outcome.skipped.append(message)
            continue
        target = destination_dir / candidate.name
        if target.exists():
            target.unlink()
        shutil.move(str(candidate), str(target))
        outcome.moved.append(target)
        logger.info("Moved report %s to %s", candidate.name, destination_dir)
    return outcome
