"""Append-only status log kept in the HPIA workspace."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


class RunLog:
    def __init__(self, path: Path, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self.path = Path(path)
        self._clock = clock

    def append(self, message: str) -> str:
        line = f"{message} on: {self._clock().strftime(TIMESTAMP_FORMAT)}"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
        logger.info(message)
        return line

    def lines(self) -> list[str]:
        if not self.path.exists():
            return []
        return self.path.read_text(encoding="utf-8").splitlines()
