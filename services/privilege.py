"""Admin privilege helpers for Windows."""
from __future__ import annotations

import ctypes
import sys
from dataclasses import dataclass
from typing import Callable, Final


# ShellExecuteW returns a value greater than this on success.
SHELLEXECUTE_ERROR_CEILING: Final[int] = 32


class PrivilegeError(PermissionError):
    pass


@dataclass(frozen=True)
class ElevationToken:
    """Proof that the caller checked for administrator rights before starting a workflow."""

    granted: bool

    def require(self) -> None:
        if not self.granted:
            raise PrivilegeError("Administrator privileges are required. Re-run from an elevated prompt.")


def is_admin() -> bool:
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except AttributeError:
        return False


def acquire_elevation(check: Callable[[], bool] = is_admin) -> ElevationToken:
    return ElevationToken(granted=bool(check()))


def relaunch_as_admin() -> bool:
    params = " ".join(f'"{arg}"' for arg in sys.argv[1:])
    result = ctypes.windll.shell32.ShellExecuteW(None, "runas", sys.executable, params, None, 1)
    return int(result) > SHELLEXECUTE_ERROR_CEILING
