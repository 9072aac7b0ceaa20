#!/usr/bin/env python3
"""Entry point for the HP driver/BIOS and Windows Update maintenance runs."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Sequence

from services.drivers import DriverUpdateError, DriverUpdateWorkflow
from services.hpia import HPIAError
from services.privilege import PrivilegeError, acquire_elevation, is_admin
from services.windows_update import WindowsUpdateError, WindowsUpdateWorkflow

logger = logging.getLogger("maintenance")


def _console(message: str) -> None:
    print(message)


def ask_reboot(read: Callable[[str], str] = input) -> bool:
    try:
        answer = read("A reboot is required. Restart now? [Y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _run_drivers(args: argparse.Namespace, check_admin: Callable[[], bool]) -> int:
    token = acquire_elevation(check_admin)
    workflow = DriverUpdateWorkflow(log_callback=_console)
    try:
        result = workflow.run(token, bios_only=args.bios_only)
    except PrivilegeError as exc:
        print(f"Warning: {exc}", file=sys.stderr)
        return 1
    except (DriverUpdateError, HPIAError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print(f"See {workflow.run_log.path} for details.", file=sys.stderr)
        return 1
    if result.installed:
        print("Driver installation completed.")
    elif result.skipped_reason:
        print(result.skipped_reason)
    if result.reports is not None:
        print(f"Reports moved: {len(result.reports.moved)}")
    return 0


def _run_windows_update(args: argparse.Namespace, check_admin: Callable[[], bool]) -> int:
    token = acquire_elevation(check_admin)
    workflow = WindowsUpdateWorkflow(log_callback=_console)
    try:
        workflow.run(token, ask_reboot)
    except PrivilegeError as exc:
        print(f"Warning: {exc}", file=sys.stderr)
        return 1
    except WindowsUpdateError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def _run_gui(args: argparse.Namespace, check_admin: Callable[[], bool]) -> int:
    from ui.maintenance_window import launch

    return launch(is_elevated=check_admin())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HP driver/BIOS updates via HP Image Assistant, and Windows Update.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    drivers = sub.add_parser("drivers", help="Download HPIA, analyze this machine and install recommended Softpaqs")
    drivers.add_argument("--bios-only", action="store_true", help="Limit the analysis to BIOS updates")
    drivers.set_defaults(handler=_run_drivers)

    windows_update = sub.add_parser("windows-update", help="Install all available Windows updates")
    windows_update.set_defaults(handler=_run_windows_update)

    gui = sub.add_parser("gui", help="Open the maintenance window")
    gui.set_defaults(handler=_run_gui)
    return parser


def main(argv: Sequence[str] | None = None, *, check_admin: Callable[[], bool] = is_admin) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("Running %s", args.command)
    return args.handler(args, check_admin)


if __name__ == "__main__":
    raise SystemExit(main())
