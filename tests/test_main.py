from __future__ import annotations

import pytest

import main


@pytest.mark.parametrize("command", [["drivers"], ["drivers", "--bios-only"], ["windows-update"]])
def test_not_elevated_exits_with_warning(command: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    assert main.main(command, check_admin=lambda: False) == 1
    assert "Administrator privileges are required" in capsys.readouterr().err


@pytest.mark.parametrize("answer,expected", [("y", True), (" YES \n", True), ("n", False), ("", False)])
def test_ask_reboot(answer: str, expected: bool) -> None:
    assert main.ask_reboot(lambda prompt: answer) is expected


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        main.build_parser().parse_args([])


def test_ask_reboot_closed_stdin_declines() -> None:
    def closed(prompt: str) -> str:
        raise EOFError

    assert main.ask_reboot(closed) is False
