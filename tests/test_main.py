from unittest import mock

import pytest

import main
from errors import ConfigError, TerminalUnavailable


def test_parse_args_defaults_to_incoming_requests():
    args = main.parse_args(["requests"])
    assert args.direction == "incoming"
    assert main.parse_args(["send", "hi", "there"]).message == ["hi", "there"]


def test_missing_login_exits_with_error(capsys):
    with mock.patch("main.load_token", side_effect=ConfigError("No saved login")):
        with pytest.raises(SystemExit) as exc:
            main.main(["chat"])
    assert exc.value.code == 1
    assert "[ERROR] No saved login" in capsys.readouterr().err


def test_terminal_failure_exits_with_error(capsys):
    with mock.patch("main.load_token"), \
            mock.patch("main.CLI") as cli_cls:
        cli_cls.return_value.chat.side_effect = TerminalUnavailable("not a tty")
        with pytest.raises(SystemExit) as exc:
            main.main(["chat"])
    assert exc.value.code == 1
    assert "not a tty" in capsys.readouterr().err


def test_keyboard_interrupt_in_cooked_prompt_is_a_normal_exit(capsys):
    with mock.patch("main.CLI") as cli_cls:
        cli_cls.return_value.signup.side_effect = KeyboardInterrupt
        with pytest.raises(SystemExit) as exc:
            main.main(["signup"])
    assert exc.value.code == 0
    assert "Goodbye" in capsys.readouterr().out


def test_successful_command_exits_zero():
    with mock.patch("main.CLI") as cli_cls:
        with pytest.raises(SystemExit) as exc:
            main.main(["login", "alice", "pw"])
    cli_cls.return_value.login.assert_called_once_with("alice", "pw")
    assert exc.value.code == 0
