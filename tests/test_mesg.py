import os

import pytest

from ulutils.mesg import (
    NotATerminalError,
    find_terminal_fd,
    main,
    messages_allowed,
    new_mode,
)


@pytest.fixture
def fake_tty(tmp_path, monkeypatch):
    tty = tmp_path / "tty"
    tty.write_bytes(b"")
    os.chmod(tty, 0o620)
    real_stat = os.stat
    real_chmod = os.chmod
    monkeypatch.setattr(os, "isatty", lambda fd: fd == 0)
    monkeypatch.setattr(os, "fstat", lambda fd: real_stat(tty))
    monkeypatch.setattr(os, "fchmod", lambda fd, mode: real_chmod(tty, mode))
    return tty


def _perms(path):
    return path.stat().st_mode & 0o777


def test_new_mode_enable_sets_group_write_only():
    assert new_mode(0o100644, "y") == 0o100664
    assert new_mode(0o600, "y") == 0o620


def test_new_mode_disable_clears_group_and_other_write():
    assert new_mode(0o100666, "n") == 0o100644
    assert new_mode(0o622, "n") == 0o600


def test_messages_allowed():
    assert messages_allowed(0o620) is True
    assert messages_allowed(0o602) is True
    assert messages_allowed(0o600) is False


def test_find_terminal_fd_picks_first(monkeypatch):
    monkeypatch.setattr(os, "isatty", lambda fd: fd in (1, 2))
    assert find_terminal_fd() == 1


def test_find_terminal_fd_without_terminal(monkeypatch):
    monkeypatch.setattr(os, "isatty", lambda fd: False)
    with pytest.raises(NotATerminalError, match="stdin/stdout/stderr is not a terminal"):
        find_terminal_fd()


def test_invalid_verb():
    with pytest.raises(SystemExit) as exc:
        main(["foo"])
    assert exc.value.code == 1


@pytest.mark.parametrize("args", [[], ["y"], ["n"]])
def test_no_terminal(monkeypatch, capsys, args):
    monkeypatch.setattr(os, "isatty", lambda fd: False)
    assert main(args) == 2
    assert "stdin/stdout/stderr is not a terminal" in capsys.readouterr().err


def test_query_allowed(fake_tty, capsys):
    assert main([]) == 0
    assert capsys.readouterr().out == "is y\n"


def test_disable_then_query(fake_tty, capsys):
    assert main(["n"]) == 1
    assert _perms(fake_tty) == 0o600
    capsys.readouterr()
    assert main([]) == 1
    assert capsys.readouterr().out == "is n\n"


def test_enable_verbose(fake_tty, capsys):
    os.chmod(fake_tty, 0o600)
    assert main(["-v", "y"]) == 0
    assert _perms(fake_tty) == 0o620
    assert capsys.readouterr().out == "write access to your terminal is allowed\n"


def test_disable_verbose(fake_tty, capsys):
    assert main(["--verbose", "n"]) == 1
    assert capsys.readouterr().out == "write access to your terminal is denied\n"