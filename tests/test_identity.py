"""Tests for user and shell discovery."""

from __future__ import annotations

import logging
import os
import pwd
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from htshell.errors import SessionError, ShellLookupError
from htshell.helpers import UserIdentity, get_current_user, get_shell, lookup_login_shell

USER = UserIdentity(uid=1000, username="user", home="/home/user")


def _getent(stdout: str = "", returncode: int = 0) -> MagicMock:
    return MagicMock(return_value=subprocess.CompletedProcess(
        ["getent", "passwd", "user"], returncode, stdout=stdout, stderr=""))


class TestGetCurrentUser:
    def test_returns_account_entry(self) -> None:
        entry = pwd.struct_passwd(("alice", "x", 1234, 1234, "", "/home/alice", "/bin/zsh"))
        with patch("htshell.helpers.identity.pwd.getpwuid", return_value=entry):
            user = get_current_user()

        assert user == UserIdentity(uid=1234, username="alice", home="/home/alice")

    def test_missing_entry_is_fatal(self) -> None:
        with patch("htshell.helpers.identity.pwd.getpwuid", side_effect=KeyError("uid not found")):
            with pytest.raises(SessionError, match=f"uid {os.getuid()}"):
                get_current_user()


class TestLookupLoginShell:
    def test_last_passwd_field(self) -> None:
        run = _getent("user:x:1000:1000::/home/user:/bin/zsh\n")
        with patch("htshell.helpers.identity.subprocess.run", run):
            assert lookup_login_shell("user") == "/bin/zsh"

        assert run.call_args.args[0] == ["getent", "passwd", "user"]

    def test_non_zero_exit(self) -> None:
        with patch("htshell.helpers.identity.subprocess.run", _getent(returncode=2)):
            with pytest.raises(ShellLookupError, match="status 2"):
                lookup_login_shell("user")

    def test_getent_missing(self) -> None:
        with patch("htshell.helpers.identity.subprocess.run", side_effect=FileNotFoundError("getent")):
            with pytest.raises(ShellLookupError):
                lookup_login_shell("user")

    @pytest.mark.parametrize("stdout", ["", "\n", ":/bin/zsh\n", "no-colons-here\n", "user:x:1000:1000::/home/user:\n"])
    def test_bad_output(self, stdout: str) -> None:
        with patch("htshell.helpers.identity.subprocess.run", _getent(stdout)):
            with pytest.raises(ShellLookupError):
                lookup_login_shell("user")


class TestGetShell:
    def test_shell_variable_wins(self) -> None:
        run = _getent("user:x:1000:1000::/home/user:/bin/zsh\n")
        with patch("htshell.helpers.identity.subprocess.run", run):
            assert get_shell(USER, "/bin/bash", {"SHELL": "/usr/bin/fish"}) == "/usr/bin/fish"

        run.assert_not_called()

    def test_login_shell_when_shell_unset(self) -> None:
        with patch("htshell.helpers.identity.subprocess.run", _getent("user:x:1000:1000::/home/user:/bin/zsh\n")):
            assert get_shell(USER, "/bin/bash", {}) == "/bin/zsh"

    def test_fallback_when_lookup_fails(self, caplog) -> None:
        with patch("htshell.helpers.identity.subprocess.run", _getent(returncode=2)):
            with caplog.at_level(logging.WARNING):
                assert get_shell(USER, "/bin/bash", {}) == "/bin/bash"

        assert "using default (/bin/bash)" in caplog.text
