"""Shared fixtures for tests."""

from __future__ import annotations

import os
import pathlib
import stat
from typing import Callable

import pytest

from htshell.config import Config
from htshell.helpers import UserIdentity


def _write_script(path: pathlib.Path, body: str) -> pathlib.Path:
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def read_lines(path: pathlib.Path) -> list[str]:
    """Return the non-empty lines of path, or [] if it does not exist."""
    if not path.exists():
        return []
    return [line for line in path.read_text().splitlines() if line]


class StubTool:
    """A fake token fetch tool that records every invocation."""

    def __init__(self, tmp_path: pathlib.Path, exit_code: int = 0, sleep: float = 0):
        self.calls_file = tmp_path / "tool_calls"
        self.args_file = tmp_path / "tool_args"
        self.path = _write_script(
            tmp_path / "fake-gettoken",
            f'echo "$BEARER_TOKEN_FILE" >> "{self.calls_file}"\n'
            f'echo "$@" >> "{self.args_file}"\n'
            'echo "fake-gettoken output"\n'
            f"sleep {sleep}\n"
            f'[ {exit_code} -eq 0 ] && printf "token-%s" "$$" > "$BEARER_TOKEN_FILE"\n'
            f"exit {exit_code}\n",
        )

    @property
    def calls(self) -> list[str]:
        return read_lines(self.calls_file)

    @property
    def args(self) -> list[str]:
        return read_lines(self.args_file)


@pytest.fixture
def stub_tool(tmp_path: pathlib.Path) -> Callable[..., StubTool]:
    """Factory for fake fetch tools living in tmp_path."""

    def make(exit_code: int = 0, sleep: float = 0) -> StubTool:
        return StubTool(tmp_path, exit_code=exit_code, sleep=sleep)

    return make


@pytest.fixture
def stub_shell(tmp_path: pathlib.Path) -> Callable[..., pathlib.Path]:
    """Factory for a fake shell that records its environment and exits."""

    def make(sleep: float = 0) -> pathlib.Path:
        record = tmp_path / "shell_env"
        return _write_script(
            tmp_path / "fake-shell",
            f'echo "$BEARER_TOKEN_FILE" >> "{record}"\n'
            f'echo "$PS1" >> "{record}"\n'
            f"sleep {sleep}\n",
        )

    return make


@pytest.fixture
def token_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "tokens"
    path.mkdir()
    return path


@pytest.fixture
def fake_user(monkeypatch: pytest.MonkeyPatch) -> UserIdentity:
    """Pin the current user so tests do not depend on the account database."""
    user = UserIdentity(uid=os.getuid(), username="tester", home="/home/tester")
    monkeypatch.setattr("htshell.session.get_current_user", lambda: user)
    return user


@pytest.fixture
def base_config() -> Config:
    return Config(refresh_interval=3600, log_prefix="[test] ")
