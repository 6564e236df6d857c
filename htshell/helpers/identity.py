"""Current user and login shell discovery."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

import logging
import os
import pwd
import subprocess
from dataclasses import dataclass
from typing import Mapping

from htshell.errors import SessionError, ShellLookupError


@dataclass(frozen=True)
class UserIdentity:
    """The invoking user, as found in the account database."""

    uid: int
    username: str
    home: str


def get_current_user() -> UserIdentity:
    """Return the user running this process."""
    uid = os.getuid()
    try:
        entry = pwd.getpwuid(uid)
    except KeyError as e:
        raise SessionError(
            f"unable to determine current user (uid {uid})") from e
    return UserIdentity(uid=entry.pw_uid, username=entry.pw_name,
                        home=entry.pw_dir)


def lookup_login_shell(username: str) -> str:
    """Return the login shell of username from `getent passwd`."""
    try:
        result = subprocess.run(
            ["getent", "passwd", username],
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise ShellLookupError(f"unable to run getent: {e}") from e

    if result.returncode != 0:
        raise ShellLookupError(
            f"getent exited with status {result.returncode}")

    out = result.stdout.rstrip("\n")
    if not out:
        raise ShellLookupError("empty output from getent")

    loc = out.rfind(":")
    if loc <= 0:
        raise ShellLookupError(f"bad output from getent: {out}")

    shell = out[loc + 1:].strip()
    if not shell:
        raise ShellLookupError(f"no login shell for {username}")
    return shell


def get_shell(user: UserIdentity, fallback: str,
              environ: Mapping[str, str] = None) -> str:
    """Return the current shell (SHELL), the login shell, or fallback."""
    environ = os.environ if environ is None else environ
    shell = environ.get("SHELL")
    if shell is not None:
        return shell

    try:
        return lookup_login_shell(user.username)
    except ShellLookupError as e:
        logging.warning(
            f"Unable to get login shell, using default ({fallback}): {e}")
        return fallback
