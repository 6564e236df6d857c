"""Interactive shell session with a background token refresher."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

import asyncio
import logging
import os
import shlex
from enum import Enum
from typing import List, Mapping, Optional, Sequence

from htshell.config import Config
from htshell.errors import RefreshError, SessionError
from htshell.helpers import UserIdentity, get_current_user, get_shell
from htshell.store import TokenStore, open_token_store
from htshell.utils.shutdown import (
    install_shell_signal_handlers,
    remove_shell_signal_handlers,
)
from htshell.workers.refresh_token import TOKEN_FILE_VAR, Refresher


class SessionState(Enum):
    """Session lifecycle; states are only ever entered in this order."""

    INIT = "init"
    TOKEN_FILE_CREATED = "token-file-created"
    INITIAL_REFRESH_ATTEMPTED = "initial-refresh-attempted"
    REFRESHER_RUNNING = "refresher-running"
    SHELL_RUNNING = "shell-running"
    SHELL_EXITED = "shell-exited"
    REFRESHER_STOPPED = "refresher-stopped"
    CLEANED_UP = "cleaned-up"


def build_shell_env(environ: Mapping[str, str], token_file, log_file,
                    config: Config) -> dict:
    """Return the environment for the interactive shell."""
    env = dict(environ)
    env[TOKEN_FILE_VAR] = str(token_file)

    prompt_command = environ.get("PROMPT_COMMAND", "")
    if config.export_bearer_token:
        prompt_command = (f"export BEARER_TOKEN=$(cat "
                          f"{shlex.quote(str(token_file))});{prompt_command}")
    if config.log_at_prompt:
        log = shlex.quote(str(log_file))
        prompt_command = f"cat {log} && truncate -s0 {log};{prompt_command}"
    if prompt_command:
        env["PROMPT_COMMAND"] = prompt_command

    env["PS1"] = f"{config.log_prefix}{environ.get('PS1', '')}"
    return env


class ShellSession:
    """Run one interactive shell while keeping its token fresh."""

    def __init__(self, config: Config, argv: Sequence[str] = (),
                 environ: Optional[Mapping[str, str]] = None,
                 token_dir: str = None):
        self.config = config
        self.argv = list(argv)
        self.environ = dict(os.environ if environ is None else environ)
        self.token_dir = token_dir
        self.state = SessionState.INIT
        self.history: List[SessionState] = [SessionState.INIT]
        self.refresher: Optional[Refresher] = None
        self.shell: Optional[str] = None
        self.shell_returncode: Optional[int] = None

    def _advance(self, state: SessionState) -> None:
        self.state = state
        self.history.append(state)
        logging.debug(f"Session state: {state.value}")

    async def run(self) -> int:
        """Run the session to completion.

        Raises SessionError on fatal startup errors. Whatever happens, the
        refresher is stopped before the token file is removed.
        """
        try:
            user = get_current_user()
            with open_token_store(user.uid, self.config.log_prefix,
                                  self.token_dir) as store:
                self._advance(SessionState.TOKEN_FILE_CREATED)
                await self._run_with_store(user, store)
        finally:
            self._advance(SessionState.CLEANED_UP)
        return 0

    async def _run_with_store(self, user: UserIdentity,
                              store: TokenStore) -> None:
        self.refresher = Refresher(
            store.path,
            command=self.config.token_command,
            args=self.argv,
            log_file=store.log_path,
            logger=store.logger,
            environ=self.environ,
        )

        try:
            await self.refresher.refresh(interactive=True)
        except RefreshError as e:
            if self.config.require_initial_token:
                raise SessionError(f"unable to get initial token: {e}") from e
            logging.warning(
                f"Unable to get initial token, starting shell anyway: {e}")
        self._advance(SessionState.INITIAL_REFRESH_ATTEMPTED)

        self.refresher.start(self.config.refresh_interval)
        self._advance(SessionState.REFRESHER_RUNNING)
        try:
            await self._run_shell(user, store)
        finally:
            await self.refresher.stop()
            self._advance(SessionState.REFRESHER_STOPPED)

    async def _run_shell(self, user: UserIdentity, store: TokenStore) -> None:
        self.shell = get_shell(user, self.config.default_shell, self.environ)
        env = build_shell_env(self.environ, store.path, store.log_path,
                              self.config)
        if not self.config.log_at_prompt:
            logging.info(f"Refresher and {self.config.token_command} logs "
                         f"in {store.log_path}")

        try:
            process = await asyncio.create_subprocess_exec(self.shell, env=env)
        except OSError as e:
            raise SessionError(
                f"unable to start shell {self.shell}: {e}") from e
        self._advance(SessionState.SHELL_RUNNING)

        signals = install_shell_signal_handlers(process)
        try:
            self.shell_returncode = await process.wait()
        finally:
            remove_shell_signal_handlers(signals)
        logging.debug(f"Shell {self.shell} exited with status "
                      f"{self.shell_returncode}")
        self._advance(SessionState.SHELL_EXITED)


async def run_session(config: Config, argv: Sequence[str] = (),
                      environ: Optional[Mapping[str, str]] = None,
                      token_dir: str = None) -> int:
    """Run an interactive shell session; argv goes to the fetch tool."""
    return await ShellSession(config, argv, environ, token_dir).run()
