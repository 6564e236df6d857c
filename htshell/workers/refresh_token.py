"""Refresh bearer token background task."""
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
from pathlib import Path
from typing import Mapping, Optional, Sequence

from htshell.config import DEFAULT_TOKEN_COMMAND, format_duration
from htshell.errors import ConfigError, RefreshError, RefresherError

TOKEN_FILE_VAR = "BEARER_TOKEN_FILE"


class Refresher:
    """Keep a bearer token file populated by running the fetch tool.

    One background task calls the tool every ``interval`` seconds until
    :meth:`stop` is awaited. Cancellation is only observed between
    refreshes; a tool run in progress is always allowed to finish.
    """

    def __init__(self, token_file, command: str = DEFAULT_TOKEN_COMMAND,
                 args: Sequence[str] = (), log_file=None,
                 logger: Optional[logging.Logger] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize the refresher for token_file."""
        self.token_file = str(token_file)
        self.command = command
        self.args = list(args)
        self.log_file = Path(log_file) if log_file else None
        self.logger = logger or logging.getLogger(__name__)
        self.environ = environ
        self.refresh_count = 0
        self._cancel: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self._stop_requested = False

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def stopped(self) -> bool:
        return self._stop_requested and (
            self._task is None or self._task.done())

    def _child_env(self) -> dict:
        env = dict(os.environ if self.environ is None else self.environ)
        env[TOKEN_FILE_VAR] = self.token_file
        return env

    async def refresh(self, interactive: bool = False) -> None:
        """Run the fetch tool once.

        Interactive runs share the terminal so the tool can prompt the user.
        Otherwise there is no input and output goes to the log file.
        Raises RefreshError if the tool cannot be started or fails.
        """
        self.logger.info(f"refreshing bearer token ({self.token_file})")
        self.refresh_count += 1

        if interactive:
            await self._run_tool(None, None)
            return

        if self.log_file is None:
            await self._run_tool(asyncio.subprocess.DEVNULL,
                                 asyncio.subprocess.DEVNULL)
            return

        try:
            out = open(self.log_file, "ab")
        except OSError as e:
            raise RefreshError(
                f"unable to open log file {self.log_file}: {e}") from e
        with out:
            await self._run_tool(asyncio.subprocess.DEVNULL, out)

    async def _run_tool(self, stdin, output) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=stdin,
                stdout=output,
                stderr=output,
                env=self._child_env(),
            )
        except OSError as e:
            raise RefreshError(f"unable to run {self.command}: {e}") from e

        try:
            returncode = await process.wait()
        except asyncio.CancelledError:
            # Never leave the tool running to write after cleanup.
            self.logger.warning(
                f"refresh cancelled, terminating {self.command}")
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            await process.wait()
            raise
        if returncode != 0:
            raise RefreshError(
                f"{self.command} exited with status {returncode}", returncode)

    def start(self, interval: float) -> None:
        """Start refreshing every interval seconds in the background.

        Must be called from a running event loop, at most once.
        """
        if self._task is not None or self._stop_requested:
            raise RefresherError("token refresher can only be started once")
        if not interval > 0:
            raise ConfigError(
                f"refresh interval must be positive, got {interval!r}")

        self.logger.info(f"refreshing token ({self.token_file}) every "
                         f"{format_duration(interval)}")
        self._cancel = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            self._refresh_loop(interval))

    async def _refresh_loop(self, interval: float) -> None:
        while True:
            try:
                await asyncio.wait_for(self._cancel.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            else:
                break

            try:
                await self.refresh(interactive=False)
            except RefreshError as e:
                self.logger.error(f"error refreshing token: {e}")

        self.logger.info("token refresher stopped")

    async def stop(self) -> None:
        """Signal the background task to stop and wait until it has.

        Cancelling the caller does not cut the wait short: a tool run in
        progress still finishes before the cancellation is re-raised.
        """
        self._stop_requested = True
        if self._task is None:
            return

        if not self._cancel.is_set():
            logging.info("Stopping the token refresher...")
            self._cancel.set()

        cancelled = False
        while not self._task.done():
            try:
                await asyncio.shield(self._task)
            except asyncio.CancelledError:
                if self._task.cancelled():
                    break
                cancelled = True
            except Exception:
                break

        if not self._task.cancelled() and self._task.exception() is not None:
            logging.error(
                f"Token refresher failed: {self._task.exception()!r}")
        if cancelled:
            raise asyncio.CancelledError()
