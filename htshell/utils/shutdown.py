"""Signal handling while the interactive shell runs."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

import asyncio
import logging
import signal
from typing import List

# The shell owns the terminal, so keyboard signals are its business.
IGNORED_SIGNALS = (signal.SIGINT, signal.SIGQUIT)
# Ask the shell to exit; the normal shutdown path does the rest.
FORWARDED_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


def forward_signal(process: asyncio.subprocess.Process,
                   sig: signal.Signals) -> None:
    """Send sig to process if it is still running."""
    if process.returncode is not None:
        return
    logging.info(f"Received {sig.name}, forwarding to shell...")
    try:
        process.send_signal(sig)
    except ProcessLookupError:
        pass


def install_shell_signal_handlers(
        process: asyncio.subprocess.Process) -> List[signal.Signals]:
    """Install handlers for the lifetime of the shell process."""
    loop = asyncio.get_running_loop()
    installed = []
    try:
        for sig in IGNORED_SIGNALS:
            loop.add_signal_handler(
                sig, lambda s=sig: logging.debug(f"Ignoring {s.name}"))
            installed.append(sig)
        for sig in FORWARDED_SIGNALS:
            loop.add_signal_handler(sig, forward_signal, process, sig)
            installed.append(sig)
    except NotImplementedError:
        logging.warning("Signal handlers not supported on this platform.")
    return installed


def remove_shell_signal_handlers(signals: List[signal.Signals]) -> None:
    """Remove handlers installed by install_shell_signal_handlers."""
    loop = asyncio.get_running_loop()
    for sig in signals:
        loop.remove_signal_handler(sig)
