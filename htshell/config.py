"""Configuration management for htshell."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

import logging
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from colorlog import ColoredFormatter
from dotenv import load_dotenv

from htshell.errors import ConfigError

ENV_PREFIX = "HTSHELL_"
DEFAULT_REFRESH_INTERVAL = 10 * 60
DEFAULT_LOG_PREFIX = "[htshell] "
DEFAULT_TOKEN_COMMAND = "htgettoken"
DEFAULT_SHELL = "/bin/bash"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "QUIET"]

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


@dataclass(frozen=True)
class Config:
    """Process-wide settings, built once at startup."""

    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    export_bearer_token: bool = True
    log_at_prompt: bool = False
    log_prefix: str = DEFAULT_LOG_PREFIX
    token_command: str = DEFAULT_TOKEN_COMMAND
    default_shell: str = DEFAULT_SHELL
    require_initial_token: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate invariants."""
        if not self.refresh_interval > 0:
            raise ConfigError(
                f"refresh interval must be positive, "
                f"got {self.refresh_interval!r}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"invalid log level: {self.log_level!r}")


def boolish(value: str) -> bool:
    """Interpret an environment value as a boolean.

    Only "no", "false" and "0" (any case) are false, everything else is true.
    """
    return value.strip().lower() not in ("no", "false", "0")


def parse_duration(value: str) -> float:
    """Parse a duration string such as "10m", "1h30m" or "500ms" to seconds.

    A bare "0" is accepted. Raises ConfigError on malformed input.
    """
    text = value.strip()
    if not text:
        raise ConfigError("empty duration")

    sign = 1.0
    if text[0] in "+-":
        if text[0] == "-":
            sign = -1.0
        text = text[1:]

    if text == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ConfigError(f"invalid duration: {value!r}")
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        pos = match.end()

    if pos == 0:
        raise ConfigError(f"invalid duration: {value!r}")
    return sign * total


def format_duration(seconds: float) -> str:
    """Render seconds in a compact human form, e.g. "1h 5m 0s"."""
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def get_env_file(environ: Mapping[str, str] = None) -> Path:
    """Return the dotenv file consulted at startup."""
    environ = os.environ if environ is None else environ
    path = environ.get(f"{ENV_PREFIX}ENV_FILE")
    if path:
        return Path(path).expanduser()
    return Path.home() / ".htshell" / "env"


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build the configuration from environment variables.

    When no mapping is given, the process environment is used after seeding
    it from the dotenv file (variables already set win).
    """
    if environ is None:
        env_file = get_env_file()
        if load_dotenv(dotenv_path=env_file, override=False):
            logging.debug(f"Loaded environment from {env_file}")
        environ = os.environ

    kwargs = {}

    interval = environ.get(f"{ENV_PREFIX}REFRESH_INTERVAL")
    if interval is not None:
        kwargs["refresh_interval"] = parse_duration(interval)

    for key, field in (
        ("EXPORT_BEARER_TOKEN", "export_bearer_token"),
        ("LOG_AT_PROMPT", "log_at_prompt"),
        ("REQUIRE_INITIAL_TOKEN", "require_initial_token"),
    ):
        value = environ.get(f"{ENV_PREFIX}{key}")
        if value is not None:
            kwargs[field] = boolish(value)

    for key, field in (
        ("PREFIX", "log_prefix"),
        ("GETTOKEN", "token_command"),
        ("DEFAULT_SHELL", "default_shell"),
    ):
        value = environ.get(f"{ENV_PREFIX}{key}")
        if value is not None:
            kwargs[field] = value

    level = environ.get(f"{ENV_PREFIX}LOG_LEVEL")
    if level:
        kwargs["log_level"] = level.strip().upper()

    return Config(**kwargs)


def setup_logging(level: str = "INFO", prefix: str = DEFAULT_LOG_PREFIX) -> None:
    """Set logging configuration."""
    logger = logging.getLogger()
    logger.handlers.clear()
    if level == "QUIET":
        logger.setLevel(logging.ERROR)
        return
    logger.setLevel(getattr(logging, level, logging.INFO))

    prefix = prefix.replace("%", "%%")
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.DEBUG)
    color_formatter = ColoredFormatter(
        f"%(log_color)s{prefix}[%(asctime)s] [%(levelname)s]%(reset)s "
        "%(message)s",
        datefmt='%Y-%m-%d %H:%M:%S',
        log_colors={
            'DEBUG': 'white',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'bold_red,bg_white',
        }
    )
    stderr_handler.setFormatter(color_formatter)
    logger.addHandler(stderr_handler)


def create_refresher_logger(log_file: Path,
                            prefix: str = DEFAULT_LOG_PREFIX) -> logging.Logger:
    """Create the logger that writes refresher activity to log_file."""
    logger = logging.getLogger(f"htshell.refresher.{Path(log_file).name}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    prefix = prefix.replace("%", "%%")
    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        f"{prefix}%(asctime)s %(message)s", datefmt="%Y/%m/%d %H:%M:%S"))
    logger.addHandler(file_handler)
    return logger


def close_logger(logger: logging.Logger) -> None:
    """Detach and close all handlers of logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


if __name__ == "__main__":
    print("Cannot run this script directly. Please use htshell.")
    sys.exit(1)
