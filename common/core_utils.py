# common/core_utils.py
# -*- coding: utf-8 -*-
"""
Root logger configuration for devsetup runs.

Every record goes to stdout and, when `DEVSETUP_LOG_FILE` names one, is
appended to a log file as well. Each line carries the run prefix (default
`[DEV-SETUP]`) and a symbol for its level, so a long unattended run can be
scanned for warnings at a glance.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from devsetup.config_models import SYMBOLS_DEFAULT

module_logger = logging.getLogger(__name__)

# LOGLEVEL=DEBUG also shows where each step function logged from.
DEBUG_LOG_FORMAT = "{log_prefix}%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"
SIMPLE_LOG_FORMAT_WITH_PREFIX_PLACEHOLDER = "{log_prefix}%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"
SIMPLE_LOG_FORMAT_NO_PREFIX = (
    "%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"
)


class SymbolFormatter(logging.Formatter):
    """
    Fills `%(symbol)s` from the run's symbol table (`AppSettings.symbols`).

    A table that lacks a level falls back to the built-in emoji for it.
    """

    LEVEL_KEYS = {
        logging.DEBUG: ("debug", "🐛"),
        logging.INFO: ("info", "ℹ️"),
        logging.WARNING: ("warning", "⚠️"),
        logging.ERROR: ("error", "❌"),
        logging.CRITICAL: ("critical", "🔥"),
    }

    def __init__(
        self,
        fmt=None,
        datefmt=None,
        style="%",
        validate=True,
        symbols: Optional[Dict[str, str]] = None,
    ):
        super().__init__(fmt, datefmt, style, validate)
        self.symbols = symbols or SYMBOLS_DEFAULT

    def format(self, record):
        key, fallback = self.LEVEL_KEYS.get(record.levelno, ("", ""))
        record.symbol = self.symbols.get(key, fallback) if key else ""
        return super().format(record)


def level_from_env(default: int = logging.INFO) -> int:
    """Read `LOGLEVEL` (name or number); unknown values give `default`."""
    raw = os.environ.get("LOGLEVEL", "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    log_format_str: Optional[str] = None,
    log_prefix: Optional[str] = None,
    symbols: Optional[Dict[str, str]] = None,
) -> None:
    """
    Replace the root logger's handlers with the devsetup console and file handlers.

    Called once by the entry point, before settings are loaded, and again
    once they are known so the configured prefix and symbols take effect.

    Parameters:
    log_level: int
        Usually `level_from_env()`. At DEBUG the default format adds the
        module, function and line of each record.
    log_file: Optional[str]
        Log file to append to (`~` is expanded). A file that cannot be opened
        is reported on stderr and the run continues with console output only.
    log_to_console: bool
        Whether to log to stdout.
    log_format_str: Optional[str]
        Overrides the default format. May contain a ``{log_prefix}`` placeholder;
        without one the prefix is put in front.
    log_prefix: Optional[str]
        Run prefix such as ``[DEV-SETUP]``.
    symbols: Optional[Dict[str, str]]
        Level symbols from the settings; None uses the built-in set.
    """
    handlers: List[logging.Handler] = []
    if log_file:
        try:
            log_file_path = Path(log_file).expanduser()
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file_path, mode="a"))
        except OSError as e:
            print(
                f"Warning: Could not create file handler for log file {log_file}: {e}",
                file=sys.stderr,
            )

    if log_to_console:
        handlers.append(logging.StreamHandler(sys.stdout))

    if not handlers:  # pragma: no cover
        handlers.append(logging.StreamHandler(sys.stdout))
        if log_level > logging.INFO:
            log_level = logging.INFO

    actual_prefix = (
        (log_prefix.strip() + " ")
        if log_prefix and log_prefix.strip()
        else ""
    )

    final_format_str: str
    if log_format_str:
        if "{log_prefix}" in log_format_str:
            final_format_str = log_format_str.format(log_prefix=actual_prefix)
        else:
            final_format_str = actual_prefix + log_format_str
    elif log_level <= logging.DEBUG:
        final_format_str = DEBUG_LOG_FORMAT.format(log_prefix=actual_prefix)
    elif actual_prefix:
        final_format_str = SIMPLE_LOG_FORMAT_WITH_PREFIX_PLACEHOLDER.format(
            log_prefix=actual_prefix
        )
    else:
        final_format_str = SIMPLE_LOG_FORMAT_NO_PREFIX

    formatter = SymbolFormatter(
        fmt=final_format_str,
        datefmt="%Y-%m-%d %H:%M:%S",
        symbols=symbols,
    )

    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    module_logger.debug(
        f"Logging configured. Level: {logging.getLevelName(log_level)}. Format: '{final_format_str}'"
    )
