# common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions: timestamped backups, directory creation and
idempotent line/file writes.
"""

import datetime
import logging
import os
from pathlib import Path
from typing import Optional, Union

from devsetup.config_models import AppSettings

from .command_utils import _symbols_for, log_devsetup

module_logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def backup_path_for(
    file_path: Union[str, Path], now: Optional[datetime.datetime] = None
) -> Path:
    """
    Pick a free backup name of the form ``<path>.backup.<YYYYmmddHHMMSS>``.

    If that name is already taken (two backups within one second), a numeric
    suffix ``.1``, ``.2``, ... is appended until an unused name is found.
    """
    path = Path(file_path)
    timestamp = (now or datetime.datetime.now()).strftime(
        BACKUP_TIMESTAMP_FORMAT
    )
    candidate = path.with_name(f"{path.name}.backup.{timestamp}")
    counter = 1
    while candidate.exists() or candidate.is_symlink():
        candidate = path.with_name(f"{path.name}.backup.{timestamp}.{counter}")
        counter += 1
    return candidate


def backup_aside(
    file_path: Union[str, Path],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    now: Optional[datetime.datetime] = None,
) -> Optional[Path]:
    """
    Move an existing file, directory or link out of the way.

    The entry is renamed, not copied, so its contents and metadata are kept
    byte-for-byte under the new name.

    Parameters:
        file_path (Union[str, Path]): The entry to move aside.
        app_settings (Optional[AppSettings]): Application settings for log symbols.
        current_logger (Optional[logging.Logger]): Logger instance to use.
        now (Optional[datetime.datetime]): Timestamp override.

    Returns:
        Optional[Path]: The backup path, or None if nothing existed at `file_path`.

    Raises:
        OSError: If the rename fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = _symbols_for(app_settings)
    path = Path(file_path)

    if not path.exists() and not path.is_symlink():
        log_devsetup(
            f"{symbols.get('info', 'ℹ️')} {path} does not exist. No backup needed.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return None

    backup_path = backup_path_for(path, now)
    try:
        os.rename(path, backup_path)
    except OSError as e:
        log_devsetup(
            f"{symbols.get('error', '❌')} Failed to back up {path} to {backup_path}: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise
    log_devsetup(
        f"{symbols.get('success', '✅')} Backed up {path} to {backup_path}",
        "success",
        logger_to_use,
        app_settings,
    )
    return backup_path


def ensure_directory(
    dir_path: Union[str, Path],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """Create `dir_path` (and parents) if missing. Raises OSError on failure."""
    logger_to_use = current_logger if current_logger else module_logger
    path = Path(dir_path).expanduser()
    if path.is_dir():
        return path
    path.mkdir(parents=True, exist_ok=True)
    log_devsetup(
        f"{_symbols_for(app_settings).get('success', '✅')} Created directory: {path}",
        "debug",
        logger_to_use,
        app_settings,
    )
    return path


def is_writable_directory(dir_path: Union[str, Path]) -> bool:
    path = Path(dir_path)
    return path.is_dir() and os.access(path, os.W_OK | os.X_OK)


def write_file_if_absent(
    file_path: Union[str, Path],
    content: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    mode: Optional[int] = None,
) -> bool:
    """
    Write `content` to `file_path` only when nothing exists there yet.

    Returns:
        bool: True if the file was written, False if it already existed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    path = Path(file_path).expanduser()
    if path.exists() or path.is_symlink():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mode is not None:
        path.chmod(mode)
    log_devsetup(
        f"Wrote {path}",
        "debug",
        logger_to_use,
        app_settings,
    )
    return True


def append_line_if_missing(
    file_path: Union[str, Path],
    line: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Append `line` to `file_path` unless an identical line is already there.

    The file is created if it does not exist. Returns True when the file was
    changed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = _symbols_for(app_settings)
    path = Path(file_path).expanduser()

    existing = ""
    if path.exists():
        existing = path.read_text(encoding="utf-8")
        if line.strip() in (ln.strip() for ln in existing.splitlines()):
            log_devsetup(
                f"{symbols.get('info', 'ℹ️')} {path} already contains the line. Skipping.",
                "debug",
                logger_to_use,
                app_settings,
            )
            return False

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        if existing and not existing.endswith("\n"):
            handle.write("\n")
        handle.write(line.rstrip("\n") + "\n")
    log_devsetup(
        f"{symbols.get('success', '✅')} Updated {path}",
        "info",
        logger_to_use,
        app_settings,
    )
    return True
