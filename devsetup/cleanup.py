# devsetup/cleanup.py
# -*- coding: utf-8 -*-
"""
Tracking of transient working directories and interrupt handling.

Steps that download or extract anything create their scratch space through a
`CleanupRegistry`. On SIGINT/SIGTERM/SIGHUP the registered handler removes
every directory still tracked, restores the terminal and exits; the same
cleanup runs at normal interpreter exit.
"""

import atexit
import logging
import shutil
import signal
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

from common.command_utils import log_devsetup

module_logger = logging.getLogger(__name__)

TEMP_PREFIX = "devsetup_"
INTERRUPT_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


class CleanupRegistry:
    """Owns the temporary directories created during a run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or module_logger
        self._paths: List[Path] = []

    @property
    def tracked(self) -> List[Path]:
        return list(self._paths)

    def make_temp_dir(self, purpose: str = "work") -> Path:
        """Create a temporary directory that is removed on cleanup or interrupt."""
        path = Path(tempfile.mkdtemp(prefix=f"{TEMP_PREFIX}{purpose}_"))
        self._paths.append(path)
        self.logger.debug(f"Created temporary directory {path}")
        return path

    def track(self, path: Path) -> Path:
        self._paths.append(Path(path))
        return Path(path)

    def release(self, path: Path) -> None:
        """Remove one tracked directory now."""
        path = Path(path)
        self._remove(path)
        if path in self._paths:
            self._paths.remove(path)

    def cleanup(self) -> None:
        """Remove every directory that is still tracked."""
        while self._paths:
            self._remove(self._paths.pop())

    def _remove(self, path: Path) -> None:
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            elif path.exists() or path.is_symlink():
                path.unlink()
            self.logger.debug(f"Removed temporary path {path}")
        except OSError as e:
            log_devsetup(
                f"Could not remove temporary path {path}: {e}",
                "warning",
                self.logger,
            )


def restore_terminal() -> None:
    """Return the controlling terminal to a sane state if there is one."""
    if not sys.stdin.isatty():
        return
    try:
        subprocess.run(["stty", "sane"], check=False)
    except OSError as e:
        module_logger.debug(f"Could not restore terminal state: {e}")


def exit_code_for_signal(signum: int) -> int:
    return 128 + int(signum)


def make_interrupt_handler(
    registry: CleanupRegistry,
    logger: Optional[logging.Logger] = None,
) -> Callable[[int, object], None]:
    logger_to_use = logger or module_logger

    def _handler(signum: int, frame: object) -> None:
        name = signal.Signals(signum).name
        log_devsetup(
            f"Interrupted by {name}. Removing temporary files and exiting.",
            "error",
            logger_to_use,
        )
        registry.cleanup()
        restore_terminal()
        sys.exit(exit_code_for_signal(signum))

    return _handler


def install_interrupt_handlers(
    registry: CleanupRegistry, logger: Optional[logging.Logger] = None
) -> None:
    """Hook interrupt signals and interpreter exit to `registry.cleanup`."""
    handler = make_interrupt_handler(registry, logger)
    for sig in INTERRUPT_SIGNALS:
        signal.signal(sig, handler)
    atexit.register(registry.cleanup)
