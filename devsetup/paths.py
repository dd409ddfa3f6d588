# devsetup/paths.py
# -*- coding: utf-8 -*-
"""
Resolution of the canonical dotfiles directory.

On WSL the dotfiles may live on the Windows side of the file system so that
both environments share one copy ("unified"); elsewhere, or when chosen, they
live in the Linux home directory ("isolated to host"). The decision is made
once per run and memoized.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from common.command_utils import command_exists, log_devsetup, run_command
from common.file_utils import ensure_directory, is_writable_directory
from devsetup import config as static_config
from devsetup.config_models import AppSettings, DotfilesMode
from devsetup.context import ExecutionContext
from devsetup.exceptions import PathResolutionError
from devsetup.interaction import confirm

module_logger = logging.getLogger(__name__)

PROC_VERSION_PATH = Path("/proc/version")


class DotfilesLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    canonical_path: Path
    mode: DotfilesMode

    @property
    def is_unified(self) -> bool:
        return self.mode == DotfilesMode.UNIFIED


def is_wsl(proc_version_path: Path = PROC_VERSION_PATH) -> bool:
    """True when the kernel identifies itself as a Microsoft (WSL) build."""
    try:
        return "microsoft" in proc_version_path.read_text().lower()
    except OSError:
        return False


def windows_username(
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Ask Windows for the current user's name via cmd.exe; None if unavailable."""
    logger_to_use = current_logger if current_logger else module_logger
    if not command_exists("cmd.exe"):
        return None
    try:
        result = run_command(
            ["cmd.exe", "/c", "echo %USERNAME%"],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except OSError as e:
        log_devsetup(
            f"Could not query the Windows user name: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return None
    name = (result.stdout or "").strip().replace("\r", "")
    if result.returncode != 0 or not name or "%" in name:
        return None
    return name


class PathResolver:
    """
    Decides where the canonical dotfiles directory lives and creates it.

    Parameters:
    context : ExecutionContext
        Supplies the interaction mode and the dotfiles settings.
    wsl : Optional[bool]
        Override WSL detection (tests).
    windows_user : Optional[str]
        Override the Windows user-name lookup (tests).
    windows_users_root : Path
        Where Windows home directories are mounted.
    """

    def __init__(
        self,
        context: ExecutionContext,
        logger: Optional[logging.Logger] = None,
        wsl: Optional[bool] = None,
        windows_user: Optional[str] = None,
        windows_users_root: Path = static_config.WINDOWS_USERS_ROOT,
    ):
        self.context = context
        self.logger = logger or module_logger
        self._wsl = wsl
        self._windows_user = windows_user
        self.windows_users_root = Path(windows_users_root)
        self._location: Optional[DotfilesLocation] = None

    @property
    def wsl(self) -> bool:
        if self._wsl is None:
            self._wsl = is_wsl()
        return self._wsl

    def unified_candidate(self) -> Optional[Path]:
        """The cross-host location, or None when no such location is available."""
        dotfiles = self.context.settings.dotfiles
        if dotfiles.unified_path:
            return Path(dotfiles.unified_path).expanduser()
        if not self.wsl:
            return None
        user = self._windows_user or windows_username(
            self.context.settings, self.logger
        )
        if not user:
            return None
        windows_home = self.windows_users_root / user
        if not windows_home.is_dir():
            return None
        return windows_home / dotfiles.dir_name

    def local_candidate(self) -> Path:
        dotfiles = self.context.settings.dotfiles
        if dotfiles.local_path:
            return Path(dotfiles.local_path).expanduser()
        return Path.home() / dotfiles.dir_name

    def _choose_mode(self, unified: Optional[Path]) -> DotfilesMode:
        if unified is None:
            return DotfilesMode.ISOLATED_TO_HOST
        default_mode = self.context.settings.dotfiles.default_mode
        if not self.context.interactive:
            return default_mode
        shared = confirm(
            self.context,
            f"Keep dotfiles in {unified} so Windows and Linux share them?",
            default=default_mode == DotfilesMode.UNIFIED,
            current_logger=self.logger,
        )
        return DotfilesMode.UNIFIED if shared else DotfilesMode.ISOLATED_TO_HOST

    def resolve(self) -> DotfilesLocation:
        """
        Return the dotfiles location, deciding and creating it on first call.

        Raises:
            PathResolutionError: The directory cannot be created or is not writable.
        """
        if self._location is not None:
            return self._location

        unified = self.unified_candidate()
        local = self.local_candidate()
        if unified is not None and unified.is_dir():
            mode, path = DotfilesMode.UNIFIED, unified
        elif local.is_dir():
            mode, path = DotfilesMode.ISOLATED_TO_HOST, local
        else:
            mode = self._choose_mode(unified)
            path = unified if mode == DotfilesMode.UNIFIED else local
            try:
                ensure_directory(path, self.context.settings, self.logger)
            except OSError as e:
                raise PathResolutionError(
                    f"Cannot create dotfiles directory {path}: {e}"
                ) from e

        if not is_writable_directory(path):
            raise PathResolutionError(
                f"Dotfiles directory {path} is not writable."
            )

        self._location = DotfilesLocation(
            canonical_path=path.resolve(), mode=mode
        )
        log_devsetup(
            f"{self.context.symbols.get('info', 'ℹ️')} Dotfiles directory: {self._location.canonical_path} ({mode.value})",
            "info",
            self.logger,
            self.context.settings,
        )
        return self._location
