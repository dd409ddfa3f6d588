# devsetup/links.py
# -*- coding: utf-8 -*-
"""
Managed links from well-known paths into the dotfiles directory.

A managed target is a symbolic link pointing at a file inside the canonical
dotfiles directory. Whatever occupied the target before is renamed to a
timestamped backup, never deleted, and the link itself is put in place with
an atomic rename so the target is never left half-written.
"""

import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from common.command_utils import log_devsetup
from common.file_utils import backup_aside, write_file_if_absent
from devsetup.context import ExecutionContext
from devsetup.exceptions import LinkError
from devsetup.interaction import confirm
from devsetup.paths import DotfilesLocation

module_logger = logging.getLogger(__name__)


class LinkResult(str, Enum):
    UNCHANGED = "unchanged"
    LINKED = "linked"
    BACKED_UP_AND_LINKED = "backed_up_and_linked"
    DECLINED = "declined"


def points_to(target: Path, source: Path) -> bool:
    """True if `target` is a symbolic link whose destination is `source`."""
    if not target.is_symlink():
        return False
    link_dest = Path(os.readlink(target))
    if not link_dest.is_absolute():
        link_dest = target.parent / link_dest
    return os.path.abspath(link_dest) == os.path.abspath(source)


def replace_with_symlink(target: Path, source: Path) -> None:
    """Create `target` -> `source` via a temporary link and os.replace."""
    temp_link = target.with_name(f".{target.name}.devsetup-{os.getpid()}.tmp")
    if temp_link.is_symlink() or temp_link.exists():
        temp_link.unlink()
    os.symlink(source, temp_link)
    try:
        os.replace(temp_link, target)
    except OSError:
        temp_link.unlink()
        raise


class LinkManager:
    """Maintains links from home-directory paths into the dotfiles directory."""

    def __init__(
        self,
        context: ExecutionContext,
        location: DotfilesLocation,
        logger: Optional[logging.Logger] = None,
    ):
        self.context = context
        self.location = location
        self.logger = logger or module_logger
        self.backups: List[Path] = []

    def source_path(self, source_relpath: Union[str, Path]) -> Path:
        return self.location.canonical_path / source_relpath

    def _ensure_source(
        self,
        source: Path,
        content: Optional[str],
        source_file: Optional[Path],
        mode: Optional[int],
    ) -> None:
        if source.exists():
            return
        if content is not None:
            write_file_if_absent(
                source, content, self.context.settings, self.logger, mode=mode
            )
        elif source_file is not None:
            source.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source_file, source)
            if mode is not None:
                source.chmod(mode)
        else:
            raise LinkError(
                f"Source {source} does not exist and no content was given."
            )

    def _create_source(self, source, content, source_file, mode) -> None:
        # Called only once the target is known to be ours to manage.
        try:
            self._ensure_source(source, content, source_file, mode)
        except OSError as e:
            raise LinkError(f"Cannot create managed file {source}: {e}") from e

    def ensure_managed(
        self,
        target_path: Union[str, Path],
        source_relpath: Union[str, Path],
        content: Optional[str] = None,
        source_file: Optional[Union[str, Path]] = None,
        mode: Optional[int] = None,
    ) -> LinkResult:
        """
        Make `target_path` a link to `source_relpath` inside the dotfiles directory.

        Args:
            target_path: The well-known path, e.g. ``~/.zshrc``.
            source_relpath: Path of the managed file relative to the dotfiles directory.
            content: Initial content, written only when the source is absent.
            source_file: Alternatively, a file copied in when the source is absent.
            mode: Permission bits for a newly written source.

        Returns:
            LinkResult: What was done. Repeating the call returns UNCHANGED.

        Raises:
            LinkError: The source could not be created or the link could not be placed.
        """
        symbols = self.context.symbols
        target = Path(target_path).expanduser()
        source = self.source_path(source_relpath)
        source_file = Path(source_file) if source_file is not None else None

        if points_to(target, source):
            self._create_source(source, content, source_file, mode)
            log_devsetup(
                f"{target} already links to {source}.",
                "debug",
                self.logger,
                self.context.settings,
            )
            return LinkResult.UNCHANGED

        occupied = target.exists() or target.is_symlink()
        if occupied and self.context.interactive:
            if not confirm(
                self.context,
                f"{target} exists. Back it up and link it to {source}?",
                default=True,
                current_logger=self.logger,
            ):
                log_devsetup(
                    f"{symbols.get('warning', '!')} Left {target} unmanaged at user request.",
                    "warning",
                    self.logger,
                    self.context.settings,
                )
                return LinkResult.DECLINED

        self._create_source(source, content, source_file, mode)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if occupied:
                backup = backup_aside(
                    target, self.context.settings, self.logger
                )
                if backup is not None:
                    self.backups.append(backup)
            replace_with_symlink(target, source)
        except OSError as e:
            raise LinkError(f"Cannot link {target} -> {source}: {e}") from e

        log_devsetup(
            f"{symbols.get('link', '🔗')} {target} -> {source}",
            "info",
            self.logger,
            self.context.settings,
        )
        return LinkResult.BACKED_UP_AND_LINKED if occupied else LinkResult.LINKED

    def backup_aside(self, path: Union[str, Path]) -> Optional[Path]:
        """Rename a whole file or directory to a timestamped backup."""
        try:
            backup = backup_aside(
                Path(path).expanduser(), self.context.settings, self.logger
            )
        except OSError as e:
            raise LinkError(f"Cannot back up {path}: {e}") from e
        if backup is not None:
            self.backups.append(backup)
        return backup
