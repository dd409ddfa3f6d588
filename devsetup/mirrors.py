# devsetup/mirrors.py
# -*- coding: utf-8 -*-
"""
Ordered package-mirror tiers with a forward-only cursor.

Tier 0 is the best expected performance, the last tier the most reliable.
The registry never reorders tiers and never performs network I/O; applying a
tier rewrites the apt sources file owned by this tool and, once, moves the
distribution repository files aside.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from common.command_utils import log_devsetup
from devsetup.config_models import AppSettings, MirrorSettings

module_logger = logging.getLogger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")
DEFAULT_SUITE = "stable"


class MirrorTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    endpoints: List[str]


def detect_codename(os_release_path: Path = OS_RELEASE_PATH) -> str:
    """Return VERSION_CODENAME from os-release, or "stable" if unavailable."""
    try:
        lines = os_release_path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return DEFAULT_SUITE
    for line in lines:
        key, _, value = line.partition("=")
        if key.strip() == "VERSION_CODENAME" and value.strip():
            return value.strip().strip('"')
    return DEFAULT_SUITE


class MirrorRegistry:
    """Holds the tiers and the index of the tier currently in use."""

    def __init__(
        self,
        tiers: List[MirrorTier],
        logger: Optional[logging.Logger] = None,
    ):
        if not tiers:
            raise ValueError("MirrorRegistry needs at least one tier")
        self.tiers: List[MirrorTier] = list(tiers)
        self.cursor: int = 0
        self._distribution_sources_disabled = False
        self.logger = logger or module_logger

    @classmethod
    def from_settings(
        cls,
        mirror_settings: MirrorSettings,
        logger: Optional[logging.Logger] = None,
    ) -> "MirrorRegistry":
        return cls(
            [
                MirrorTier(name=t.name, endpoints=list(t.endpoints))
                for t in mirror_settings.tiers
            ],
            logger=logger,
        )

    def active_tier(self) -> MirrorTier:
        return self.tiers[self.cursor]

    @property
    def is_exhausted(self) -> bool:
        return self.cursor >= len(self.tiers) - 1

    def advance(self) -> bool:
        """
        Move to the next tier.

        Returns:
            bool: False when already on the last tier; the cursor is then
            left unchanged.
        """
        if self.is_exhausted:
            return False
        self.cursor += 1
        self.logger.info(
            f"Switching package mirrors to tier '{self.active_tier().name}' "
            f"({self.cursor + 1}/{len(self.tiers)})."
        )
        return True

    def sources_entries(self, app_settings: AppSettings) -> Dict[str, str]:
        """The deb822 fields for the active tier."""
        mirror_settings = app_settings.mirrors
        suite = mirror_settings.suite or detect_codename()
        return {
            "Types": "deb",
            "URIs": " ".join(self.active_tier().endpoints),
            "Suites": f"{suite} {suite}-updates",
            "Components": " ".join(mirror_settings.components),
            "Signed-By": "/usr/share/keyrings/debian-archive-keyring.gpg",
        }

    def apply(self, app_settings: AppSettings, apt_manager) -> bool:
        """
        Point the package manager at the active tier.

        The managed sources file is rewritten for the tier. After the first
        successful write the distribution repository files are moved aside
        to timestamped backups, so a dead host mirror cannot fail every tier.
        Does nothing (and reports success) when source management is disabled
        in the settings.
        """
        if not app_settings.mirrors.manage_sources:
            log_devsetup(
                "Mirror source management is disabled; leaving apt sources untouched.",
                "debug",
                self.logger,
                app_settings,
            )
            return True
        tier = self.active_tier()
        log_devsetup(
            f"{app_settings.symbols.get('gear', '⚙️')} Applying mirror tier '{tier.name}': {', '.join(tier.endpoints)}",
            "info",
            self.logger,
            app_settings,
        )
        if not apt_manager.write_sources_file(
            app_settings.mirrors.sources_file,
            self.sources_entries(app_settings),
        ):
            return False
        return self._disable_distribution_sources(app_settings, apt_manager)

    def _disable_distribution_sources(
        self, app_settings: AppSettings, apt_manager
    ) -> bool:
        # The managed file must already be written, or apt would be left with no sources.
        if self._distribution_sources_disabled:
            return True
        managed = Path(app_settings.mirrors.sources_file)
        for source in app_settings.mirrors.distribution_sources:
            if Path(source) == managed:
                continue
            if not apt_manager.disable_source_file(source):
                return False
        self._distribution_sources_disabled = True
        return True
