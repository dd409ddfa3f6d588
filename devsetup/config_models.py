# devsetup/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration.

This module defines the structured settings for the provisioning run,
including defaults, type annotations, and descriptions. Settings are read
from the environment (prefix ``DEVSETUP_``, nested with ``__``) and may be
overridden by a YAML file, see `devsetup.config_loader`.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from devsetup import config as static_config

SYMBOLS_DEFAULT: Dict[str, str] = dict(static_config.SYMBOLS)


class DotfilesMode(str, Enum):
    """Where the canonical dotfiles directory lives."""

    UNIFIED = "unified"
    ISOLATED_TO_HOST = "isolated"


class MirrorTierSettings(BaseModel):
    """One ordered set of package-source endpoints tried together."""

    name: str = Field(description="Human-readable tier name.")
    endpoints: List[str] = Field(
        min_length=1, description="Repository base URLs, in preference order."
    )


class MirrorSettings(BaseModel):
    """Package mirror failover settings."""

    tiers: List[MirrorTierSettings] = Field(
        default_factory=lambda: [
            MirrorTierSettings(**tier)
            for tier in static_config.DEFAULT_MIRROR_TIERS
        ],
        description="Mirror tiers from best expected performance to maximal reliability.",
    )
    manage_sources: bool = Field(
        default=True,
        description="Write a deb822 sources file for the active tier.",
    )
    sources_file: str = Field(
        default=static_config.MIRROR_SOURCES_FILE_DEFAULT,
        description="Path of the deb822 sources file owned by this tool.",
    )
    distribution_sources: List[str] = Field(
        default_factory=lambda: list(static_config.DISTRIBUTION_SOURCE_FILES),
        description="Host repository files moved aside so that only the active tier is used.",
    )
    suite: Optional[str] = Field(
        default=None,
        description="Debian codename. Detected from /etc/os-release when unset.",
    )
    components: List[str] = Field(
        default_factory=lambda: list(static_config.MIRROR_COMPONENTS_DEFAULT)
    )

    @field_validator("tiers")
    @classmethod
    def _tiers_not_empty(
        cls, value: List[MirrorTierSettings]
    ) -> List[MirrorTierSettings]:
        if not value:
            raise ValueError("at least one mirror tier is required")
        names = [tier.name for tier in value]
        if len(set(names)) != len(names):
            raise ValueError("mirror tier names must be unique")
        return value


class RetrySettings(BaseModel):
    """Bounded retry policy for package installation."""

    max_attempts: int = Field(
        default=static_config.MAX_INSTALL_ATTEMPTS_DEFAULT, ge=1, le=10
    )
    backoff_seconds: float = Field(
        default=static_config.RETRY_BACKOFF_SECONDS_DEFAULT, ge=0
    )


class DotfilesSettings(BaseModel):
    """Canonical configuration-source location settings."""

    dir_name: str = Field(default=static_config.DOTFILES_DIR_NAME_DEFAULT)
    unified_path: Optional[str] = Field(
        default=None,
        description="Explicit cross-host location. Derived from the Windows home on WSL when unset.",
    )
    local_path: Optional[str] = Field(
        default=None,
        description="Host-local location. Defaults to ~/<dir_name>.",
    )
    default_mode: DotfilesMode = Field(
        default=DotfilesMode.ISOLATED_TO_HOST,
        description="Mode chosen in unattended runs when nothing exists yet.",
    )
    version_control: bool = Field(
        default=False,
        description="Commit isolated dotfiles too (unified ones are always committed).",
    )
    remote_url: Optional[str] = Field(
        default=None, description="Remote added as 'origin' when missing."
    )
    commit_message: str = Field(default="Update dotfiles via devsetup")


class GitSettings(BaseModel):
    """Git identity and defaults."""

    user_name: Optional[str] = None
    user_email: Optional[str] = None
    defaults: Dict[str, str] = Field(
        default_factory=lambda: dict(static_config.GIT_DEFAULTS)
    )


class WorkspaceSettings(BaseModel):
    """Filesystem layout contract."""

    root: str = Field(default=static_config.WORKSPACE_ROOT_DEFAULT)
    subdirs: List[str] = Field(
        default_factory=lambda: list(static_config.WORKSPACE_SUBDIRS)
    )
    home_dirs: List[str] = Field(
        default_factory=lambda: list(static_config.HOME_DIRS)
    )


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="DEVSETUP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_prefix: str = Field(
        default=static_config.LOG_PREFIX_DEFAULT,
        description="Prefix for log messages.",
    )
    mirrors: MirrorSettings = Field(default_factory=MirrorSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    dotfiles: DotfilesSettings = Field(default_factory=DotfilesSettings)
    git: GitSettings = Field(default_factory=GitSettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)

    core_packages: List[str] = Field(
        default_factory=lambda: list(static_config.CORE_PACKAGES)
    )
    ansible_packages: List[str] = Field(
        default_factory=lambda: list(static_config.ANSIBLE_PACKAGES)
    )
    neovim_appimage_url: str = Field(
        default=static_config.NEOVIM_APPIMAGE_URL
    )
    kickstart_repo_url: str = Field(default=static_config.KICKSTART_REPO_URL)
    shell_startup_files: List[str] = Field(
        default_factory=lambda: list(static_config.SHELL_STARTUP_FILES)
    )
    path_export_line: str = Field(default=static_config.PATH_EXPORT_LINE)
    apt_noise_patterns: List[str] = Field(
        default_factory=lambda: list(static_config.APT_NOISE_PATTERNS)
    )

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(SYMBOLS_DEFAULT)
    )
