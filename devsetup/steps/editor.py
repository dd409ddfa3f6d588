# devsetup/steps/editor.py
# -*- coding: utf-8 -*-
"""
Neovim installation from the upstream AppImage, and the kickstart.nvim
configuration with a managed custom module.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional

from common.command_utils import (
    command_exists,
    log_devsetup,
    run_command,
    run_elevated_command,
)
from common.network_utils import download_file
from devsetup import config as static_config
from devsetup.context import ExecutionContext
from devsetup.exceptions import InstallationError
from devsetup.services import ProvisioningServices

module_logger = logging.getLogger(__name__)

NVIM_CONFIG_DIR = Path("~/.config/nvim")
NVIM_CUSTOM_RELPATH = Path("nvim/lua/custom/init.lua")


def neovim_present(
    context: ExecutionContext, services: ProvisioningServices
) -> bool:
    return command_exists("nvim")


def install_neovim(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Download the Neovim AppImage, extract it and install it under /opt/nvim.

    The download and extraction happen in a temporary directory tracked by
    the run's cleanup registry, so an interrupt removes them. The binary is
    linked from /usr/local/bin/nvim and ~/.local/bin/nvim.
    """
    logger_to_use = current_logger if current_logger else module_logger
    settings = context.settings
    symbols = context.symbols

    work_dir = context.cleanup.make_temp_dir("nvim")
    try:
        appimage = work_dir / "nvim.appimage"
        if not download_file(
            settings.neovim_appimage_url, appimage, settings, logger_to_use
        ):
            raise InstallationError(
                f"Could not download Neovim from {settings.neovim_appimage_url}."
            )
        appimage.chmod(0o755)

        try:
            run_command(
                [str(appimage), "--appimage-extract"],
                settings,
                capture_output=True,
                current_logger=logger_to_use,
                cwd=str(work_dir),
            )
            extracted = work_dir / "squashfs-root"
            run_elevated_command(
                ["mkdir", "-p", static_config.NEOVIM_INSTALL_DIR],
                settings,
                current_logger=logger_to_use,
                non_interactive=not context.interactive,
            )
            run_elevated_command(
                [
                    "cp",
                    "-r",
                    f"{extracted}/.",
                    static_config.NEOVIM_INSTALL_DIR,
                ],
                settings,
                current_logger=logger_to_use,
                non_interactive=not context.interactive,
            )
            run_elevated_command(
                [
                    "ln",
                    "-sf",
                    f"{static_config.NEOVIM_INSTALL_DIR}/AppRun",
                    static_config.NEOVIM_SYSTEM_LINK,
                ],
                settings,
                current_logger=logger_to_use,
                non_interactive=not context.interactive,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            raise InstallationError(f"Neovim installation failed: {e}") from e
    finally:
        context.cleanup.release(work_dir)

    user_link = Path("~/.local/bin/nvim").expanduser()
    user_link.parent.mkdir(parents=True, exist_ok=True)
    if user_link.is_symlink() or user_link.exists():
        user_link.unlink()
    user_link.symlink_to(static_config.NEOVIM_SYSTEM_LINK)

    log_devsetup(
        f"{symbols.get('success', '✅')} Neovim installed to {static_config.NEOVIM_INSTALL_DIR}",
        "success",
        logger_to_use,
        settings,
    )


def kickstart_configured(config_dir: Path = NVIM_CONFIG_DIR) -> bool:
    init_lua = config_dir.expanduser() / "init.lua"
    try:
        return "kickstart" in init_lua.read_text(encoding="utf-8")
    except OSError:
        return False


def setup_neovim_config(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
    config_dir: Path = NVIM_CONFIG_DIR,
) -> None:
    """
    Install kickstart.nvim and link the custom module into it.

    An existing non-kickstart configuration directory is moved to a
    timestamped backup before the clone.
    """
    logger_to_use = current_logger if current_logger else module_logger
    settings = context.settings
    nvim_dir = config_dir.expanduser()

    if not kickstart_configured(nvim_dir):
        if nvim_dir.is_symlink() or (
            nvim_dir.exists() and (not nvim_dir.is_dir() or any(nvim_dir.iterdir()))
        ):
            services.links.backup_aside(nvim_dir)
        elif nvim_dir.is_dir():
            nvim_dir.rmdir()
        nvim_dir.parent.mkdir(parents=True, exist_ok=True)
        try:
            run_command(
                [
                    "git",
                    "clone",
                    "--depth=1",
                    settings.kickstart_repo_url,
                    str(nvim_dir),
                ],
                settings,
                current_logger=logger_to_use,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            raise InstallationError(
                f"Could not clone {settings.kickstart_repo_url}: {e}"
            ) from e
    else:
        log_devsetup(
            f"{context.symbols.get('info', 'ℹ️')} kickstart.nvim already present in {nvim_dir}.",
            "info",
            logger_to_use,
            settings,
        )

    services.links.ensure_managed(
        nvim_dir / "lua" / "custom" / "init.lua",
        NVIM_CUSTOM_RELPATH,
        source_file=static_config.PAYLOAD_DIR / "nvim_custom_init.lua",
    )
