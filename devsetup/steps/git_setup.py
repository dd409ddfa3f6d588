# devsetup/steps/git_setup.py
# -*- coding: utf-8 -*-
"""
Git identity and global defaults.
"""

import logging
import subprocess
from typing import Optional

from common.command_utils import command_exists, log_devsetup, run_command
from common.orchestrator import StepOutcome
from devsetup.config_models import AppSettings
from devsetup.context import ExecutionContext
from devsetup.exceptions import DevSetupError, PreconditionError
from devsetup.interaction import ask
from devsetup.services import ProvisioningServices

module_logger = logging.getLogger(__name__)


def git_config_get(
    key: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Read a global git setting; None when unset."""
    result = run_command(
        ["git", "config", "--global", "--get", key],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
    )
    value = (result.stdout or "").strip()
    return value if result.returncode == 0 and value else None


def git_config_set(
    key: str,
    value: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> None:
    run_command(
        ["git", "config", "--global", key, value],
        app_settings,
        current_logger=current_logger,
    )


def dotfiles_commit_required(
    context: ExecutionContext, services: ProvisioningServices
) -> bool:
    """Unified dotfiles are always committed; isolated ones only when version control is enabled."""
    location = services.location()
    return location.is_unified or context.settings.dotfiles.version_control


def configure_git(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[StepOutcome]:
    """
    Make sure git has an identity, then apply the global defaults.

    An identity already present in the global configuration is kept. When it
    is missing, attended runs prompt for it (offering the configured values);
    unattended runs take `git.user_name` / `git.user_email` from settings.
    A missing identity only blocks the run when the dotfiles will be
    committed; otherwise the defaults are still applied and the step warns.

    Raises:
        PreconditionError: git is missing, or no identity could be obtained
            although the dotfiles are going to be committed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    settings = context.settings
    symbols = context.symbols

    if not command_exists("git"):
        raise PreconditionError("git is not installed.")

    missing = []
    identity = {
        "user.name": (settings.git.user_name, "Git user name"),
        "user.email": (settings.git.user_email, "Git user email"),
    }
    try:
        for key, (configured, prompt) in identity.items():
            current = git_config_get(key, settings, logger_to_use)
            if current:
                log_devsetup(
                    f"{symbols.get('info', 'ℹ️')} git {key} already set to '{current}'.",
                    "info",
                    logger_to_use,
                    settings,
                )
                continue
            value = ask(context, prompt, default=configured, current_logger=logger_to_use)
            if not value:
                missing.append(key)
                continue
            git_config_set(key, value, settings, logger_to_use)

        for key, value in settings.git.defaults.items():
            git_config_set(key, value, settings, logger_to_use)
    except subprocess.CalledProcessError as e:
        raise DevSetupError(f"git config failed: {e}") from e

    if missing:
        hint = (
            f"git {', '.join(missing)} not configured. Set it with "
            f"'git config --global <key>' or "
            + " / ".join(
                f"DEVSETUP_GIT__{key.replace('.', '_').upper()}" for key in missing
            )
            + "."
        )
        if dotfiles_commit_required(context, services):
            raise PreconditionError(hint)
        log_devsetup(
            f"{symbols.get('warning', '!')} {hint} Dotfiles will not be committed, continuing.",
            "warning",
            logger_to_use,
            settings,
        )
        return StepOutcome.warned(hint)

    log_devsetup(
        f"{symbols.get('success', '✅')} Git configured.",
        "success",
        logger_to_use,
        settings,
    )
