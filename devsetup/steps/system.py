# devsetup/steps/system.py
# -*- coding: utf-8 -*-
"""
Host preparation steps: prerequisite checks, workspace layout, dotfiles
location, mirror selection and system package installation.
"""

import logging
from pathlib import Path
from typing import Optional

from common.command_utils import (
    check_package_installed,
    command_exists,
    elevation_available,
    log_devsetup,
)
from common.file_utils import ensure_directory
from common.network_utils import host_reachable
from devsetup import config as static_config
from devsetup.context import ExecutionContext
from devsetup.exceptions import DevSetupError, PreconditionError
from devsetup.services import ProvisioningServices

module_logger = logging.getLogger(__name__)


def check_prerequisites(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Verify the host can be provisioned at all.

    Checks that apt-get is present, that the process is root or sudo really
    grants root (without a password prompt when unattended), and that the
    emergency mirror host accepts a TCP connection.

    Raises:
        PreconditionError: On the first unmet requirement. Never retried.
    """
    logger_to_use = current_logger if current_logger else module_logger
    settings = context.settings
    symbols = context.symbols

    if not command_exists("apt-get"):
        raise PreconditionError(
            "'apt-get' not found. A Debian-based system is required."
        )
    if not elevation_available(non_interactive=not context.interactive):
        raise PreconditionError(
            "Root privileges are required: run as root, or as a user allowed to use sudo"
            + ("" if context.interactive else " without a password (sudo -n)")
            + "."
        )

    reference_url = settings.mirrors.tiers[-1].endpoints[0]
    if not host_reachable(
        reference_url,
        static_config.NETWORK_CHECK_TIMEOUT_SECONDS,
        settings,
        logger_to_use,
    ):
        raise PreconditionError(
            f"No network connectivity (could not reach {reference_url})."
        )
    log_devsetup(
        f"{symbols.get('success', '✅')} Prerequisites satisfied.",
        "success",
        logger_to_use,
        settings,
    )


def create_workspace(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Create the workspace tree and the per-user bin/tools directories."""
    logger_to_use = current_logger if current_logger else module_logger
    settings = context.settings
    root = Path(settings.workspace.root).expanduser()
    targets = [root / sub for sub in settings.workspace.subdirs]
    targets += [Path(d).expanduser() for d in settings.workspace.home_dirs]
    for target in targets:
        try:
            ensure_directory(target, settings, logger_to_use)
        except OSError as e:
            raise PreconditionError(
                f"Cannot create directory {target}: {e}"
            ) from e
    log_devsetup(
        f"{context.symbols.get('success', '✅')} Workspace ready at {root}",
        "success",
        logger_to_use,
        settings,
    )


def resolve_dotfiles(
    context: ExecutionContext, services: ProvisioningServices
) -> None:
    services.location()


def configure_mirrors(
    context: ExecutionContext, services: ProvisioningServices
) -> None:
    """Point apt at the first (best expected performance) mirror tier."""
    if not services.registry.apply(context.settings, services.apt_manager):
        raise DevSetupError(
            f"Could not apply mirror tier '{services.registry.active_tier().name}'."
        )


def update_system(
    context: ExecutionContext, services: ProvisioningServices
) -> None:
    services.installer.refresh_index("Refreshing package index").raise_if_fatal()
    services.installer.upgrade("Upgrading installed packages").raise_if_fatal()


def core_packages_installed(
    context: ExecutionContext, services: ProvisioningServices
) -> bool:
    return all(
        check_package_installed(pkg, context.settings)
        for pkg in context.settings.core_packages
    )


def install_core_packages(
    context: ExecutionContext, services: ProvisioningServices
) -> None:
    services.installer.install(
        context.settings.core_packages, "Installing core packages"
    ).raise_if_fatal()


def ansible_present(
    context: ExecutionContext, services: ProvisioningServices
) -> bool:
    return command_exists("ansible")


def install_ansible(
    context: ExecutionContext, services: ProvisioningServices
) -> None:
    services.installer.install(
        context.settings.ansible_packages, "Installing Ansible"
    ).raise_if_fatal()
