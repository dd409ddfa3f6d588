# devsetup/pipeline_definitions.py
# -*- coding: utf-8 -*-
"""
Static definition of the provisioning pipeline: step names, order and
failure policies.
"""

from functools import partial
from typing import Callable, List, Optional, Tuple

from common.orchestrator import FailurePolicy, Step
from devsetup.services import ProvisioningServices
from devsetup.steps import dotfiles, editor, git_setup, system

FATAL = FailurePolicy.FATAL
WARN = FailurePolicy.WARN_AND_CONTINUE

# (name, description, action, policy, skip guard). Actions and guards are
# called as f(context, services=services).
PIPELINE_STEPS: List[Tuple[str, str, Callable, FailurePolicy, Optional[Callable]]] = [
    ("CHECK_PREREQUISITES", "Check package manager, privileges and network", system.check_prerequisites, FATAL, None),
    ("CREATE_WORKSPACE", "Create workspace directories", system.create_workspace, FATAL, None),
    ("RESOLVE_DOTFILES", "Resolve the dotfiles directory", system.resolve_dotfiles, FATAL, None),
    ("CONFIGURE_MIRRORS", "Select package mirrors", system.configure_mirrors, WARN, None),
    ("UPDATE_SYSTEM", "Refresh package index and upgrade", system.update_system, FATAL, None),
    ("INSTALL_CORE_PACKAGES", "Install core packages", system.install_core_packages, FATAL, system.core_packages_installed),
    ("INSTALL_NEOVIM", "Install Neovim", editor.install_neovim, WARN, editor.neovim_present),
    ("SETUP_NEOVIM_CONFIG", "Set up kickstart.nvim", editor.setup_neovim_config, WARN, None),
    ("INSTALL_ANSIBLE", "Install Ansible", system.install_ansible, WARN, system.ansible_present),
    ("CONFIGURE_GIT", "Configure git identity and defaults", git_setup.configure_git, FATAL, None),
    ("DEPLOY_DOTFILES", "Link shell, tmux and git configuration", dotfiles.deploy_dotfiles, FATAL, None),
    ("UPDATE_SHELL_STARTUP", "Extend PATH in shell startup files", dotfiles.update_shell_startup, FATAL, None),
    ("INSTALL_WSL_UTILITIES", "Install WSL helper scripts", dotfiles.install_wsl_utilities, WARN, dotfiles.not_wsl),
    ("WRITE_WORKSPACE_FILES", "Write the Ansible playbook, update script and templates", dotfiles.write_workspace_files, WARN, None),
    ("WRITE_DOCUMENTATION", "Write workspace documentation", dotfiles.write_documentation, WARN, None),
    ("COMMIT_DOTFILES", "Commit the dotfiles directory", dotfiles.commit_dotfiles, FATAL, dotfiles.commit_not_required),
]


def build_pipeline(services: ProvisioningServices) -> List[Step]:
    """Bind `services` into every step of `PIPELINE_STEPS`."""
    steps = []
    for name, description, action, policy, guard in PIPELINE_STEPS:
        steps.append(
            Step(
                name=name,
                description=description,
                action=partial(action, services=services),
                policy=policy,
                skip_if=partial(guard, services=services) if guard else None,
            )
        )
    return steps
