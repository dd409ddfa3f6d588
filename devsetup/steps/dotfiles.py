# devsetup/steps/dotfiles.py
# -*- coding: utf-8 -*-
"""
Steps that deploy configuration files, extend the shell PATH, install the
WSL helper scripts, write the workspace files and documentation and
commit the dotfiles directory.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from common.command_utils import log_devsetup, run_command
from common.file_utils import append_line_if_missing, write_file_if_absent
from common.orchestrator import StepOutcome
from devsetup import config as static_config
from devsetup.context import ExecutionContext
from devsetup.exceptions import DevSetupError, PreconditionError
from devsetup.links import LinkResult
from devsetup.paths import is_wsl
from devsetup.services import ProvisioningServices
from devsetup.steps.git_setup import (
    dotfiles_commit_required,
    git_config_get,
    git_config_set,
)

module_logger = logging.getLogger(__name__)

# (target, path inside the dotfiles directory, bundled payload file)
DOTFILE_LINKS: List[Tuple[str, str, str]] = [
    ("~/.zshrc", "zsh/zshrc", "zshrc"),
    ("~/.tmux.conf", "tmux/tmux.conf", "tmux.conf"),
    ("~/.gitignore_global", "git/gitignore_global", "gitignore_global"),
]
WSL_UTILITIES: List[str] = ["wsl-path-fix.sh", "winopen", "clip-copy"]
DOC_FILES: List[str] = ["README.md", "cheatsheet.md"]


def _declined_outcome(declined: List[str]) -> Optional[StepOutcome]:
    if not declined:
        return None
    return StepOutcome.warned(f"left unmanaged: {', '.join(declined)}")


def deploy_dotfiles(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[StepOutcome]:
    """Link the shell, tmux and git ignore files and register the ignore file with git."""
    logger_to_use = current_logger if current_logger else module_logger
    declined = []
    for target, relpath, payload in DOTFILE_LINKS:
        result = services.links.ensure_managed(
            target,
            relpath,
            source_file=static_config.PAYLOAD_DIR / payload,
        )
        if result == LinkResult.DECLINED:
            declined.append(target)

    excludes = str(Path("~/.gitignore_global").expanduser())
    try:
        if git_config_get("core.excludesfile", context.settings, logger_to_use) != excludes:
            git_config_set(
                "core.excludesfile", excludes, context.settings, logger_to_use
            )
    except (subprocess.CalledProcessError, OSError) as e:
        raise DevSetupError(f"Could not set core.excludesfile: {e}") from e
    return _declined_outcome(declined)


def update_shell_startup(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    for startup_file in context.settings.shell_startup_files:
        try:
            append_line_if_missing(
                startup_file,
                context.settings.path_export_line,
                context.settings,
                logger_to_use,
            )
        except OSError as e:
            raise DevSetupError(f"Cannot update {startup_file}: {e}") from e


def not_wsl(
    context: ExecutionContext, services: ProvisioningServices
) -> bool:
    return not is_wsl()


def install_wsl_utilities(
    context: ExecutionContext, services: ProvisioningServices
) -> Optional[StepOutcome]:
    declined = []
    for name in WSL_UTILITIES:
        target = f"~/bin/{name}"
        result = services.links.ensure_managed(
            target,
            f"wsl/{name}",
            source_file=static_config.PAYLOAD_DIR / name,
            mode=0o755,
        )
        if result == LinkResult.DECLINED:
            declined.append(target)
    return _declined_outcome(declined)


def write_documentation(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Write the README and cheatsheet into the workspace docs directory when absent or changed."""
    logger_to_use = current_logger if current_logger else module_logger
    docs_dir = Path(context.settings.workspace.root).expanduser() / "docs"
    docs_dir.mkdir(parents=True, exist_ok=True)
    for name in DOC_FILES:
        content = (static_config.PAYLOAD_DIR / name).read_text(encoding="utf-8")
        destination = docs_dir / name
        if destination.exists() and destination.read_text(encoding="utf-8") == content:
            continue
        destination.write_text(content, encoding="utf-8")
        log_devsetup(
            f"Wrote {destination}",
            "info",
            logger_to_use,
            context.settings,
        )


def write_workspace_files(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Copy the Ansible playbook, its roles, `update.sh`, the configuration
    templates and the editing guide into the workspace.

    These are the user's to edit: a file that already exists is left alone.
    """
    logger_to_use = current_logger if current_logger else module_logger
    root = Path(context.settings.workspace.root).expanduser()
    written = 0
    for payload in sorted(static_config.WORKSPACE_PAYLOAD_DIR.rglob("*")):
        if not payload.is_file():
            continue
        relpath = payload.relative_to(static_config.WORKSPACE_PAYLOAD_DIR)
        mode = 0o755 if relpath.as_posix() in static_config.WORKSPACE_EXECUTABLES else None
        try:
            if write_file_if_absent(
                root / relpath,
                payload.read_text(encoding="utf-8"),
                context.settings,
                logger_to_use,
                mode=mode,
            ):
                written += 1
        except OSError as e:
            raise DevSetupError(f"Cannot write {root / relpath}: {e}") from e
    log_devsetup(
        f"{context.symbols.get('info', 'ℹ️')} {written} workspace file(s) written to {root}.",
        "info",
        logger_to_use,
        context.settings,
    )


def commit_not_required(
    context: ExecutionContext, services: ProvisioningServices
) -> bool:
    """Isolated dotfiles are only committed when version control is enabled."""
    return not dotfiles_commit_required(context, services)


def _git(
    repo: Path,
    args: List[str],
    context: ExecutionContext,
    logger: logging.Logger,
    check: bool = True,
) -> subprocess.CompletedProcess:
    return run_command(
        ["git", "-C", str(repo)] + args,
        context.settings,
        check=check,
        capture_output=True,
        current_logger=logger,
    )


def commit_dotfiles(
    context: ExecutionContext,
    services: ProvisioningServices,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[StepOutcome]:
    """
    Commit the dotfiles directory, creating the repository if needed.

    Nothing is committed when the working tree is clean. When a remote is
    configured it is added as 'origin' if missing, and the branch is pushed;
    a failed push is reported as a warning since the commit itself is kept.

    Raises:
        PreconditionError: git has no identity configured.
    """
    logger_to_use = current_logger if current_logger else module_logger
    settings = context.settings
    symbols = context.symbols
    repo = services.location().canonical_path

    for key in ("user.name", "user.email"):
        if not git_config_get(key, settings, logger_to_use):
            raise PreconditionError(
                f"git {key} is not configured; cannot commit dotfiles."
            )

    try:
        if not (repo / ".git").exists():
            _git(repo, ["init"], context, logger_to_use)
        _git(repo, ["add", "-A"], context, logger_to_use)
        status = _git(repo, ["status", "--porcelain"], context, logger_to_use)
        if status.stdout.strip():
            _git(
                repo,
                ["commit", "-m", settings.dotfiles.commit_message],
                context,
                logger_to_use,
            )
            log_devsetup(
                f"{symbols.get('success', '✅')} Committed dotfiles in {repo}",
                "success",
                logger_to_use,
                settings,
            )
        else:
            log_devsetup(
                f"{symbols.get('info', 'ℹ️')} No dotfile changes to commit.",
                "info",
                logger_to_use,
                settings,
            )

        remote_url = settings.dotfiles.remote_url
        if not remote_url:
            return None
        has_origin = _git(
            repo, ["remote", "get-url", "origin"], context, logger_to_use, check=False
        )
        if has_origin.returncode != 0:
            _git(repo, ["remote", "add", "origin", remote_url], context, logger_to_use)
    except (subprocess.CalledProcessError, OSError) as e:
        raise DevSetupError(f"git failed in {repo}: {e}") from e

    push = _git(
        repo, ["push", "-u", "origin", "HEAD"], context, logger_to_use, check=False
    )
    if push.returncode != 0:
        return StepOutcome.warned(
            f"push to {remote_url} failed (exit {push.returncode}); changes are committed locally"
        )
    return None
