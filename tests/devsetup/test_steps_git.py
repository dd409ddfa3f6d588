# tests/devsetup/test_steps_git.py
import subprocess
from unittest.mock import MagicMock

import pytest

from common.orchestrator import OutcomeStatus
from devsetup.config_models import DotfilesMode
from devsetup.exceptions import DevSetupError, PreconditionError
from devsetup.paths import DotfilesLocation
from devsetup.steps import git_setup


@pytest.fixture
def git(mocker):
    mocker.patch("devsetup.steps.git_setup.command_exists", return_value=True)
    get = mocker.patch("devsetup.steps.git_setup.git_config_get", return_value=None)
    set_ = mocker.patch("devsetup.steps.git_setup.git_config_set")
    return get, set_


def set_keys(set_):
    return {c[0][0]: c[0][1] for c in set_.call_args_list}


def services_for(mode, tmp_path):
    services = MagicMock()
    services.location.return_value = DotfilesLocation(
        canonical_path=tmp_path / "dotfiles", mode=mode
    )
    return services


def test_existing_identity_is_kept(unattended_context, git, no_stdin):
    get, set_ = git
    get.side_effect = lambda key, *a, **kw: {"user.name": "Ada", "user.email": "ada@example.org"}[key]

    git_setup.configure_git(unattended_context, MagicMock())

    applied = set_keys(set_)
    assert "user.name" not in applied
    assert applied["init.defaultBranch"] == "main"


def test_unattended_identity_from_settings(unattended_context, git, no_stdin):
    _, set_ = git
    unattended_context.settings.git.user_name = "Ada"
    unattended_context.settings.git.user_email = "ada@example.org"

    git_setup.configure_git(unattended_context, MagicMock())

    applied = set_keys(set_)
    assert applied["user.name"] == "Ada"
    assert applied["user.email"] == "ada@example.org"


def test_missing_identity_unattended_is_fatal_when_committing(
    unattended_context, git, no_stdin, tmp_path
):
    services = services_for(DotfilesMode.UNIFIED, tmp_path)
    with pytest.raises(PreconditionError, match="DEVSETUP_GIT__USER_NAME"):
        git_setup.configure_git(unattended_context, services)


def test_missing_identity_without_commit_warns(
    unattended_context, git, no_stdin, tmp_path
):
    _, set_ = git
    services = services_for(DotfilesMode.ISOLATED_TO_HOST, tmp_path)
    assert unattended_context.settings.dotfiles.version_control is False

    outcome = git_setup.configure_git(unattended_context, services)

    assert outcome.status == OutcomeStatus.WARNED
    assert "DEVSETUP_GIT__USER_EMAIL" in outcome.message
    applied = set_keys(set_)
    assert "user.name" not in applied
    assert applied["init.defaultBranch"] == "main"


def test_isolated_with_version_control_still_needs_identity(
    unattended_context, git, no_stdin, tmp_path
):
    unattended_context.settings.dotfiles.version_control = True
    services = services_for(DotfilesMode.ISOLATED_TO_HOST, tmp_path)
    with pytest.raises(PreconditionError):
        git_setup.configure_git(unattended_context, services)


def test_attended_identity_prompt(attended_context, git, mocker):
    _, set_ = git
    mocker.patch("builtins.input", side_effect=["Grace", "grace@example.org"])

    git_setup.configure_git(attended_context, MagicMock())

    assert set_keys(set_)["user.email"] == "grace@example.org"


def test_git_missing(unattended_context, mocker):
    mocker.patch("devsetup.steps.git_setup.command_exists", return_value=False)
    with pytest.raises(PreconditionError):
        git_setup.configure_git(unattended_context, MagicMock())


def test_git_config_failure(unattended_context, git):
    get, set_ = git
    get.return_value = "set"
    set_.side_effect = subprocess.CalledProcessError(255, ["git", "config"])
    with pytest.raises(DevSetupError):
        git_setup.configure_git(unattended_context, MagicMock())


def test_git_config_get_unset(mocker, app_settings):
    mocker.patch(
        "devsetup.steps.git_setup.run_command",
        return_value=subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr=""),
    )
    assert git_setup.git_config_get("user.name", app_settings) is None
