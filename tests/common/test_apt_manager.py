# tests/common/test_apt_manager.py
from unittest.mock import MagicMock

import pytest

from common.command_utils import CommandResult
from common.debian.apt_manager import UNATTENDED_APT_OPTIONS, AptManager


@pytest.fixture
def apt_patches(mocker):
    """Patch the command layer used by AptManager."""
    mocker.patch("common.debian.apt_manager.command_exists", return_value=True)
    run_filtered = mocker.patch(
        "common.debian.apt_manager.run_filtered_command",
        return_value=CommandResult(exit_code=0),
    )
    check_installed = mocker.patch("common.debian.apt_manager.check_package_installed")
    run_elevated = mocker.patch("common.debian.apt_manager.run_elevated_command")
    return run_filtered, check_installed, run_elevated


def test_missing_apt_get_raises(mocker, app_settings):
    mocker.patch("common.debian.apt_manager.command_exists", return_value=False)
    with pytest.raises(FileNotFoundError):
        AptManager(app_settings, logger=MagicMock())


def test_unattended_install_is_noninteractive(apt_patches, app_settings):
    run_filtered, _, _ = apt_patches
    manager = AptManager(app_settings, interactive=False, logger=MagicMock())

    result = manager.install(["git", "curl"])

    assert result.ok
    command = run_filtered.call_args[0][0]
    assert command[:2] == ["env", "DEBIAN_FRONTEND=noninteractive"]
    assert command[2:4] == ["apt-get", "install"]
    assert "-y" in command
    assert "Dpkg::Options::=--force-confdef" in command
    assert "Dpkg::Options::=--force-confold" in command
    assert command[-2:] == ["git", "curl"]
    kwargs = run_filtered.call_args.kwargs
    assert kwargs["elevated"] is True
    assert kwargs["env"]["DEBIAN_FRONTEND"] == "noninteractive"
    assert kwargs["noise_patterns"]
    assert kwargs["non_interactive"] is True


def test_attended_install_runs_on_terminal(apt_patches, app_settings):
    run_filtered, _, _ = apt_patches
    manager = AptManager(app_settings, interactive=True, logger=MagicMock())

    manager.install("git")

    command = run_filtered.call_args[0][0]
    assert command == ["apt-get", "install", "git"]
    assert run_filtered.call_args.kwargs["passthrough"] is True
    for option in UNATTENDED_APT_OPTIONS:
        if option.startswith("-"):
            assert option not in command


def test_update_and_upgrade_commands(apt_patches, app_settings):
    run_filtered, _, _ = apt_patches
    manager = AptManager(app_settings, interactive=True, logger=MagicMock())

    manager.update()
    manager.upgrade()

    assert run_filtered.call_args_list[0][0][0] == ["apt-get", "update"]
    assert run_filtered.call_args_list[1][0][0] == ["apt-get", "upgrade"]


def test_missing_packages_filters_installed(apt_patches, app_settings):
    _, check_installed, _ = apt_patches
    check_installed.side_effect = lambda pkg, *a, **kw: pkg == "git"
    logger = MagicMock()
    manager = AptManager(app_settings, logger=logger)

    assert manager.missing_packages(["git", "curl"]) == ["curl"]
    logger.info.assert_any_call("Package 'git' is already installed. Skipping.")


def test_write_sources_file(apt_patches, app_settings):
    _, _, run_elevated = apt_patches
    manager = AptManager(app_settings, logger=MagicMock())

    assert manager.write_sources_file(
        "/etc/apt/sources.list.d/devsetup-mirror.sources",
        {"Types": "deb", "URIs": "http://deb.debian.org/debian"},
    )

    command = run_elevated.call_args[0][0]
    assert command[:3] == ["install", "-m", "0644"]
    assert command[-1] == "/etc/apt/sources.list.d/devsetup-mirror.sources"


def test_write_sources_file_failure(apt_patches, app_settings):
    _, _, run_elevated = apt_patches
    run_elevated.side_effect = OSError("read-only file system")
    manager = AptManager(app_settings, logger=MagicMock())

    assert manager.write_sources_file("/etc/apt/x.sources", {"Types": "deb"}) is False


def test_disable_source_file_moves_it_aside(apt_patches, app_settings, tmp_path):
    _, _, run_elevated = apt_patches
    sources_list = tmp_path / "sources.list"
    sources_list.write_text("deb http://dead.example/debian bookworm main\n")
    manager = AptManager(app_settings, interactive=False, logger=MagicMock())

    assert manager.disable_source_file(str(sources_list)) is True

    command = run_elevated.call_args[0][0]
    assert command[:3] == ["mv", "-T", str(sources_list)]
    assert command[3].startswith(str(sources_list) + ".backup.")
    assert run_elevated.call_args.kwargs["non_interactive"] is True


def test_disable_absent_source_file(apt_patches, app_settings, tmp_path):
    _, _, run_elevated = apt_patches
    manager = AptManager(app_settings, logger=MagicMock())

    assert manager.disable_source_file(str(tmp_path / "missing.list")) is True
    run_elevated.assert_not_called()


def test_disable_source_file_failure(apt_patches, app_settings, tmp_path):
    _, _, run_elevated = apt_patches
    run_elevated.side_effect = OSError("permission denied")
    sources_list = tmp_path / "sources.list"
    sources_list.write_text("deb x y z\n")
    manager = AptManager(app_settings, logger=MagicMock())

    assert manager.disable_source_file(str(sources_list)) is False
