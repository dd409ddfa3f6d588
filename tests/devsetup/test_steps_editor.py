# tests/devsetup/test_steps_editor.py
import subprocess

import pytest

from devsetup.exceptions import InstallationError
from devsetup.links import points_to
from devsetup.paths import PathResolver
from devsetup.services import ProvisioningServices
from devsetup.steps import editor


@pytest.fixture
def home(tmp_path, monkeypatch):
    path = tmp_path / "home"
    path.mkdir()
    monkeypatch.setenv("HOME", str(path))
    return path


@pytest.fixture
def services(unattended_context, home):
    return ProvisioningServices(
        unattended_context, resolver=PathResolver(unattended_context, wsl=False)
    )


def fake_clone(cmd, *args, **kwargs):
    destination = cmd[-1]
    with open(f"{destination}/init.lua", "w") as f:
        f.write("-- kickstart.nvim\n")


class TestSetupNeovimConfig:
    def test_existing_config_is_backed_up_before_clone(self, unattended_context, services, home, tmp_path, mocker):
        nvim_dir = home / ".config" / "nvim"
        nvim_dir.mkdir(parents=True)
        (nvim_dir / "init.vim").write_text("set number")

        def clone(cmd, *args, **kwargs):
            nvim_dir.mkdir()
            fake_clone(cmd)

        run = mocker.patch("devsetup.steps.editor.run_command", side_effect=clone)

        editor.setup_neovim_config(unattended_context, services, config_dir=nvim_dir)

        assert run.call_args[0][0][:3] == ["git", "clone", "--depth=1"]
        backups = list((home / ".config").glob("nvim.backup.*"))
        assert len(backups) == 1
        assert (backups[0] / "init.vim").read_text() == "set number"
        assert points_to(
            nvim_dir / "lua" / "custom" / "init.lua",
            tmp_path / "dotfiles" / "nvim" / "lua" / "custom" / "init.lua",
        )

    def test_dangling_symlink_is_backed_up_before_clone(self, unattended_context, services, home, tmp_path, mocker):
        nvim_dir = home / ".config" / "nvim"
        nvim_dir.parent.mkdir(parents=True)
        nvim_dir.symlink_to(tmp_path / "gone")

        def clone(cmd, *args, **kwargs):
            nvim_dir.mkdir()
            fake_clone(cmd)

        mocker.patch("devsetup.steps.editor.run_command", side_effect=clone)

        editor.setup_neovim_config(unattended_context, services, config_dir=nvim_dir)

        backups = list((home / ".config").glob("nvim.backup.*"))
        assert len(backups) == 1
        assert backups[0].is_symlink()
        assert not nvim_dir.is_symlink()
        assert (nvim_dir / "init.lua").read_text() == "-- kickstart.nvim\n"

    def test_kickstart_present_is_not_recloned(self, unattended_context, services, home, mocker):
        nvim_dir = home / ".config" / "nvim"
        nvim_dir.mkdir(parents=True)
        (nvim_dir / "init.lua").write_text("-- kickstart.nvim\n")
        run = mocker.patch("devsetup.steps.editor.run_command")

        editor.setup_neovim_config(unattended_context, services, config_dir=nvim_dir)

        run.assert_not_called()
        assert (nvim_dir / "lua" / "custom" / "init.lua").is_symlink()

    def test_clone_failure(self, unattended_context, services, home, mocker):
        mocker.patch(
            "devsetup.steps.editor.run_command",
            side_effect=subprocess.CalledProcessError(128, ["git", "clone"]),
        )
        with pytest.raises(InstallationError):
            editor.setup_neovim_config(
                unattended_context, services, config_dir=home / ".config" / "nvim"
            )


def test_install_neovim_download_failure_releases_temp_dir(unattended_context, services, mocker):
    mocker.patch("devsetup.steps.editor.download_file", return_value=False)

    with pytest.raises(InstallationError, match="download"):
        editor.install_neovim(unattended_context, services)

    assert unattended_context.cleanup.tracked == []


def test_install_neovim(unattended_context, services, home, mocker):
    def download(url, path, *args, **kwargs):
        path.write_bytes(b"\x7fELF")
        return True

    mocker.patch("devsetup.steps.editor.download_file", side_effect=download)
    run = mocker.patch("devsetup.steps.editor.run_command")
    elevated = mocker.patch("devsetup.steps.editor.run_elevated_command")

    editor.install_neovim(unattended_context, services)

    assert run.call_args[0][0][1] == "--appimage-extract"
    commands = [c[0][0] for c in elevated.call_args_list]
    assert all(c.kwargs["non_interactive"] is True for c in elevated.call_args_list)
    assert commands[-1] == ["ln", "-sf", "/opt/nvim/AppRun", "/usr/local/bin/nvim"]
    assert (home / ".local" / "bin" / "nvim").is_symlink()
    assert unattended_context.cleanup.tracked == []
