# tests/devsetup/test_links.py
import pytest

from devsetup.config_models import DotfilesMode
from devsetup.exceptions import LinkError
from devsetup.links import LinkManager, LinkResult, points_to
from devsetup.paths import DotfilesLocation


@pytest.fixture
def dotfiles_dir(tmp_path):
    path = tmp_path / "dotfiles"
    path.mkdir()
    return path


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


def make_manager(context, dotfiles_dir):
    location = DotfilesLocation(
        canonical_path=dotfiles_dir, mode=DotfilesMode.ISOLATED_TO_HOST
    )
    return LinkManager(context, location)


def backups_of(home, name):
    return sorted(home.glob(f"{name}.backup.*"))


class TestEnsureManaged:
    def test_existing_file_is_backed_up_then_linked(self, unattended_context, dotfiles_dir, home, no_stdin):
        target = home / ".zshrc"
        target.write_bytes(b"OLD")
        manager = make_manager(unattended_context, dotfiles_dir)

        result = manager.ensure_managed(target, "zsh/zshrc", content="NEW\n")

        assert result == LinkResult.BACKED_UP_AND_LINKED
        assert points_to(target, dotfiles_dir / "zsh" / "zshrc")
        assert target.read_text() == "NEW\n"
        backups = backups_of(home, ".zshrc")
        assert len(backups) == 1
        assert backups[0].read_bytes() == b"OLD"
        assert manager.backups == backups

    def test_second_run_is_unchanged(self, unattended_context, dotfiles_dir, home):
        target = home / ".zshrc"
        target.write_text("OLD")
        manager = make_manager(unattended_context, dotfiles_dir)
        manager.ensure_managed(target, "zsh/zshrc", content="NEW\n")

        result = manager.ensure_managed(target, "zsh/zshrc", content="NEW\n")

        assert result == LinkResult.UNCHANGED
        assert len(backups_of(home, ".zshrc")) == 1

    def test_absent_target_is_linked_without_backup(self, unattended_context, dotfiles_dir, home):
        target = home / ".config" / "tmux.conf"
        manager = make_manager(unattended_context, dotfiles_dir)

        assert manager.ensure_managed(target, "tmux/tmux.conf", content="set -g mouse on\n") == LinkResult.LINKED
        assert target.is_symlink()
        assert manager.backups == []

    def test_link_to_elsewhere_is_replaced(self, unattended_context, dotfiles_dir, home, tmp_path):
        other = tmp_path / "other"
        other.write_text("other")
        target = home / ".tmux.conf"
        target.symlink_to(other)
        manager = make_manager(unattended_context, dotfiles_dir)

        result = manager.ensure_managed(target, "tmux/tmux.conf", content="x")

        assert result == LinkResult.BACKED_UP_AND_LINKED
        assert points_to(target, dotfiles_dir / "tmux" / "tmux.conf")
        assert other.read_text() == "other"

    def test_existing_source_is_not_overwritten(self, unattended_context, dotfiles_dir, home):
        source = dotfiles_dir / "zsh" / "zshrc"
        source.parent.mkdir()
        source.write_text("# customised\n")
        manager = make_manager(unattended_context, dotfiles_dir)

        manager.ensure_managed(home / ".zshrc", "zsh/zshrc", content="default\n")

        assert source.read_text() == "# customised\n"

    def test_source_copied_from_file(self, unattended_context, dotfiles_dir, home, tmp_path):
        payload = tmp_path / "winopen"
        payload.write_text("#!/bin/sh\n")
        manager = make_manager(unattended_context, dotfiles_dir)

        manager.ensure_managed(home / "bin" / "winopen", "wsl/winopen", source_file=payload, mode=0o755)

        assert (dotfiles_dir / "wsl" / "winopen").stat().st_mode & 0o777 == 0o755

    def test_missing_source_without_content_raises(self, unattended_context, dotfiles_dir, home):
        manager = make_manager(unattended_context, dotfiles_dir)
        with pytest.raises(LinkError):
            manager.ensure_managed(home / ".zshrc", "zsh/zshrc")

    def test_attended_decline_leaves_target(self, attended_context, dotfiles_dir, home, mocker):
        mocker.patch("builtins.input", return_value="n")
        target = home / ".zshrc"
        target.write_text("mine")
        manager = make_manager(attended_context, dotfiles_dir)

        assert manager.ensure_managed(target, "zsh/zshrc", content="x") == LinkResult.DECLINED
        assert not target.is_symlink()
        assert target.read_text() == "mine"
        assert backups_of(home, ".zshrc") == []

    def test_attended_decline_writes_nothing_into_dotfiles(self, attended_context, dotfiles_dir, home, mocker):
        mocker.patch("builtins.input", return_value="n")
        target = home / ".tmux.conf"
        target.write_text("mine")
        manager = make_manager(attended_context, dotfiles_dir)

        result = manager.ensure_managed(target, "tmux/tmux.conf", content="managed")

        assert result == LinkResult.DECLINED
        assert list(dotfiles_dir.iterdir()) == []

    def test_missing_source_restored_for_existing_link(self, attended_context, dotfiles_dir, home, no_stdin):
        target = home / ".zshrc"
        target.symlink_to(dotfiles_dir / "zsh" / "zshrc")
        manager = make_manager(attended_context, dotfiles_dir)

        assert manager.ensure_managed(target, "zsh/zshrc", content="managed") == LinkResult.UNCHANGED
        assert target.read_text() == "managed"

    def test_backup_failure_raises_link_error(self, unattended_context, dotfiles_dir, home, mocker):
        target = home / ".zshrc"
        target.write_text("mine")
        mocker.patch("common.file_utils.os.rename", side_effect=PermissionError("denied"))
        manager = make_manager(unattended_context, dotfiles_dir)

        with pytest.raises(LinkError):
            manager.ensure_managed(target, "zsh/zshrc", content="x")
        assert target.read_text() == "mine"


def test_backup_aside_directory(unattended_context, dotfiles_dir, home):
    nvim = home / "nvim"
    nvim.mkdir()
    manager = make_manager(unattended_context, dotfiles_dir)

    backup = manager.backup_aside(nvim)

    assert backup.is_dir()
    assert not nvim.exists()
    assert manager.backup_aside(nvim) is None
