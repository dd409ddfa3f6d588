# tests/devsetup/test_mirrors.py
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from common.file_utils import backup_aside
from devsetup.config_models import MirrorSettings
from devsetup.mirrors import MirrorRegistry, MirrorTier, detect_codename

TIERS = [
    MirrorTier(name="regional", endpoints=["http://ftp.au.debian.org/debian"]),
    MirrorTier(name="cdn", endpoints=["http://deb.debian.org/debian"]),
    MirrorTier(name="emergency", endpoints=["http://ftp.debian.org/debian"]),
]


def test_registry_requires_a_tier():
    with pytest.raises(ValueError):
        MirrorRegistry([])


def test_advance_is_forward_only_and_stops_at_last_tier(mock_logger):
    registry = MirrorRegistry(TIERS, logger=mock_logger)

    assert registry.active_tier().name == "regional"
    assert registry.advance() is True
    assert registry.active_tier().name == "cdn"
    assert registry.advance() is True
    assert registry.is_exhausted
    assert registry.advance() is False
    assert registry.active_tier().name == "emergency"
    assert registry.cursor == 2


def test_from_settings_keeps_order():
    registry = MirrorRegistry.from_settings(MirrorSettings())
    assert len(registry.tiers) >= 2
    assert registry.cursor == 0
    assert registry.tiers[0].name == MirrorSettings().tiers[0].name


def test_sources_entries_for_active_tier(app_settings):
    registry = MirrorRegistry(TIERS)
    registry.advance()

    entries = registry.sources_entries(app_settings)

    assert entries["URIs"] == "http://deb.debian.org/debian"
    assert entries["Suites"] == "bookworm bookworm-updates"
    assert entries["Types"] == "deb"


def test_apply_writes_sources_file(app_settings):
    apt_manager = MagicMock()
    apt_manager.write_sources_file.return_value = True
    registry = MirrorRegistry(TIERS)

    assert registry.apply(app_settings, apt_manager) is True

    path, entries = apt_manager.write_sources_file.call_args[0]
    assert path == app_settings.mirrors.sources_file
    assert entries["URIs"] == "http://ftp.au.debian.org/debian"


def test_apply_is_noop_when_sources_unmanaged(app_settings):
    settings = app_settings.model_copy(
        update={"mirrors": app_settings.mirrors.model_copy(update={"manage_sources": False})}
    )
    apt_manager = MagicMock()

    assert MirrorRegistry(TIERS).apply(settings, apt_manager) is True
    apt_manager.write_sources_file.assert_not_called()


def test_detect_codename(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text('PRETTY_NAME="Debian GNU/Linux 12"\nVERSION_CODENAME=bookworm\n')
    assert detect_codename(os_release) == "bookworm"
    assert detect_codename(tmp_path / "missing") == "stable"


@pytest.fixture
def apt_dir(app_settings):
    """Distribution repository files the mirror tiers should replace."""
    for source in app_settings.mirrors.distribution_sources:
        path = Path(source)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("deb http://dead-host-mirror.example/debian bookworm main\n")
    return Path(app_settings.mirrors.distribution_sources[0]).parent


@pytest.fixture
def apt_manager(app_settings):
    manager = MagicMock()
    manager.write_sources_file.return_value = True

    def disable(source):
        backup_aside(source, app_settings)
        return True

    manager.disable_source_file.side_effect = disable
    return manager


def test_apply_moves_distribution_sources_aside_once(app_settings, apt_dir, apt_manager):
    registry = MirrorRegistry(TIERS)

    assert registry.apply(app_settings, apt_manager) is True
    registry.advance()
    assert registry.apply(app_settings, apt_manager) is True

    for source in app_settings.mirrors.distribution_sources:
        assert not Path(source).exists()
        assert len(list(Path(source).parent.glob(Path(source).name + ".backup.*"))) == 1
    assert apt_manager.disable_source_file.call_count == 2
    assert apt_manager.write_sources_file.call_count == 2


def test_managed_sources_file_is_never_moved(app_settings, apt_dir, apt_manager):
    managed = app_settings.mirrors.distribution_sources[1]
    settings = app_settings.model_copy(
        update={"mirrors": app_settings.mirrors.model_copy(update={"sources_file": managed})}
    )

    assert MirrorRegistry(TIERS).apply(settings, apt_manager) is True

    moved = [c[0][0] for c in apt_manager.disable_source_file.call_args_list]
    assert moved == [app_settings.mirrors.distribution_sources[0]]
    assert Path(managed).exists()


def test_failed_write_leaves_distribution_sources(app_settings, apt_dir, apt_manager):
    apt_manager.write_sources_file.return_value = False

    assert MirrorRegistry(TIERS).apply(app_settings, apt_manager) is False

    apt_manager.disable_source_file.assert_not_called()
    assert (apt_dir / "sources.list").exists()


def test_failed_move_is_retried_on_next_apply(app_settings, apt_dir, apt_manager):
    apt_manager.disable_source_file.side_effect = [False, True, True]
    registry = MirrorRegistry(TIERS)

    assert registry.apply(app_settings, apt_manager) is False
    assert registry.apply(app_settings, apt_manager) is True
    assert apt_manager.disable_source_file.call_count == 3
