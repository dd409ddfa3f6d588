# tests/conftest.py
import logging
from unittest.mock import MagicMock

import pytest

from devsetup.cleanup import CleanupRegistry
from devsetup.config_models import AppSettings
from devsetup.context import ExecutionContext


@pytest.fixture
def app_settings(tmp_path):
    """Settings confined to tmp_path, with no retry backoff."""
    return AppSettings(
        log_prefix="test_prefix",
        retry={"max_attempts": 3, "backoff_seconds": 0},
        workspace={"root": str(tmp_path / "dev-env")},
        dotfiles={"local_path": str(tmp_path / "dotfiles")},
        mirrors={
            "sources_file": str(tmp_path / "devsetup-mirror.sources"),
            "suite": "bookworm",
            "distribution_sources": [
                str(tmp_path / "apt" / "sources.list"),
                str(tmp_path / "apt" / "sources.list.d" / "debian.sources"),
            ],
        },
    )


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def unattended_context(app_settings):
    return ExecutionContext(
        interactive=False, settings=app_settings, cleanup=CleanupRegistry()
    )


@pytest.fixture
def attended_context(app_settings):
    return ExecutionContext(
        interactive=True, settings=app_settings, cleanup=CleanupRegistry()
    )


@pytest.fixture
def no_stdin(mocker):
    """Fail the test if anything tries to read from stdin."""
    return mocker.patch(
        "builtins.input",
        side_effect=AssertionError("stdin must not be read"),
    )
