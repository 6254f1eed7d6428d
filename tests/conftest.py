"""Pytest configuration and fixtures for all tests."""

from pathlib import Path

import pytest

from textassist.core.settings_repository import SettingsRepository
from textassist.core.settings_service import SettingsService
from textassist.utils.path_utils import CONFIG_DIR_ENV, SettingsPaths


@pytest.fixture(autouse=True)
def isolate_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep every test away from the real per-user settings folder."""
    folder = tmp_path / "default-config"
    monkeypatch.setenv(CONFIG_DIR_ENV, str(folder))
    return folder


@pytest.fixture
def settings_dir(tmp_path: Path) -> Path:
    return tmp_path / "settings"


@pytest.fixture
def paths(settings_dir: Path) -> SettingsPaths:
    return SettingsPaths(folder=settings_dir)


@pytest.fixture
def repository(paths: SettingsPaths) -> SettingsRepository:
    return SettingsRepository(paths)


@pytest.fixture
def service(repository: SettingsRepository) -> SettingsService:
    return SettingsService(repository)
