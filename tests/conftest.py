"""Pytest configuration and fixtures for all tests."""

import os
import time
from pathlib import Path

import pytest

from synclaude.core.config import ConfigManager


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Settings directory that does not exist yet."""
    return tmp_path / ".config" / "synclaude"


@pytest.fixture
def config_manager(config_dir: Path) -> ConfigManager:
    return ConfigManager(config_dir)


@pytest.fixture
def set_age():
    """Backdate a file's modification time by a number of hours."""

    def _set_age(path: Path, hours: float) -> None:
        stamp = time.time() - hours * 3600
        os.utime(path, (stamp, stamp))

    return _set_age
