"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from unutma.config import Config, ConfigModel  # noqa: E402


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Each test starts without a cached configuration."""
    Config._instance = None
    yield
    Config._instance = None


@pytest.fixture
def config(tmp_path):
    return ConfigModel(data_dir=str(tmp_path / "data"))
