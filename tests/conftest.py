"""Pytest configuration and shared fixtures."""

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from taskkeeper.config import Config, ConfigModel  # noqa: E402
from taskkeeper.storage import reset_storage  # noqa: E402
from taskkeeper.store import TaskStore  # noqa: E402

TODAY = date(2025, 6, 15)


@pytest.fixture
def today():
    """The pinned "today" used by store fixtures."""
    return TODAY


@pytest.fixture
def empty_store():
    """A store with nothing but the Default priority."""
    return TaskStore(clock=lambda: TODAY)


@pytest.fixture
def store(empty_store):
    """Store with priorities {Default, High} and categories {Work, Personal}."""
    empty_store.add_category("Work")
    empty_store.add_category("Personal")
    empty_store.add_priority("High")
    return empty_store


@pytest.fixture
def test_config(tmp_path):
    """Configuration pointing at temporary directories."""
    return ConfigModel(
        data_dir=str(tmp_path / "data"),
        backup_dir=str(tmp_path / "backups"),
    )


@pytest.fixture(autouse=True)
def reset_globals():
    """Keep the process-wide config and storage from leaking between tests."""
    Config.reset()
    reset_storage()
    yield
    Config.reset()
    reset_storage()
