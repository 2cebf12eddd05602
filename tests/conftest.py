"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import date
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tandem.config import Settings  # noqa: E402
from tandem.workspace import WorkspaceManager  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every path at a temporary directory."""
    return Settings(
        data_dir=tmp_path / "data",
        agent_projects_dir=tmp_path / "projects",
        agent_binary="claude",
        tracker_timeout_seconds=5.0,
        log_file="",
    )


@pytest.fixture
def workspaces(settings):
    """Workspace manager over the temporary data root."""
    return WorkspaceManager(settings.data_dir, settings.tracker_dir_name)


@pytest.fixture
def korean(workspaces):
    """A bootstrapped Korean workspace."""
    return workspaces.bootstrap("Korean", today=date(2025, 3, 1))


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
