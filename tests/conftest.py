"""Common fixtures for SMART collector tests."""
import pytest

from smart_collector.api.logging_helper import get_log_manager
from smart_collector.api.version_gate import get_version_state

from helpers import FakeExecutor


@pytest.fixture
def fake_executor():
    """Return a fake executor with no canned responses."""
    return FakeExecutor()


@pytest.fixture(autouse=True)
def reset_process_state():
    """Undo logging configuration and version checks done by earlier tests."""
    get_version_state().reset()
    yield
    get_version_state().reset()
    get_log_manager().reset()
