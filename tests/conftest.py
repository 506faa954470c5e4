"""
Pytest configuration and fixtures.

Shared fixtures for all tests.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from delta_watchdog.config import parse_config_text


VALID_CONFIG_TEXT = """
# watchdog test config
currency: BTC
request_interval: 10
max_delta: 5
deviation_time: 60
main_process: "trading_bot"
tele_tok: 123456:ABC-token
tele_chat: -100123
secret_key: test_secret
api_key: test_key
passphrase: test_pass
"""


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def config_text():
    return VALID_CONFIG_TEXT


@pytest.fixture
def watchdog_config():
    return parse_config_text(VALID_CONFIG_TEXT)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def mock_client():
    """Mock signed exchange client."""
    client = Mock()
    client.fetch_delta.return_value = 0.0
    return client


@pytest.fixture
def mock_notifier():
    notifier = Mock()
    notifier.notify.return_value = True
    return notifier


@pytest.fixture
def mock_process_controller():
    controller = Mock()
    controller.terminate_by_name.return_value = []
    return controller
