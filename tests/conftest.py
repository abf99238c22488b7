"""Pytest configuration and fixtures for runner tests."""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_toml():
    """Sample runner config as TOML string."""
    return """
[wda]
prebuilt_wda = false
wda_path = "/opt/WebDriverAgent"
platform = "iOS Simulator"
device_name = "iPhone 15"
device_id = "ABCD-1234"
os_version = "17.2"
device_ip = "10.0.0.7"
launch_timeout = 90
log_dir = "test_logs"
"""


@pytest.fixture
def config_file(temp_dir, sample_config_toml):
    """Create a temporary config file."""
    config_path = temp_dir / "test_config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def fake_process():
    """A running xcodebuild process stand-in."""
    process = MagicMock()
    process.pid = 4242
    process.poll.return_value = None
    process.stdout = iter([])
    return process


@pytest.fixture
def status_transport():
    """Build an httpx transport serving the probe URL and /status."""

    def make(state="success", probe_status=200):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/status":
                return httpx.Response(
                    200,
                    json={"value": {"state": state, "ready": True}, "sessionId": None},
                )
            return httpx.Response(probe_status)

        transport = httpx.MockTransport(handler)
        transport.requests = requests
        return transport

    return make
