"""Pytest configuration and fixtures."""

import os

import pytest
import pytest_asyncio

# Set before test modules import trainingpulse.main, which builds the app at import time
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("TRAININGPULSE_ENV", "test")

from tests.fakes.fake_api import FakeApi  # noqa: E402
from tests.fakes.recording import RecordingNotifier  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["TRAININGPULSE_ENV"] = "test"


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest_asyncio.fixture
async def api_client(fake_api, tmp_path):
    """Authenticated client talking to ``fake_api``."""
    client = fake_api.client(tmp_path)
    yield client
    await client.http.aclose()
