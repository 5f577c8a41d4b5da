"""
Module: conftest.py
Description: Shared pytest fixtures for export client tests.

Provides sample payloads, isolated settings and a scripted
httpx.MockTransport so delivery tests never touch the network
and never actually sleep between attempts.
"""

from typing import Any, Callable, List, Union
from unittest.mock import AsyncMock

import httpx
import pytest

from shiploud_export.config.settings import Settings, get_settings
from shiploud_export.delivery.push import IngestDeliveryClient

TEST_INGEST_URL = "https://ingest.test/api/github-actions/ingest"
TEST_SECRET = "test-api-token-secret"

# Environment variables the settings layer reads
_ENV_VARS = [
    "INPUT_INGEST-URL",
    "SHIPLOUD_INGEST_URL",
    "BUILDINPUBLIC_INGEST_URL",
    "INGEST_URL",
    "INPUT_API-TOKEN",
    "SHIPLOUD_API_TOKEN",
    "API_TOKEN",
    "LOG_LEVEL",
    "DELIVERY_TIMEOUT",
    "MAX_ATTEMPTS",
    "RETRY_BASE_DELAY",
]

ScriptedResponse = Union[Exception, tuple, Callable[[httpx.Request], httpx.Response]]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """
    Strip export settings from the environment for every test.

    Also runs each test from an empty directory so no stray .env file
    is picked up, and resets the cached settings.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class ScriptedTransport:
    """
    MockTransport handler replaying a script of responses.

    Each entry is an exception to raise, a (status, body) tuple, or a
    callable taking the request. The last entry repeats once the
    script runs out. Every request is recorded.
    """

    def __init__(self, script: List[ScriptedResponse]):
        if not script:
            raise ValueError("script must contain at least one entry")
        self.script = list(script)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        entry = self.script[min(len(self.requests), len(self.script)) - 1]

        if isinstance(entry, Exception):
            raise entry
        if callable(entry):
            return entry(request)

        status_code, body = entry
        if isinstance(body, (dict, list)):
            return httpx.Response(status_code, json=body)
        return httpx.Response(status_code, text=body)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def ingest_url():
    """Ingest endpoint used by test clients and settings."""
    return TEST_INGEST_URL


@pytest.fixture
def api_secret():
    """Signing secret used by test deliveries."""
    return TEST_SECRET


@pytest.fixture
def scripted_transport():
    """
    Factory for ScriptedTransport handlers.

    Usage: scripted_transport(httpx.ConnectError("refused"), (200, {"ok": True}))
    """
    def _make(*script: ScriptedResponse) -> ScriptedTransport:
        return ScriptedTransport(list(script))

    return _make


@pytest.fixture
def make_client(scripted_transport, ingest_url):
    """
    Build an IngestDeliveryClient wired to a ScriptedTransport.

    Returns a factory: make_client(*script, max_attempts=5) ->
    (client, transport, sleep_mock).
    """
    def _make(*script: Any, max_attempts: int = 5, base_delay: float = 1.0):
        transport = scripted_transport(*script)
        sleep = AsyncMock()
        client = IngestDeliveryClient(
            ingest_url,
            max_attempts=max_attempts,
            base_delay=base_delay,
            transport=httpx.MockTransport(transport),
            sleep=sleep,
        )
        return client, transport, sleep

    return _make


@pytest.fixture
def test_settings(ingest_url, api_secret):
    """Settings isolated from the environment and .env files."""
    return Settings(
        _env_file=None,
        ingest_url=ingest_url,
        api_token=api_secret,
        log_level="DEBUG",
    )


@pytest.fixture
def sample_raw_commit():
    """A commit as it appears in a push event."""
    return {
        "id": "abc123def4567890abc123def4567890abc12345",
        "message": "Add signed export client",
        "author": {"name": "Test User", "email": "test@example.com"},
        "timestamp": "2023-01-01T00:00:00Z",
        "url": "https://github.com/testowner/testrepo/commit/abc123"
    }


@pytest.fixture
def sample_payload(sample_raw_commit):
    """A formatted payload ready for delivery."""
    return {
        "repo": "testrepo",
        "owner": "testowner",
        "branch": "main",
        "commits": [
            {
                "id": sample_raw_commit["id"],
                "message": sample_raw_commit["message"],
                "author": sample_raw_commit["author"],
                "timestamp": sample_raw_commit["timestamp"],
                "url": f"https://github.com/testowner/testrepo/commit/{sample_raw_commit['id']}",
                "additions": 12,
                "deletions": 3,
                "files": {
                    "added": ["src/new.py"],
                    "modified": ["README.md"],
                    "removed": [],
                    "total_changes": 2
                }
            }
        ]
    }
