"""Shared test fixtures for faro-lite tests."""

import os

import pytest

from faro_lite import client as client_module
from faro_lite.client import FaroClient, set_client
from faro_lite.config import ClientConfig
from faro_lite.context import ContextStore

from tests.mocks.recording_transport import RecordingTransport


# =============================================================================
# Environment isolation
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep FARO_* variables from the host environment out of the tests."""
    for key in list(os.environ):
        if key.startswith("FARO_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_default_client():
    """Reset the module-level default client after each test."""
    yield
    previous = client_module._default_client
    set_client(None)
    if previous is not None:
        previous.shutdown()


# =============================================================================
# Config / context fixtures
# =============================================================================

@pytest.fixture
def client_config() -> ClientConfig:
    """Client config that never touches the network or atexit."""
    return ClientConfig(
        url="http://collector.test/collect",
        app_name="test-app",
        app_version="9.9.9",
        environment="test",
        platform="test-platform",
        session_id="session-test",
        tracing_enabled=False,
        flush_on_exit=False,
        flush_timeout_seconds=5.0,
        workers=2,
    )


@pytest.fixture
def context() -> ContextStore:
    """Context store seeded with a minimal session."""
    return ContextStore(session_attributes={"platform": "x", "session_id": "s1"})


# =============================================================================
# Transport / client fixtures
# =============================================================================

@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def client(client_config, recording_transport):
    """Client wired to a recording transport."""
    client = FaroClient(config=client_config, transport=recording_transport)
    yield client
    client.shutdown()


@pytest.fixture
def minimal_client(client_config, recording_transport, context):
    """Client whose session is exactly {platform: x, session_id: s1}."""
    client = FaroClient(config=client_config, transport=recording_transport, context=context)
    yield client
    client.shutdown()
