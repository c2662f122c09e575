"""
Shared pytest fixtures for all tests.

Every test gets its own registry which is started before and always stopped
after the test, so no stub or observer leaks into the next one.
"""

from pathlib import Path

import pytest
from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from wirestub import (
    HarnessSettings,
    HttpClient,
    InterceptingTransport,
    Request,
    StubRegistry,
)


@pytest.fixture
def settings():
    """Settings with short waits so a broken completion fails fast."""
    return HarnessSettings(wait_timeout=1.0, max_workers=2)


@pytest.fixture
def registry():
    """A fresh registry that intercepts for the duration of the test."""
    registry = StubRegistry()
    registry.start_intercepting(patch_clients=False)
    yield registry
    registry.stop_intercepting()


@pytest.fixture
def client(registry, settings):
    """HttpClient wired to the intercepting transport."""
    with HttpClient(InterceptingTransport(registry, settings=settings), settings=settings) as client:
        yield client


@pytest.fixture
def any_request():
    return Request(method="GET", url="http://any-url.test")
