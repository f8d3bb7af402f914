"""Shared fixtures for ankirpc tests."""

import json

import pytest

from ankirpc.config import reset_config
from ankirpc.errors import TransportError
from tests.support.fake_anki import MockAnki


class FakeTransport:
    """Transport returning canned reply bodies and recording each request."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def post(self, url: str, body: bytes) -> bytes:
        self.calls.append((url, json.loads(body)))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, bytes):
            return reply
        return json.dumps(reply).encode("utf-8")

    @property
    def sent(self) -> dict:
        """The last envelope sent."""
        return self.calls[-1][1]


def reply(result=None, error=None) -> dict:
    return {"result": result, "error": error}


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts and ends with the default connection config."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def failing_transport():
    return FakeTransport(TransportError("failed to connect to http://127.0.0.1:8765"))


@pytest.fixture
def mock_anki():
    return MockAnki()
