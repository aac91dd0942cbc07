import threading

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from relay.config import Settings
from relay.errors import GatewayError

SYSTEM_PROMPT = "You are a helpful travel assistant."


class FakeGateway:
    """Scripted stand-in for the completion API."""

    def __init__(self, replies=None, error: GatewayError | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: list[tuple[str, list]] = []
        self._lock = threading.Lock()

    def complete(self, api_key, history):
        with self._lock:
            self.calls.append((api_key, list(history)))
            if self.error is not None:
                raise self.error
            if self.replies:
                return self.replies.pop(0)
            return f"reply {len(self.calls)}"


class RecordingSink:
    def __init__(self):
        self.records: list[tuple] = []

    def record(self, session_id, prompt, response, error):
        self.records.append((session_id, prompt, response, error))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        base_prompt=SYSTEM_PROMPT,
        log_file=str(tmp_path / "relay.log"),
        api_key="test-key",
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def app(settings, gateway, sink):
    return create_app(settings, gateway=gateway, sinks=[sink])


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
