import pytest
from fastapi.testclient import TestClient

from lifecycle import ConnectionLifecycle
from registry import RoomRegistry


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def hub():
    return ConnectionLifecycle()


@pytest.fixture
def client():
    from app import app
    from transport import ConnectionManager

    app.state.hub = ConnectionLifecycle()
    app.state.connections = ConnectionManager()
    # A single client context keeps every socket on one event loop
    with TestClient(app) as test_client:
        yield test_client


def types_for(deliveries, target):
    return [message["type"] for recipient, message in deliveries if recipient == target]


def messages_of_type(deliveries, message_type):
    return [(recipient, message) for recipient, message in deliveries if message["type"] == message_type]


def messages_for(deliveries, target):
    return [message for recipient, message in deliveries if recipient == target]
