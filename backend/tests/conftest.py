import os
import sys
import pytest

# Ensure the backend root (containing the `planning_poker` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from planning_poker import create_app, socketio, store


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/'
    TIMER_TICK_SEC = 0
    ROOM_TTL_SEC = 0
    REAPER_INTERVAL_SEC = 60
    REQUIRE_MEMBERSHIP = False
    REJECT_OFF_DECK_VOTES = False
    ENABLE_TIMER_IN_TESTS = False


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
    store.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def _connect(flask_app):
    return socketio.test_client(flask_app, flask_test_client=flask_app.test_client())


@pytest.fixture()
def sio_client(flask_app):
    test_client = _connect(flask_app)
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()


@pytest.fixture()
def connect(flask_app):
    """Factory for extra Socket.IO connections, all disconnected on teardown."""
    clients = []

    def _factory():
        c = _connect(flask_app)
        clients.append(c)
        return c

    yield _factory
    for c in clients:
        if c.is_connected():
            c.disconnect()


def received(test_client, name):
    """Drain the client's queue and return the payloads of `name` events."""
    return [pkt['args'][0] for pkt in test_client.get_received() if pkt['name'] == name]


def last_state(test_client):
    states = received(test_client, 'room:state')
    assert states, 'expected a room:state broadcast'
    return states[-1]
