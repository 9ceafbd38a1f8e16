import os
import sys
import pytest

# Ensure the backend root (containing the `gyroplay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gyroplay import create_app, rooms, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = '/'
    FRAME_RATE = 30
    MAX_CATCHUP_STEPS = 10
    MAX_CONTROLLERS_PER_ROOM = 2
    SIMULATION_SEED = '1234'
    TICK_HEARTBEAT_SEC = 0
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    rooms.clear()
    with application.app_context():
        yield application
    rooms.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def _connect(flask_app):
    return socketio.test_client(flask_app, flask_test_client=flask_app.test_client(), namespace='/')


@pytest.fixture()
def make_client(flask_app):
    """Factory for Socket.IO peers; all are disconnected at teardown."""
    created = []

    def _make():
        test_client = _connect(flask_app)
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        if test_client.is_connected('/'):
            test_client.disconnect(namespace='/')

