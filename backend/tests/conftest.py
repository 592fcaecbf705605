import os
import random
import sys
import pytest

# Ensure the backend root (containing the `poisoncake` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from poisoncake import create_app, socketio
from poisoncake.models import Player, Room

NAMESPACE = '/'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['*']
    SOCKETIO_NAMESPACE = NAMESPACE
    LOG_LEVEL = 'DEBUG'
    ROOM_CODE_LENGTH = 6
    MIN_PLAYERS = 2
    MAX_PLAYERS = 3
    MIN_GRID_SIZE = 3
    MAX_GRID_SIZE = 10
    DEFAULT_GRID_SIZE = 5
    DICE_REVEAL_DELAY_SEC = 0
    STATUS_LOG_INTERVAL_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    application.extensions['poisoncake'].rng = random.Random(7)
    with application.app_context():
        yield application


@pytest.fixture()
def coordinator(flask_app):
    return flask_app.extensions['poisoncake']


@pytest.fixture()
def store(coordinator):
    return coordinator.store


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients; all are disconnected on teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE,
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


def make_room(*names, state=None, code='TEST01'):
    """Build a room seating ``names`` in order, the first as host."""
    room = Room(code=code)
    for idx, name in enumerate(names):
        room.players.append(Player(identity=name, name=name, is_host=(idx == 0)))
    if state is not None:
        room.state = state
    return room


class FixedDice:
    """Stands in for ``random`` and hands out a scripted sequence of rolls."""

    def __init__(self, *rolls):
        self.rolls = list(rolls)

    def randint(self, low, high):
        return self.rolls.pop(0)
