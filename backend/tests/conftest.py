import os
import random
import sys

import pytest

# Ensure the backend root (containing the `quiestleplus` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quiestleplus.config import Config
from quiestleplus.game.store import RoomStore
from quiestleplus.server import create_app


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_ASYNC_MODE = 'threading'
    TRUST_PROXY_HEADERS = False
    TIMER_ENABLED = False
    DEFAULT_NUMBER_OF_QUESTIONS = 10
    DEFAULT_QUESTION_TIME = 30
    DEFAULT_CATEGORY = 'classique'


@pytest.fixture()
def store():
    return RoomStore(config=TestConfig, rng=random.Random(1234))


@pytest.fixture()
def app_and_socketio():
    return create_app(TestConfig)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def socketio(app_and_socketio):
    return app_and_socketio[1]


@pytest.fixture()
def app_store(flask_app):
    return flask_app.extensions['room_store']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app, socketio):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make

    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
