import os
import sys
import pytest

# Ensure the backend root (containing the `courtside` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from courtside import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    AUTH_REQUIRED = False
    DEFAULT_PERIOD_DURATION_SEC = 600
    DEFAULT_NUMBER_OF_PERIODS = 4
    MAX_NUMBER_OF_PERIODS = 10


class AuthTestConfig(TestConfig):
    AUTH_REQUIRED = True


def _build_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import courtside.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def flask_app():
    yield from _build_app(TestConfig)


@pytest.fixture()
def auth_app():
    yield from _build_app(AuthTestConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def game(client):
    """A game between two fresh teams, already in progress."""
    created = client.post('/api/games/create', json={'home_team': 'Home Club', 'away_team': 'Away Club'})
    assert created.status_code == 201
    data = created.get_json()
    started = client.post(f"/api/games/{data['id']}/start")
    assert started.status_code == 200
    return started.get_json()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
