import pytest

from courtside import db
from courtside.models import Game, Team, User


@pytest.fixture()
def auth_client(auth_app):
    for username, role in (('coach', 'coach'), ('fan', 'viewer')):
        user = User(username=username, role=role)
        user.set_password('password')
        db.session.add(user)
    home, away = Team(name='Home'), Team(name='Away')
    db.session.add_all([home, away])
    db.session.flush()
    db.session.add(Game(home_team_id=home.id, away_team_id=away.id, status='in_progress'))
    db.session.commit()
    return auth_app.test_client()


def _login(client, username):
    return client.post('/login', json={'username': username, 'password': 'password'})


def test_passwords_are_hashed(auth_client):
    user = User.query.filter_by(username='coach').first()
    assert user.password_hash != 'password'
    assert user.check_password('password')
    assert not user.check_password('wrong')


def test_login_rejects_bad_password(auth_client):
    res = auth_client.post('/login', json={'username': 'coach', 'password': 'nope'})
    assert res.status_code == 401


def test_mutations_require_login(auth_client):
    assert auth_client.post('/api/timer/1/start').status_code == 401
    # Reads stay public
    assert auth_client.get('/api/timer/1').status_code == 200


def test_viewer_cannot_drive_the_clock(auth_client):
    assert _login(auth_client, 'fan').status_code == 200
    res = auth_client.post('/api/timer/1/start')
    assert res.status_code == 403
    assert res.get_json()['error'] == 'Insufficient permissions'


def test_coach_can_drive_the_clock(auth_client):
    assert _login(auth_client, 'coach').status_code == 200
    assert auth_client.post('/api/timer/1/start').status_code == 200
    assert auth_client.post('/logout').status_code == 200
    assert auth_client.post('/api/timer/1/pause').status_code == 401


def test_add_user_validates_role(auth_client):
    res = auth_client.post('/users/add', json={'username': 'ref', 'password': 'pw', 'role': 'referee'})
    assert res.status_code == 400
    res = auth_client.post('/users/add', json={'username': 'ref', 'password': 'pw', 'role': 'coach'})
    assert res.status_code == 201
    assert res.get_json()['user']['role'] == 'coach'
    assert auth_client.post('/users/add', json={'username': 'ref', 'password': 'pw'}).status_code == 400
