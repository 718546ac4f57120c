import os
import sys
import pytest
from flask import g

# Ensure the backend root (containing the `arcade` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from arcade import create_app, db


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    JWT_SECRET = 'test-jwt-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    LOTERIA_DRAW_COOLDOWN_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)

    # Requests share this app context; each must load its own bearer user
    @application.before_request
    def _reset_login_cache():
        g.pop('_login_user', None)

    with application.app_context():
        # Ensure models are imported so tables are created
        import arcade.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_user(client):
    """Register and log in through the API; returns id and bearer headers."""
    def _make(name, password='secret123'):
        email = f'{name.lower()}@example.com'
        res = client.post('/register', json={'name': name, 'email': email, 'password': password})
        assert res.status_code == 201
        tokens = client.post('/login', json={'email': email, 'password': password}).get_json()
        return {
            'id': res.get_json()['id'],
            'email': email,
            'headers': {'Authorization': f"Bearer {tokens['accessToken']}"},
            'tokens': tokens,
        }
    return _make


@pytest.fixture()
def user_ids(flask_app):
    """Factory creating users straight in the database, for service-level tests."""
    from arcade.models import User

    def _create(*names):
        ids = []
        for name in names:
            user = User(name=name, email=f'{name.lower()}@example.com')
            user.set_password('password')
            db.session.add(user)
            db.session.flush()
            ids.append(user.id)
        db.session.commit()
        return ids
    return _create
