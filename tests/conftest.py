"""Shared fixtures: an app on in-memory SQLite, users per tier, and JWT headers."""
import pytest
from flask_jwt_extended import create_access_token
from sqlalchemy import event
from sqlalchemy.engine import Engine

from fitcoach import create_app
from fitcoach.extensions import db
from fitcoach.models import User, UserConstraints, UserSubscription


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints in SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
        "REDIS_URL": None,
        "SIGNALS_ASYNC": False,
        "STORAGE_RETRY_BACKOFF_SECS": 0,
        "USER_LOCK_WAIT_SECS": 0.05,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Create a user with a tier and, optionally, a constraints row. Returns the id."""
    counter = {"n": 0}

    def _make(tier="free", threshold=None, name="Sam", **constraint_values):
        counter["n"] += 1
        user = User(email=f"user{counter['n']}@example.com", full_name=name)
        db.session.add(user)
        db.session.flush()
        db.session.add(UserSubscription(user_id=user.id, tier=tier))
        if threshold is not None:
            constraint_values["simplify_after_deviations"] = threshold
        if constraint_values:
            db.session.add(UserConstraints(user_id=user.id, **constraint_values))
        db.session.commit()
        return user.id

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user_id):
        token = create_access_token(identity=str(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _headers
