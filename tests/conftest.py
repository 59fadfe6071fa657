"""
Pytest fixtures for the peer rating service.

Every test gets a fresh application bound to an in-memory SQLite database
and a temporary upload folder.
"""
from datetime import timedelta

import pytest

from app import create_app
from app.config import TestConfig
from app.extensions import db as _db
from app.models.user import User
from app.models.voting_session import VotingSession
from app.utils.clock import utcnow

PASSWORD = "StrongPass123"


@pytest.fixture
def app(tmp_path):
    """Create the Flask application with tables created."""

    class Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")

    application = create_app(Config)
    with application.app_context():
        _db.create_all()
        yield application
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def owner(db):
    """Subject profile with a profile photo."""
    user = User(
        email="subject@example.com",
        full_name="Jane Subject",
        profile_photo_url="https://cdn.example.com/profile/jane.jpg",
    )
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def make_session(db, owner):
    """Factory for voting sessions; ``age`` is how long ago the session opened."""

    def _make(share_token="ab12cd34", age=timedelta(0), photo_url="https://cdn.example.com/s/photo.jpg",
              status=VotingSession.STATUS_ACTIVE, user=None):
        created_at = utcnow() - age
        session = VotingSession(
            user_id=(user or owner).id,
            share_token=share_token,
            photo_url=photo_url,
            full_name="Jane Subject",
            status=status,
            created_at=created_at,
            expires_at=VotingSession.expiry_for(created_at),
        )
        db.session.add(session)
        db.session.commit()
        return session

    return _make


@pytest.fixture
def auth_headers(client, owner):
    """Bearer headers for the session owner."""
    response = client.post("/api/auth/login", json={"email": owner.email, "password": PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.get_json()['access_token']}"}


def scores(courage, honesty, loyalty, work_ethic, discipline) -> dict:
    return {
        "score_courage": courage,
        "score_honesty": honesty,
        "score_loyalty": loyalty,
        "score_work_ethic": work_ethic,
        "score_discipline": discipline,
    }
