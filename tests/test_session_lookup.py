"""
Tests for resolving share tokens to votable sessions.
"""
from datetime import timedelta

import pytest

from app.errors import MissingPhoto, SessionExpired, SessionNotFound
from app.models.voting_session import VotingSession
from app.services.session_lookup import resolve_session


@pytest.mark.unit
class TestResolveSession:
    def test_resolves_active_session(self, make_session) -> None:
        session = make_session()

        resolved = resolve_session("ab12cd34")

        assert resolved.id == session.id
        assert resolved.photo_url == "https://cdn.example.com/s/photo.jpg"
        assert resolved.full_name == "Jane Subject"
        assert resolved.expires_at == session.created_at + timedelta(hours=72)

    def test_unknown_token(self, make_session) -> None:
        make_session()

        with pytest.raises(SessionNotFound):
            resolve_session("zzzzzzzz")

    def test_internal_id_is_not_a_share_token(self, make_session) -> None:
        session = make_session()

        with pytest.raises(SessionNotFound):
            resolve_session(str(session.id))

    def test_expiry_timestamp_beats_active_flag(self, make_session) -> None:
        session = make_session()
        assert session.status == VotingSession.STATUS_ACTIVE

        with pytest.raises(SessionExpired):
            resolve_session("ab12cd34", now=session.created_at + timedelta(hours=73))

    def test_expires_exactly_at_deadline(self, make_session) -> None:
        session = make_session()

        with pytest.raises(SessionExpired):
            resolve_session("ab12cd34", now=session.expires_at)
        assert resolve_session("ab12cd34", now=session.expires_at - timedelta(seconds=1))

    @pytest.mark.parametrize("status", [VotingSession.STATUS_COMPLETED, VotingSession.STATUS_EXPIRED])
    def test_non_active_status_closes_voting(self, make_session, status) -> None:
        make_session(status=status)

        with pytest.raises(SessionExpired):
            resolve_session("ab12cd34")

    def test_falls_back_to_owner_profile_photo(self, make_session, owner) -> None:
        make_session(photo_url=None)

        resolved = resolve_session("ab12cd34")

        assert resolved.photo_url == owner.profile_photo_url

    def test_missing_photo_everywhere(self, db, make_session, owner) -> None:
        owner.profile_photo_url = None
        db.session.commit()
        make_session(photo_url=None)

        with pytest.raises(MissingPhoto):
            resolve_session("ab12cd34")
