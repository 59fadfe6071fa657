"""
Tests for the public voting endpoints.
"""
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.models.vote import Vote
from app.models.voting_session import VotingSession
from app.repositories.vote_repository import VoteRepository
from conftest import scores

DEVICE_A = {"X-Visitor-Id": "fp-device-a"}
DEVICE_B = {"X-Visitor-Id": "fp-device-b"}


def vote_url(token="ab12cd34"):
    return f"/api/sessions/{token}/vote"


def failing_insert(self, *args, **kwargs):
    raise OperationalError("INSERT INTO votes", {}, Exception("disk I/O error"))


@pytest.mark.integration
class TestSessionLookupEndpoint:
    def test_lookup_returns_public_view(self, client, make_session) -> None:
        make_session()

        response = client.get("/api/sessions/ab12cd34")

        assert response.status_code == 200
        body = response.get_json()["session"]
        assert body["share_token"] == "ab12cd34"
        assert body["full_name"] == "Jane Subject"
        assert "id" not in body

    def test_not_found(self, client) -> None:
        response = client.get("/api/sessions/nope1234")

        assert response.status_code == 404
        assert response.get_json()["error"]["code"] == "NOT_FOUND"

    def test_expired(self, client, make_session) -> None:
        make_session(age=timedelta(hours=73))

        response = client.get("/api/sessions/ab12cd34")

        assert response.status_code == 410
        assert response.get_json()["error"]["code"] == "EXPIRED"

    def test_missing_photo(self, client, db, owner, make_session) -> None:
        owner.profile_photo_url = None
        db.session.commit()
        make_session(photo_url=None)

        response = client.get("/api/sessions/ab12cd34")

        assert response.status_code == 422
        assert response.get_json()["error"]["code"] == "MISSING_PHOTO"


@pytest.mark.integration
class TestVoteStatusEndpoint:
    def test_new_device_has_not_voted(self, client, make_session) -> None:
        make_session()

        response = client.get(f"{vote_url()}/status", headers=DEVICE_A)

        assert response.status_code == 200
        assert response.get_json() == {
            "has_voted": False,
            "visitor_id": "fp-device-a",
            "identity_source": "fingerprint",
        }

    def test_without_fingerprint_a_fallback_id_is_issued(self, client, make_session) -> None:
        make_session()

        body = client.get(f"{vote_url()}/status").get_json()

        assert body["has_voted"] is False
        assert body["identity_source"] == "fallback"
        assert body["visitor_id"].startswith("fallback-")

    def test_reports_prior_vote(self, client, make_session) -> None:
        make_session()
        client.post(vote_url(), json=scores(7, 8, 6, 9, 7), headers=DEVICE_A)

        body = client.get(f"{vote_url()}/status?visitor_id=fp-device-a").get_json()

        assert body["has_voted"] is True

    def test_expired_session(self, client, make_session) -> None:
        make_session(age=timedelta(hours=80))

        response = client.get(f"{vote_url()}/status", headers=DEVICE_A)

        assert response.status_code == 410


@pytest.mark.integration
class TestSubmitVoteEndpoint:
    def test_accepts_valid_vote(self, client, make_session) -> None:
        session = make_session()

        response = client.post(vote_url(), json={**scores(7, 8, 6, 9, 7), "verdict": "approve"}, headers=DEVICE_A)

        assert response.status_code == 201
        body = response.get_json()
        assert body["average_score"] == 7.4
        assert body["verdict"] == "approve"
        assert body["identity_source"] == "fingerprint"
        assert Vote.query.filter_by(voting_session_id=session.id).count() == 1

    def test_visitor_id_in_body(self, client, make_session) -> None:
        make_session()

        first = client.post(vote_url(), json={**scores(5, 5, 5, 5, 5), "visitor_id": "fp-body"})
        second = client.post(vote_url(), json=scores(5, 5, 5, 5, 5), headers={"X-Visitor-Id": "fp-body"})

        assert first.status_code == 201
        assert second.status_code == 409

    def test_same_device_twice_is_already_voted(self, client, make_session) -> None:
        make_session()
        client.post(vote_url(), json=scores(7, 8, 6, 9, 7), headers=DEVICE_A)

        response = client.post(vote_url(), json=scores(1, 2, 3, 4, 5), headers=DEVICE_A)

        assert response.status_code == 409
        assert response.get_json()["error"]["code"] == "ALREADY_VOTED"
        assert Vote.query.count() == 1

    def test_two_devices_both_count(self, client, db, make_session) -> None:
        session = make_session()

        a = client.post(vote_url(), json=scores(7, 8, 6, 9, 7), headers=DEVICE_A)
        b = client.post(vote_url(), json=scores(3, 4, 5, 4, 3), headers=DEVICE_B)

        assert (a.status_code, b.status_code) == (201, 201)
        assert a.get_json()["vote_id"] != b.get_json()["vote_id"]
        assert b.get_json()["average_score"] == 3.8
        assert db.session.get(VotingSession, session.id).total_votes == 2

    @pytest.mark.parametrize(
        "payload",
        [
            scores(0, 8, 6, 9, 7),
            scores(7, 8, 6, 9, 10.5),
            scores(7, 8, 6, 9, 7.3),
            {"score_courage": 7},
            {**scores(7, 8, 6, 9, 7), "verdict": "maybe"},
            {},
        ],
    )
    def test_invalid_input_writes_nothing(self, client, make_session, payload) -> None:
        make_session()

        response = client.post(vote_url(), json=payload, headers=DEVICE_A)

        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "INPUT_INVALID"
        assert Vote.query.count() == 0

    def test_invalid_input_is_reported_before_lookup(self, client) -> None:
        response = client.post(vote_url("nope1234"), json=scores(0, 0, 0, 0, 0))

        assert response.get_json()["error"]["code"] == "INPUT_INVALID"

    def test_expired_session_rejects_votes(self, client, make_session) -> None:
        make_session(age=timedelta(hours=72, minutes=1))

        response = client.post(vote_url(), json=scores(7, 8, 6, 9, 7), headers=DEVICE_A)

        assert response.status_code == 410
        assert Vote.query.count() == 0

    def test_stored_hashes_are_not_raw_values(self, client, make_session) -> None:
        make_session()

        client.post(
            vote_url(),
            json=scores(7, 8, 6, 9, 7),
            headers={**DEVICE_A, "X-Forwarded-For": "203.0.113.7"},
        )

        vote = Vote.query.one()
        assert vote.voter_fingerprint_hash != "fp-device-a"
        assert vote.voter_ip_hash != "203.0.113.7"
        assert len(vote.voter_fingerprint_hash) == len(vote.voter_ip_hash) == 64

    def test_error_envelope_carries_request_id(self, client) -> None:
        response = client.post(vote_url("nope1234"), json=scores(5, 5, 5, 5, 5), headers={"X-Request-Id": "req-42"})

        body = response.get_json()
        assert body["success"] is False
        assert body["request_id"] == "req-42"
        assert response.headers["X-Request-Id"] == "req-42"

    def test_storage_error_is_retryable(self, client, make_session, monkeypatch) -> None:
        make_session()
        monkeypatch.setattr(VoteRepository, "insert", failing_insert)

        response = client.post(vote_url(), json=scores(7, 8, 6, 9, 7), headers=DEVICE_A)

        assert response.status_code == 503
        error = response.get_json()["error"]
        assert error["code"] == "STORAGE_ERROR"
        assert error["message"] == "disk I/O error"
        assert error["details"]["retryable"] is True
        assert Vote.query.count() == 0

        monkeypatch.undo()
        retry = client.post(vote_url(), json=scores(7, 8, 6, 9, 7), headers=DEVICE_A)
        assert retry.status_code == 201


@pytest.mark.integration
def test_questions_catalog(client) -> None:
    body = client.get("/api/questions/").get_json()

    assert [q["key"] for q in body["questions"]] == [
        "score_courage", "score_honesty", "score_loyalty", "score_work_ethic", "score_discipline",
    ]
    assert (body["score_min"], body["score_max"], body["score_step"]) == (1, 10, 0.5)
