"""
Tests for voter identity derivation and hashing.
"""
import hashlib
import hmac

import pytest

from app.services.voter_identity import (
    SOURCE_FALLBACK,
    SOURCE_FINGERPRINT,
    UNKNOWN_ORIGIN,
    VoterIdentity,
    derive_voter_identity,
    hash_voter,
    network_origin,
)

SECRET = "unit-test-secret"


class FakeRequest:
    def __init__(self, headers=None, remote_addr=None):
        self.headers = headers or {}
        self.remote_addr = remote_addr


@pytest.mark.unit
class TestDeriveVoterIdentity:
    def test_uses_fingerprint_when_available(self) -> None:
        identity = derive_voter_identity(lambda: "a1b2c3d4e5")

        assert identity == VoterIdentity("a1b2c3d4e5", SOURCE_FINGERPRINT)
        assert not identity.is_fallback

    def test_collaborator_failure_yields_fallback(self) -> None:
        def broken():
            raise RuntimeError("fingerprint agent failed to load")

        identity = derive_voter_identity(broken)

        assert identity.is_fallback
        assert identity.source == SOURCE_FALLBACK
        assert identity.visitor_id.startswith("fallback-")

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_value_yields_fallback(self, value) -> None:
        assert derive_voter_identity(lambda: value).is_fallback

    def test_fallback_ids_are_not_reused(self) -> None:
        first = derive_voter_identity(lambda: None)
        second = derive_voter_identity(lambda: None)

        assert first.visitor_id != second.visitor_id

    def test_returned_fallback_id_keeps_its_tag(self) -> None:
        issued = derive_voter_identity(lambda: None)

        echoed = derive_voter_identity(lambda: issued.visitor_id)

        assert echoed == issued

    def test_oversized_id_is_replaced(self) -> None:
        assert derive_voter_identity(lambda: "x" * 500).is_fallback


@pytest.mark.unit
class TestNetworkOrigin:
    def test_prefers_first_forwarded_address(self) -> None:
        req = FakeRequest({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}, "10.0.0.1")
        assert network_origin(req) == "203.0.113.7"

    def test_falls_back_to_remote_addr(self) -> None:
        assert network_origin(FakeRequest(remote_addr="198.51.100.4")) == "198.51.100.4"

    def test_unknown_when_no_signal(self) -> None:
        assert network_origin(FakeRequest()) == UNKNOWN_ORIGIN


@pytest.mark.unit
class TestHashVoter:
    def test_hashes_are_one_way_digests_of_raw_values(self) -> None:
        identity = VoterIdentity("device-123", SOURCE_FINGERPRINT)

        hashes = hash_voter(identity, "203.0.113.7", SECRET)

        assert hashes.device_hash != "device-123"
        assert hashes.network_hash != "203.0.113.7"
        assert len(hashes.device_hash) == 64
        expected = hmac.new(SECRET.encode(), b"device-123", hashlib.sha256).hexdigest()
        assert hashes.device_hash == expected

    def test_same_device_same_hash(self) -> None:
        identity = VoterIdentity("device-123", SOURCE_FINGERPRINT)

        assert hash_voter(identity, None, SECRET) == hash_voter(identity, None, SECRET)

    def test_missing_origin_hashes_placeholder(self) -> None:
        identity = VoterIdentity("device-123", SOURCE_FINGERPRINT)

        hashes = hash_voter(identity, None, SECRET)

        assert hashes.network_hash == hash_voter(identity, UNKNOWN_ORIGIN, SECRET).network_hash
        assert hashes.network_hash != UNKNOWN_ORIGIN
