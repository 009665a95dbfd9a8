"""Tests for OracleSigningService and its fit with the ledger verifier."""

import pytest

from moisture.base.config import OracleSettings
from moisture.errors import KeypairError, RateLimitError, ValidationError
from moisture.ledger.attestation import submit_score, verify_score_signature
from moisture.ledger.message import encode_score_message
from moisture.ledger.pool import create_pool, enter_game, genesis
from moisture.oracle.keypair import OracleKeypair
from moisture.oracle.rate_limit import SlidingWindowRateLimiter
from moisture.oracle.service import OracleSigningService

PLAYER = "0x" + "d4" * 32
T0 = 1_700_000_000_000


@pytest.fixture
def keypair():
    return OracleKeypair.generate()


@pytest.fixture
def service(keypair):
    return OracleSigningService(keypair)


class TestVerifyAndSign:

    def test_signs_canonical_message(self, service, keypair):
        signed = service.verify_and_sign(PLAYER, 3, 45_000)
        assert signed.message == encode_score_message(PLAYER, 3, 45_000)
        assert verify_score_signature(keypair.public_key, PLAYER, 3, 45_000, signed.signature)

    def test_short_address_signature_matches_padded(self, service, keypair):
        signed = service.verify_and_sign("0x6", 1, 10)
        assert verify_score_signature(keypair.public_key, "0x" + "0" * 63 + "6", 1, 10, signed.signature)

    def test_signature_binds_every_field(self, service, keypair):
        sig = service.verify_and_sign(PLAYER, 3, 45_000).signature
        assert not verify_score_signature(keypair.public_key, PLAYER, 3, 45_001, sig)
        assert not verify_score_signature(keypair.public_key, PLAYER, 4, 45_000, sig)

    def test_rejection_carries_reason(self, service):
        with pytest.raises(ValidationError) as exc:
            service.verify_and_sign(PLAYER, 1, 0)
        assert exc.value.message == "Invalid survival time"

    def test_telemetry_checked(self, service):
        events = [{"timestamp": 0, "type": "move"}, {"timestamp": 1000, "type": "death"}]
        service.verify_and_sign(PLAYER, 1, 1000, events, checksum="abc")
        with pytest.raises(ValidationError):
            service.verify_and_sign(PLAYER, 1, 9000, events)

    def test_signed_claim_accepted_by_ledger(self, service, keypair):
        ledger, oracle = create_pool(genesis(), 1_000_000_000, keypair.public_key, T0)
        cred = enter_game(ledger, 100_000_000, PLAYER, T0)
        signed = service.verify_and_sign(cred.owner, cred.round_id, 61_000)
        event = submit_score(ledger, oracle, cred, 61_000, signed.signature)
        assert event.rank == 1


class TestRateLimiting:

    def test_caller_limited(self, keypair):
        service = OracleSigningService(keypair, rate_limiter=SlidingWindowRateLimiter(limit=2, window=60))
        service.verify_and_sign(PLAYER, 1, 10, caller="1.2.3.4")
        service.public_key(caller="1.2.3.4")
        with pytest.raises(RateLimitError):
            service.verify_and_sign(PLAYER, 1, 10, caller="1.2.3.4")
        service.verify_and_sign(PLAYER, 1, 10, caller="5.6.7.8")

    def test_no_caller_not_limited(self, keypair):
        service = OracleSigningService(keypair, rate_limiter=SlidingWindowRateLimiter(limit=1, window=60))
        for _ in range(5):
            service.verify_and_sign(PLAYER, 1, 10)


class TestFromSettings:

    def test_loads_keypair(self, tmp_path, keypair):
        path = tmp_path / ".keypair.json"
        keypair.save(path)
        settings = OracleSettings(keypair_path=str(path), rate_limit_per_window=7, max_survival_time_ms=500)
        service = OracleSigningService.from_settings(settings)
        assert service.public_key_bytes == keypair.public_key
        assert service.rate_limiter.limit == 7
        assert service.validator.max_survival_time_ms == 500

    def test_missing_keypair(self, tmp_path):
        with pytest.raises(KeypairError):
            OracleSigningService.from_settings(OracleSettings(keypair_path=str(tmp_path / "none.json")))
