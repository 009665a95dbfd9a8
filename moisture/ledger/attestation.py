"""Oracle-attested score submission (the score attestation verifier).

The ledger rebuilds the canonical message from the credential and the
claimed time, checks the oracle's Ed25519 signature over it, then tries to
place the score in the top-N list.
"""

from __future__ import annotations

import bittensor as bt
from cryptography.exceptions import InvalidSignature as _CryptoInvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from moisture.errors import (
    CapabilityMismatch,
    CredentialConsumed,
    InvalidOracleKey,
    InvalidSignature,
    StaleCredential,
    ValidationError,
)

from .message import encode_score_message
from .models import (
    EntryCredential,
    OracleCapability,
    RoundLedger,
    Score,
    ScoreSubmitted,
)

SIGNATURE_LENGTH = 64


def verify_score_signature(
    public_key: bytes,
    player: str,
    round_id: int,
    survival_time: int,
    signature: bytes,
) -> bool:
    """Check an oracle signature over the canonical score message."""
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes(public_key))
    except ValueError as e:
        raise InvalidOracleKey(str(e)) from e

    if len(signature) != SIGNATURE_LENGTH:
        return False
    message = encode_score_message(player, round_id, survival_time)
    try:
        key.verify(bytes(signature), message)
    except _CryptoInvalidSignature:
        return False
    return True


def insertion_index(scores: list[Score], survival_time: int, limit: int) -> int | None:
    """Where a new time would land in a descending list, or None.

    The first entry strictly below the new time is displaced. A time equal
    to a retained one is not kept at all: the earlier submission wins the
    tie and the list stays strictly descending.
    """
    for i, existing in enumerate(scores):
        if existing.survival_time == survival_time:
            return None
        if existing.survival_time < survival_time:
            return i if i < limit else None
    if len(scores) < limit:
        return len(scores)
    return None


def insert_score(scores: list[Score], score: Score, limit: int) -> tuple[list[Score], int | None]:
    """Return the updated list and the 0-based slot taken (None if not retained)."""
    index = insertion_index(scores, score.survival_time, limit)
    if index is None:
        return list(scores), None
    updated = list(scores)
    updated.insert(index, score)
    return updated[:limit], index


def submit_score(
    ledger: RoundLedger,
    oracle: OracleCapability,
    credential: EntryCredential,
    survival_time: int,
    signature: bytes,
) -> ScoreSubmitted:
    """Verify an attested score and consume the credential.

    Raises:
        CapabilityMismatch: capability or credential belongs to another ledger.
        CredentialConsumed: credential was already used.
        StaleCredential: credential is for an earlier round.
        InvalidSignature: signature does not match the oracle key.
    """
    if not isinstance(oracle, OracleCapability) or oracle.ledger_id != ledger.id:
        raise CapabilityMismatch("Oracle capability does not belong to this ledger")
    if not isinstance(credential, EntryCredential) or credential.ledger_id != ledger.id:
        raise CapabilityMismatch("Entry credential does not belong to this ledger")
    if credential.consumed:
        raise CredentialConsumed(f"Credential {credential.id[:8]} was already used")
    if credential.round_id != ledger.current_round:
        raise StaleCredential(
            f"Credential is for round {credential.round_id}, "
            f"current round is {ledger.current_round}"
        )
    if isinstance(survival_time, bool) or not isinstance(survival_time, int) or survival_time < 0:
        raise ValidationError("survival_time must be a non-negative integer")

    if not verify_score_signature(
        oracle.public_key, credential.owner, credential.round_id, survival_time, signature,
    ):
        bt.logging.warning({
            "ledger_score": {
                "event": "rejected",
                "player": credential.owner[:10],
                "round": credential.round_id,
                "reason": "invalid_signature",
            }
        })
        raise InvalidSignature("Oracle signature does not match the score claim")

    score = Score(player=credential.owner, survival_time=survival_time)
    ledger.top_scores, slot = insert_score(
        ledger.top_scores, score, ledger.params.max_winners,
    )
    credential._consume()

    event = ledger._emit(ScoreSubmitted(
        round_id=ledger.current_round,
        player=credential.owner,
        survival_time=survival_time,
        retained=slot is not None,
        rank=None if slot is None else slot + 1,
    ))
    bt.logging.info({
        "ledger_score": {
            "event": "submitted",
            "player": credential.owner[:10],
            "round": ledger.current_round,
            "survival_time": survival_time,
            "rank": event.rank,
        }
    })
    return event


__all__ = [
    "SIGNATURE_LENGTH",
    "insert_score",
    "insertion_index",
    "submit_score",
    "verify_score_signature",
]
