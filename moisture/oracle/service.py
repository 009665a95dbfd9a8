"""Oracle signing service: validate a score claim, then sign it.

The only mutable state is the rate limiter. The keypair is loaded once and
never changes for the life of the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import bittensor as bt

from moisture.base.config import OracleSettings
from moisture.errors import RateLimitError, ValidationError
from moisture.ledger.message import encode_score_message

from .keypair import OracleKeypair
from .rate_limit import SlidingWindowRateLimiter
from .replay import ReplayValidator


@dataclass(frozen=True)
class SignedScore:
    """A signature over the canonical message for one claim."""

    player: str
    round_id: int
    survival_time: int
    message: bytes
    signature: bytes


class OracleSigningService:
    """Validates claims with ReplayValidator and signs the canonical message."""

    def __init__(
        self,
        keypair: OracleKeypair,
        validator: ReplayValidator | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
    ):
        self._keypair = keypair
        self.validator = validator or ReplayValidator()
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter()

    @classmethod
    def from_settings(cls, settings: OracleSettings) -> OracleSigningService:
        """Load the keypair from disk and build the service."""
        keypair = OracleKeypair.load(settings.keypair_path)
        bt.logging.info({"oracle_service": {"keypair": "loaded", "public_key": keypair.public_key_base64}})
        return cls(
            keypair,
            validator=ReplayValidator(
                max_survival_time_ms=settings.max_survival_time_ms,
                death_tolerance_ms=settings.death_tolerance_ms,
            ),
            rate_limiter=SlidingWindowRateLimiter(
                limit=settings.rate_limit_per_window,
                window=settings.rate_limit_window_seconds,
            ),
        )

    def _check_rate(self, caller: str | None) -> None:
        if caller is not None and not self.rate_limiter.check(caller):
            raise RateLimitError("Too many requests, please try again later")

    def public_key(self, caller: str | None = None) -> dict:
        """Public key as base64, hex and a byte list."""
        self._check_rate(caller)
        return self._keypair.public_key_info()

    @property
    def public_key_bytes(self) -> bytes:
        return self._keypair.public_key

    @property
    def public_key_base64(self) -> str:
        return self._keypair.public_key_base64

    def verify_and_sign(
        self,
        player_id: Any,
        round_id: Any,
        survival_time: Any,
        events: Any = None,
        checksum: str | None = None,
        *,
        caller: str | None = None,
    ) -> SignedScore:
        """Validate a claim and sign its canonical message.

        Args:
            player_id: ``0x``-prefixed player address.
            round_id: Round the player entered.
            survival_time: Claimed survival time in ms.
            events: Optional telemetry trail ending in a death event.
            checksum: Client game-state checksum; accepted but not checked yet.
            caller: Rate-limit key (e.g. remote address). None skips limiting.

        Raises:
            RateLimitError: caller exceeded its window.
            ValidationError: the claim failed a replay check.
        """
        self._check_rate(caller)

        check = self.validator.validate(player_id, round_id, survival_time, events)
        if not check:
            bt.logging.warning({
                "oracle_service": {
                    "event": "claim_rejected",
                    "player": str(player_id)[:10],
                    "reason": check.reason,
                }
            })
            raise ValidationError(check.reason)

        message = encode_score_message(player_id, round_id, survival_time)
        signature = self._keypair.sign(message)

        # Audit trail for every signed score
        bt.logging.info({
            "oracle_service": {
                "event": "score_signed",
                "player": player_id[:10],
                "round": round_id,
                "survival_time": survival_time,
                "has_telemetry": events is not None,
                "has_checksum": bool(checksum),
            }
        })
        return SignedScore(
            player=player_id,
            round_id=round_id,
            survival_time=survival_time,
            message=message,
            signature=signature,
        )


__all__ = ["OracleSigningService", "SignedScore"]
