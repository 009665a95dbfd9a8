"""Error taxonomy shared by the round ledger and the score oracle.

Every rejection carries a stable ``code`` so callers (and the HTTP layer)
can tell failure kinds apart without string matching on messages.
"""

from __future__ import annotations


class MoistureError(Exception):
    """Base class for all ledger and oracle rejections."""

    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


# -- Payment --


class PaymentError(MoistureError):
    code = "payment_error"


class InsufficientPayment(PaymentError):
    code = "insufficient_payment"


# -- Timing --


class TimingError(MoistureError):
    code = "timing_error"


class RoundEnded(TimingError):
    code = "round_ended"


class RoundInGrace(TimingError):
    code = "round_in_grace"


class RoundStillActive(TimingError):
    code = "round_still_active"


# -- Identity --


class IdentityError(MoistureError):
    code = "identity_error"


class StaleCredential(RoundEnded, IdentityError):
    """Credential was minted for a round that is no longer current."""

    code = "stale_credential"


class CredentialConsumed(IdentityError):
    code = "credential_consumed"


class CapabilityMismatch(IdentityError):
    code = "capability_mismatch"


# -- Signatures --


class SignatureError(MoistureError):
    code = "signature_error"


class InvalidSignature(SignatureError):
    code = "invalid_signature"


class InvalidOracleKey(SignatureError):
    code = "invalid_oracle_key"


# -- Oracle side --


class ValidationError(MoistureError):
    code = "validation_error"


class RateLimitError(MoistureError):
    code = "rate_limited"


class KeypairError(MoistureError):
    code = "keypair_error"


__all__ = [
    "CapabilityMismatch",
    "CredentialConsumed",
    "IdentityError",
    "InsufficientPayment",
    "InvalidOracleKey",
    "InvalidSignature",
    "KeypairError",
    "MoistureError",
    "PaymentError",
    "RateLimitError",
    "RoundEnded",
    "RoundInGrace",
    "RoundStillActive",
    "SignatureError",
    "StaleCredential",
    "TimingError",
    "ValidationError",
]
