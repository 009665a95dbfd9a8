"""Off-ledger score oracle: replay checks, Ed25519 signing, HTTP surface."""

from .http_client import OracleClient, ReplayData, VerificationResult
from .keypair import OracleKeypair
from .rate_limit import SlidingWindowRateLimiter
from .replay import ReplayCheck, ReplayValidator, TelemetryEvent
from .service import OracleSigningService, SignedScore

__all__ = [
    "OracleClient",
    "OracleKeypair",
    "OracleSigningService",
    "ReplayCheck",
    "ReplayData",
    "ReplayValidator",
    "SignedScore",
    "SlidingWindowRateLimiter",
    "TelemetryEvent",
    "VerificationResult",
]
