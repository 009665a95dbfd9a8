"""Round ledger: entry, oracle-attested scoring and reward distribution.

Operations are plain functions over a ``RoundLedger``:
- pool: genesis, create_pool, enter_game, add_to_pool
- attestation: submit_score
- distributor: distribute_rewards

``LedgerHost`` serializes them for concurrent callers.
"""

from .attestation import submit_score, verify_score_signature
from .distributor import distribute_rewards, split_rewards
from .host import LedgerHost
from .message import decode_score_message, encode_score_message, normalize_address
from .models import (
    AdminCapability,
    EntryCredential,
    OracleCapability,
    Payout,
    PlayerEntered,
    PoolFunded,
    RewardsDistributed,
    RoundLedger,
    RoundSnapshot,
    RoundStarted,
    Score,
    ScoreSubmitted,
)
from .pool import add_to_pool, create_pool, enter_game, genesis

__all__ = [
    "AdminCapability",
    "EntryCredential",
    "LedgerHost",
    "OracleCapability",
    "Payout",
    "PlayerEntered",
    "PoolFunded",
    "RewardsDistributed",
    "RoundLedger",
    "RoundSnapshot",
    "RoundStarted",
    "Score",
    "ScoreSubmitted",
    "add_to_pool",
    "create_pool",
    "decode_score_message",
    "distribute_rewards",
    "encode_score_message",
    "enter_game",
    "genesis",
    "normalize_address",
    "split_rewards",
    "submit_score",
    "verify_score_signature",
]
