"""Ledger state, credentials and notifications.

Capabilities and entry credentials are plain slotted classes rather than
pydantic models: they are possession-based tokens and must not be copied,
pickled or constructed outside the ledger module.
"""

from __future__ import annotations

import uuid
from collections import deque
from typing import Literal, Union

from pydantic import BaseModel, Field

from moisture.base.config import LedgerParams

# Minting sentinel: only ledger code passes this to token constructors.
_MINT = object()

# Notifications kept on a ledger nobody drains.
EVENT_LOG_LIMIT = 1024


# ---------------------------------------------------------------------------
# Possession-based tokens
# ---------------------------------------------------------------------------


class _Token:
    """Opaque, non-duplicable token."""

    __slots__ = ("_id",)

    def __init__(self, mint: object) -> None:
        if mint is not _MINT:
            raise TypeError(f"{type(self).__name__} can only be issued by the ledger")
        self._id = uuid.uuid4().hex

    @property
    def id(self) -> str:
        return self._id

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} cannot be duplicated")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} cannot be duplicated")

    def __reduce__(self):
        raise TypeError(f"{type(self).__name__} cannot be serialized")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._id[:8]}>"


class AdminCapability(_Token):
    """Authorizes pool creation and reward distribution."""

    __slots__ = ()


class OracleCapability(_Token):
    """Carries the oracle public key scores are verified against."""

    __slots__ = ("_public_key", "_ledger_id")

    def __init__(self, mint: object, public_key: bytes, ledger_id: str) -> None:
        super().__init__(mint)
        self._public_key = bytes(public_key)
        self._ledger_id = ledger_id

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def ledger_id(self) -> str:
        return self._ledger_id


class EntryCredential(_Token):
    """Single-use proof of paid entry for one round (the "ticket")."""

    __slots__ = ("_character_seed", "_round_id", "_owner", "_ledger_id", "_consumed")

    def __init__(
        self,
        mint: object,
        character_seed: int,
        round_id: int,
        owner: str,
        ledger_id: str,
    ) -> None:
        super().__init__(mint)
        self._character_seed = character_seed
        self._round_id = round_id
        self._owner = owner
        self._ledger_id = ledger_id
        self._consumed = False

    @property
    def character_seed(self) -> int:
        """Cosmetic seed for character generation. Carries no trust."""
        return self._character_seed

    @property
    def round_id(self) -> int:
        return self._round_id

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def ledger_id(self) -> str:
        return self._ledger_id

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _consume(self) -> None:
        self._consumed = True


# ---------------------------------------------------------------------------
# Scores and snapshots
# ---------------------------------------------------------------------------


class Score(BaseModel):
    """A retained leaderboard entry."""

    model_config = {"frozen": True}

    player: str
    survival_time: int = Field(ge=0, description="Survival time in milliseconds")


class RoundSnapshot(BaseModel):
    """Read-only view of a ledger at one observation point."""

    model_config = {"frozen": True}

    ledger_id: str
    balance: int
    current_round: int
    end_timestamp: int
    participant_count: int
    top_scores: tuple[Score, ...] = ()


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class RoundStarted(BaseModel):
    kind: Literal["round_started"] = "round_started"
    round_id: int
    end_timestamp: int
    pool_balance: int


class PlayerEntered(BaseModel):
    kind: Literal["player_entered"] = "player_entered"
    round_id: int
    player: str
    payment: int
    character_seed: int
    credential_id: str


class PoolFunded(BaseModel):
    kind: Literal["pool_funded"] = "pool_funded"
    sender: str
    amount: int
    balance: int


class ScoreSubmitted(BaseModel):
    kind: Literal["score_submitted"] = "score_submitted"
    round_id: int
    player: str
    survival_time: int
    retained: bool
    rank: int | None = Field(default=None, description="1-based rank when retained")


class Payout(BaseModel):
    """One winner slot. Unfilled slots have no address and zero amounts."""

    address: str | None = None
    amount: int = 0
    survival_time: int = 0


class RewardsDistributed(BaseModel):
    kind: Literal["rewards_distributed"] = "rewards_distributed"
    round_id: int
    end_timestamp: int
    distributed_at: int
    distributable: int
    payouts: list[Payout] = Field(default_factory=list)


LedgerEvent = Union[RoundStarted, PlayerEntered, PoolFunded, ScoreSubmitted, RewardsDistributed]


# ---------------------------------------------------------------------------
# The ledger itself
# ---------------------------------------------------------------------------


class RoundLedger:
    """Authoritative shared round state.

    Fields are mutated only through the operations in ``pool``,
    ``attestation`` and ``distributor``. Each of those validates everything
    before its first write, so a raised error leaves the ledger untouched.

    ``events`` holds notifications not yet handed off. A ``LedgerHost``
    empties it after every call; without one, only the newest
    ``EVENT_LOG_LIMIT`` are kept.
    """

    def __init__(
        self,
        mint: object,
        *,
        admin_id: str,
        balance: int,
        end_timestamp: int,
        params: LedgerParams,
    ) -> None:
        if mint is not _MINT:
            raise TypeError("RoundLedger can only be created by create_pool")
        self.id = uuid.uuid4().hex
        self.admin_id = admin_id
        self.params = params
        self.balance = balance
        self.current_round = 1
        self.end_timestamp = end_timestamp
        self.participants: set[str] = set()
        self.top_scores: list[Score] = []
        self.events: deque[LedgerEvent] = deque(maxlen=EVENT_LOG_LIMIT)

    # -- Read-only queries --

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    def snapshot(self) -> RoundSnapshot:
        return RoundSnapshot(
            ledger_id=self.id,
            balance=self.balance,
            current_round=self.current_round,
            end_timestamp=self.end_timestamp,
            participant_count=len(self.participants),
            top_scores=tuple(self.top_scores),
        )

    def _emit(self, event: LedgerEvent) -> LedgerEvent:
        self.events.append(event)
        return event

    def __repr__(self) -> str:
        return (
            f"<RoundLedger {self.id[:8]} round={self.current_round} "
            f"balance={self.balance} scores={len(self.top_scores)}>"
        )


__all__ = [
    "EVENT_LOG_LIMIT",
    "AdminCapability",
    "EntryCredential",
    "LedgerEvent",
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
]
