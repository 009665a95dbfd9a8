"""RoundArchive protocol - where finished rounds are recorded.

The archive only observes the ledger. Nothing read from it feeds back
into ledger state.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from moisture.ledger.models import RewardsDistributed


class RoundWinner(BaseModel):
    rank: int
    address: str
    survival_time: int
    amount: int


class RoundRecord(BaseModel):
    """Result of one finished round."""

    round_id: int
    end_timestamp: int
    distributed_at: int
    distributable: int
    winners: list[RoundWinner] = Field(default_factory=list)

    @classmethod
    def from_event(cls, event: RewardsDistributed) -> RoundRecord:
        winners = [
            RoundWinner(
                rank=i + 1,
                address=p.address,
                survival_time=p.survival_time,
                amount=p.amount,
            )
            for i, p in enumerate(event.payouts)
            if p.address is not None
        ]
        return cls(
            round_id=event.round_id,
            end_timestamp=event.end_timestamp,
            distributed_at=event.distributed_at,
            distributable=event.distributable,
            winners=winners,
        )


@runtime_checkable
class RoundArchive(Protocol):
    """Abstract interface for storing finished rounds."""

    def put_round(self, record: RoundRecord) -> str:
        """Store a round. Returns the record ID."""
        ...

    def get_round(self, round_id: int) -> RoundRecord | None:
        """Fetch one round by number."""
        ...

    def list_rounds(self, limit: int = 3) -> list[RoundRecord]:
        """Most recent rounds first."""
        ...


__all__ = ["RoundArchive", "RoundRecord", "RoundWinner"]
