"""End-of-round reward split and round rollover (the reward distributor).

All amounts are integers in the smallest payment unit. Every winner slot
except the last present one gets ``floor(d * share / 100)``; the last
present winner takes whatever is left, so the split always sums to the
distributable amount exactly.
"""

from __future__ import annotations

import bittensor as bt

from moisture.errors import CapabilityMismatch, RoundStillActive

from .models import (
    AdminCapability,
    Payout,
    RewardsDistributed,
    RoundLedger,
    RoundStarted,
)


def distributable_amount(balance: int, reserve: int) -> int:
    """Funds eligible for payout.

    The reserve seeds the next round, unless the pool never grew past it,
    in which case the whole balance is paid out.
    """
    return balance - reserve if balance > reserve else balance


def split_rewards(distributable: int, n_winners: int, shares: tuple[int, ...]) -> list[int]:
    """Split ``distributable`` across ``n_winners`` ranked slots.

    Args:
        distributable: Non-negative amount to split.
        n_winners: Number of ranked winners present (0..len(shares) + 1).
        shares: Percentages for the leading slots, e.g. (50, 30).

    Returns:
        One amount per winner, best first. Sums to ``distributable`` when
        there is at least one winner.
    """
    if distributable < 0:
        raise ValueError("distributable must be non-negative")
    if n_winners < 0 or n_winners > len(shares) + 1:
        raise ValueError(f"n_winners out of range: {n_winners}")
    if n_winners == 0:
        return []

    amounts = [distributable * shares[i] // 100 for i in range(n_winners - 1)]
    amounts.append(distributable - sum(amounts))
    return amounts


def distribute_rewards(
    ledger: RoundLedger,
    admin: AdminCapability,
    now: int,
) -> RewardsDistributed:
    """Pay the round's winners and roll the ledger to the next round.

    Raises:
        CapabilityMismatch: ``admin`` did not create this ledger.
        RoundStillActive: ``now`` is before the round's end time.
    """
    if not isinstance(admin, AdminCapability) or admin.id != ledger.admin_id:
        raise CapabilityMismatch("Admin capability does not control this ledger")
    if now < ledger.end_timestamp:
        raise RoundStillActive(
            f"Round {ledger.current_round} ends at {ledger.end_timestamp}, now is {now}"
        )

    params = ledger.params
    winners = list(ledger.top_scores)
    distributable = distributable_amount(ledger.balance, params.reserve_floor)
    amounts = split_rewards(distributable, len(winners), params.payout_shares)

    payouts = [
        Payout(address=score.player, amount=amount, survival_time=score.survival_time)
        for score, amount in zip(winners, amounts)
    ]
    paid = sum(amounts)
    payouts.extend(Payout() for _ in range(params.max_winners - len(payouts)))

    ended_round = ledger.current_round
    ended_at = ledger.end_timestamp

    ledger.balance -= paid
    event = ledger._emit(RewardsDistributed(
        round_id=ended_round,
        end_timestamp=ended_at,
        distributed_at=now,
        distributable=distributable,
        payouts=payouts,
    ))

    ledger.current_round += 1
    ledger.end_timestamp = now + params.round_duration_ms
    ledger.participants.clear()
    ledger.top_scores = []
    ledger._emit(RoundStarted(
        round_id=ledger.current_round,
        end_timestamp=ledger.end_timestamp,
        pool_balance=ledger.balance,
    ))

    bt.logging.info({
        "ledger_rewards": {
            "round": ended_round,
            "winners": len(winners),
            "distributable": distributable,
            "paid": paid,
            "next_round": ledger.current_round,
            "opening_balance": ledger.balance,
        }
    })
    return event


__all__ = ["distributable_amount", "distribute_rewards", "split_rewards"]
