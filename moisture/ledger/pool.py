"""Pool creation and round entry (the entry issuer).

Every operation checks all of its preconditions before touching the
ledger, so a raised error means nothing was written.
"""

from __future__ import annotations

from typing import Callable

import bittensor as bt

from moisture.base.config import LedgerParams
from moisture.errors import (
    CapabilityMismatch,
    InsufficientPayment,
    InvalidOracleKey,
    RoundEnded,
    RoundInGrace,
    ValidationError,
)

from .message import normalize_address
from .models import (
    _MINT,
    AdminCapability,
    EntryCredential,
    OracleCapability,
    PlayerEntered,
    PoolFunded,
    RoundLedger,
    RoundStarted,
)
from .seed import derive_character_seed, fresh_uid

ORACLE_KEY_LENGTH = 32


def _short(address: str) -> str:
    """Truncate an address for log readability."""
    return address[:10]


def _check_amount(name: str, amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationError(f"{name} must be a non-negative integer")


def genesis() -> AdminCapability:
    """Issue the admin capability for a new deployment."""
    cap = AdminCapability(_MINT)
    bt.logging.info({"ledger_genesis": {"admin_capability": cap.id[:8]}})
    return cap


def create_pool(
    admin: AdminCapability,
    initial_funds: int,
    oracle_public_key: bytes,
    now: int,
    params: LedgerParams | None = None,
) -> tuple[RoundLedger, OracleCapability]:
    """Create the round ledger and the oracle capability bound to it.

    Args:
        admin: Capability from ``genesis``.
        initial_funds: Seed balance; must cover the reserve floor.
        oracle_public_key: Raw 32-byte Ed25519 public key of the oracle.
        now: Current time in epoch milliseconds.
        params: Economic constants; defaults to ``LedgerParams()``.

    Returns:
        The new ledger (round 1) and its oracle capability.
    """
    params = params or LedgerParams()
    if not isinstance(admin, AdminCapability):
        raise CapabilityMismatch("create_pool requires an AdminCapability")
    if not isinstance(oracle_public_key, (bytes, bytearray)) or len(oracle_public_key) != ORACLE_KEY_LENGTH:
        raise InvalidOracleKey(
            f"Oracle public key must be {ORACLE_KEY_LENGTH} bytes"
        )
    _check_amount("initial_funds", initial_funds)
    if initial_funds < params.reserve_floor:
        raise InsufficientPayment(
            f"Initial funds {initial_funds} below reserve floor {params.reserve_floor}"
        )

    ledger = RoundLedger(
        _MINT,
        admin_id=admin.id,
        balance=initial_funds,
        end_timestamp=now + params.round_duration_ms,
        params=params,
    )
    oracle_cap = OracleCapability(_MINT, bytes(oracle_public_key), ledger.id)
    ledger._emit(RoundStarted(
        round_id=ledger.current_round,
        end_timestamp=ledger.end_timestamp,
        pool_balance=ledger.balance,
    ))
    bt.logging.info({
        "ledger_pool": {
            "event": "created",
            "ledger": ledger.id[:8],
            "balance": ledger.balance,
            "end_timestamp": ledger.end_timestamp,
        }
    })
    return ledger, oracle_cap


def enter_game(
    ledger: RoundLedger,
    payment: int,
    sender: str,
    now: int,
    uid_source: Callable[[], bytes] = fresh_uid,
) -> EntryCredential:
    """Pay the entry fee and mint a credential for the current round."""
    params = ledger.params
    _check_amount("payment", payment)
    player = normalize_address(sender)

    if payment < params.entry_fee:
        raise InsufficientPayment(
            f"Entry fee is {params.entry_fee}, got {payment}"
        )
    if now >= ledger.end_timestamp:
        raise RoundEnded(f"Round {ledger.current_round} has ended")
    if now >= ledger.end_timestamp - params.grace_period_ms:
        raise RoundInGrace(f"Round {ledger.current_round} is closing; entries are paused")

    seed = derive_character_seed(player, ledger.current_round, uid_source)

    ledger.balance += payment
    ledger.participants.add(player)
    credential = EntryCredential(
        _MINT,
        character_seed=seed,
        round_id=ledger.current_round,
        owner=player,
        ledger_id=ledger.id,
    )
    ledger._emit(PlayerEntered(
        round_id=ledger.current_round,
        player=player,
        payment=payment,
        character_seed=seed,
        credential_id=credential.id,
    ))
    bt.logging.info({
        "ledger_entry": {
            "player": _short(player),
            "round": ledger.current_round,
            "payment": payment,
            "balance": ledger.balance,
        }
    })
    return credential


def add_to_pool(ledger: RoundLedger, payment: int, sender: str) -> PoolFunded:
    """Donate funds to the pool. No credential is minted."""
    _check_amount("payment", payment)
    donor = normalize_address(sender)

    ledger.balance += payment
    event = ledger._emit(PoolFunded(sender=donor, amount=payment, balance=ledger.balance))
    bt.logging.info({"ledger_pool": {"event": "funded", "sender": _short(donor), "amount": payment}})
    return event


__all__ = ["ORACLE_KEY_LENGTH", "add_to_pool", "create_pool", "enter_game", "genesis"]
