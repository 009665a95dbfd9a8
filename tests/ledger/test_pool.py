"""Tests for pool creation, entry and donations."""

import copy
import pickle

import pytest

from moisture.base.config import LedgerParams
from moisture.errors import (
    CapabilityMismatch,
    InsufficientPayment,
    InvalidOracleKey,
    PaymentError,
    RoundEnded,
    RoundInGrace,
    TimingError,
    ValidationError,
)
from moisture.ledger.models import (
    AdminCapability,
    EntryCredential,
    PlayerEntered,
    PoolFunded,
    RoundLedger,
    RoundStarted,
)
from moisture.ledger.pool import add_to_pool, create_pool, enter_game, genesis

T0 = 1_700_000_000_000
HOUR = 3_600_000
RESERVE = 1_000_000_000
FEE = 100_000_000
ALICE = "0x" + "a1" * 32
BOB = "0x" + "b2" * 32


@pytest.fixture
def admin():
    return genesis()


@pytest.fixture
def ledger(admin):
    ledger, _ = create_pool(admin, RESERVE, b"\x01" * 32, T0)
    return ledger


class TestCreatePool:

    def test_creates_round_one(self, admin):
        ledger, oracle = create_pool(admin, RESERVE, b"\x02" * 32, T0)
        assert ledger.current_round == 1
        assert ledger.balance == RESERVE
        assert ledger.end_timestamp == T0 + HOUR
        assert ledger.participant_count == 0
        assert ledger.top_scores == []
        assert oracle.public_key == b"\x02" * 32
        assert oracle.ledger_id == ledger.id

    def test_emits_round_started(self, admin):
        ledger, _ = create_pool(admin, RESERVE, b"\x02" * 32, T0)
        assert list(ledger.events) == [RoundStarted(round_id=1, end_timestamp=T0 + HOUR, pool_balance=RESERVE)]

    @pytest.mark.parametrize("key", [b"", b"\x01" * 31, b"\x01" * 33, "x" * 32])
    def test_bad_oracle_key(self, admin, key):
        with pytest.raises(InvalidOracleKey):
            create_pool(admin, RESERVE, key, T0)

    def test_funds_below_reserve(self, admin):
        with pytest.raises(InsufficientPayment):
            create_pool(admin, RESERVE - 1, b"\x01" * 32, T0)

    def test_custom_params(self, admin):
        params = LedgerParams(reserve_floor=10, round_duration_ms=1000, grace_period_ms=100)
        ledger, _ = create_pool(admin, 10, b"\x01" * 32, T0, params)
        assert ledger.end_timestamp == T0 + 1000

    def test_requires_admin_capability(self):
        with pytest.raises(CapabilityMismatch):
            create_pool(object(), RESERVE, b"\x01" * 32, T0)


class TestCapabilities:

    def test_cannot_construct_directly(self):
        with pytest.raises(TypeError):
            AdminCapability(object())
        with pytest.raises(TypeError):
            RoundLedger(object(), admin_id="x", balance=0, end_timestamp=0, params=LedgerParams())

    def test_cannot_copy_or_pickle(self, admin):
        with pytest.raises(TypeError):
            copy.copy(admin)
        with pytest.raises(TypeError):
            copy.deepcopy(admin)
        with pytest.raises(TypeError):
            pickle.dumps(admin)

    def test_credential_cannot_be_copied(self, ledger):
        cred = enter_game(ledger, FEE, ALICE, T0)
        with pytest.raises(TypeError):
            copy.copy(cred)


class TestEnterGame:

    def test_scenario_single_entrant(self, ledger):
        cred = enter_game(ledger, FEE, ALICE, T0 + 1)
        assert ledger.balance == 1_100_000_000
        assert cred.round_id == 1
        assert cred.owner == ALICE
        assert not cred.consumed
        assert isinstance(cred, EntryCredential)

    def test_balance_and_participants_grow(self, ledger):
        before = ledger.balance
        enter_game(ledger, FEE, ALICE, T0)
        assert ledger.balance == before + FEE
        assert ledger.participant_count == 1
        enter_game(ledger, FEE + 5, BOB, T0)
        assert ledger.balance == before + 2 * FEE + 5
        assert ledger.participant_count == 2

    def test_same_player_twice_counts_once(self, ledger):
        enter_game(ledger, FEE, ALICE, T0)
        enter_game(ledger, FEE, ALICE, T0)
        assert ledger.participant_count == 1
        assert ledger.balance == RESERVE + 2 * FEE

    def test_overpayment_kept(self, ledger):
        enter_game(ledger, FEE * 3, ALICE, T0)
        assert ledger.balance == RESERVE + FEE * 3

    def test_underpayment_rejected_without_mutation(self, ledger):
        with pytest.raises(InsufficientPayment) as exc:
            enter_game(ledger, FEE - 1, ALICE, T0)
        assert isinstance(exc.value, PaymentError)
        assert ledger.balance == RESERVE
        assert ledger.participant_count == 0
        assert len(ledger.events) == 1

    def test_round_ended(self, ledger):
        with pytest.raises(RoundEnded):
            enter_game(ledger, FEE, ALICE, T0 + HOUR)
        assert ledger.balance == RESERVE

    def test_grace_window(self, ledger):
        grace_start = T0 + HOUR - 5 * 60 * 1000
        enter_game(ledger, FEE, ALICE, grace_start - 1)
        with pytest.raises(RoundInGrace) as exc:
            enter_game(ledger, FEE, BOB, grace_start)
        assert isinstance(exc.value, TimingError)
        assert ledger.participant_count == 1

    def test_payment_checked_before_timing(self, ledger):
        with pytest.raises(InsufficientPayment):
            enter_game(ledger, 0, ALICE, T0 + 2 * HOUR)

    def test_bad_sender(self, ledger):
        with pytest.raises(ValidationError):
            enter_game(ledger, FEE, "alice", T0)

    def test_emits_entry_notification(self, ledger):
        cred = enter_game(ledger, FEE, ALICE, T0)
        event = ledger.events[-1]
        assert isinstance(event, PlayerEntered)
        assert event.player == ALICE
        assert event.payment == FEE
        assert event.credential_id == cred.id
        assert event.character_seed == cred.character_seed

    def test_seed_uses_fresh_value(self, ledger):
        a = enter_game(ledger, FEE, ALICE, T0, uid_source=lambda: b"\x00" * 16)
        b = enter_game(ledger, FEE, ALICE, T0, uid_source=lambda: b"\xff" * 16)
        assert a.character_seed != b.character_seed


class TestAddToPool:

    def test_donation(self, ledger):
        event = add_to_pool(ledger, 42, BOB)
        assert ledger.balance == RESERVE + 42
        assert ledger.participant_count == 0
        assert isinstance(event, PoolFunded)
        assert event.balance == RESERVE + 42

    def test_negative_rejected(self, ledger):
        with pytest.raises(ValidationError):
            add_to_pool(ledger, -1, BOB)
        assert ledger.balance == RESERVE
