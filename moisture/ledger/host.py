"""Single-writer host for one round ledger.

The ledger operations assume their caller serializes them. ``LedgerHost``
is that caller: every state-changing call runs under one lock, so calls
on the same ledger happen in a total order and each either commits fully
or raises with nothing written.

Committed events go to an outbox. One thread at a time drains it to the
subscribers, outside the lock, so every subscriber sees events in commit
order. A call that commits while another thread is publishing returns
without waiting; that thread delivers its events too.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable

import bittensor as bt

from moisture.base.config import LedgerParams, load_ledger_params

from . import attestation, distributor, pool
from .models import (
    AdminCapability,
    EntryCredential,
    LedgerEvent,
    OracleCapability,
    PoolFunded,
    RewardsDistributed,
    RoundLedger,
    RoundSnapshot,
    ScoreSubmitted,
)

Subscriber = Callable[[LedgerEvent], None]

# Recent events returned by LedgerHost.events().
DEFAULT_HISTORY = 1024


def now_ms() -> int:
    return int(time.time() * 1000)


class LedgerHost:
    """Owns a ledger and serializes every call made against it."""

    def __init__(
        self,
        ledger: RoundLedger,
        clock: Callable[[], int] = now_ms,
        history: int = DEFAULT_HISTORY,
    ):
        self._ledger = ledger
        self._clock = clock
        self._lock = threading.Lock()
        self._subscribers: list[Subscriber] = []
        # Events emitted before hosting are kept as history, never published.
        self._history: deque[LedgerEvent] = deque(ledger.events, maxlen=history)
        ledger.events.clear()
        self._outbox: deque[LedgerEvent] = deque()
        self._publishing = False

    @classmethod
    def create(
        cls,
        admin: AdminCapability,
        initial_funds: int,
        oracle_public_key: bytes,
        params: LedgerParams | None = None,
        clock: Callable[[], int] = now_ms,
        history: int = DEFAULT_HISTORY,
    ) -> tuple["LedgerHost", OracleCapability]:
        """Create a pool and host it.

        ``params`` defaults to ``load_ledger_params()``, i.e. the
        ``MOISTURE_LEDGER__*`` environment over the built-in constants.
        """
        if params is None:
            params = load_ledger_params()
        ledger, oracle = pool.create_pool(
            admin, initial_funds, oracle_public_key, clock(), params,
        )
        return cls(ledger, clock=clock, history=history), oracle

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback for every event committed from now on."""
        self._subscribers.append(callback)

    # -- Mutating operations --

    def enter_game(self, payment: int, sender: str) -> EntryCredential:
        with self._lock:
            credential = pool.enter_game(self._ledger, payment, sender, self._clock())
            self._drain()
        self._publish()
        return credential

    def add_to_pool(self, payment: int, sender: str) -> PoolFunded:
        with self._lock:
            event = pool.add_to_pool(self._ledger, payment, sender)
            self._drain()
        self._publish()
        return event

    def submit_score(
        self,
        oracle: OracleCapability,
        credential: EntryCredential,
        survival_time: int,
        signature: bytes,
    ) -> ScoreSubmitted:
        with self._lock:
            event = attestation.submit_score(
                self._ledger, oracle, credential, survival_time, signature,
            )
            self._drain()
        self._publish()
        return event

    def distribute_rewards(self, admin: AdminCapability) -> RewardsDistributed:
        with self._lock:
            event = distributor.distribute_rewards(self._ledger, admin, self._clock())
            self._drain()
        self._publish()
        return event

    # -- Read-only queries --

    def snapshot(self) -> RoundSnapshot:
        with self._lock:
            return self._ledger.snapshot()

    @property
    def balance(self) -> int:
        return self.snapshot().balance

    @property
    def current_round(self) -> int:
        return self.snapshot().current_round

    @property
    def end_timestamp(self) -> int:
        return self.snapshot().end_timestamp

    @property
    def participant_count(self) -> int:
        return self.snapshot().participant_count

    def events(self) -> list[LedgerEvent]:
        """The most recent committed events, oldest first."""
        with self._lock:
            return list(self._history)

    # -- Internals --

    def _drain(self) -> None:
        """Move the ledger's new events to history and the outbox. Caller holds the lock."""
        pending = list(self._ledger.events)
        self._ledger.events.clear()
        self._history.extend(pending)
        self._outbox.extend(pending)

    def _publish(self) -> None:
        with self._lock:
            if self._publishing:
                return
            self._publishing = True
        try:
            while True:
                with self._lock:
                    if not self._outbox:
                        self._publishing = False
                        return
                    event = self._outbox.popleft()
                self._deliver(event)
        except BaseException:
            with self._lock:
                self._publishing = False
            raise

    def _deliver(self, event: LedgerEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                bt.logging.warning({
                    "ledger_host": {"subscriber_error": str(e), "event": event.kind}
                })


__all__ = ["DEFAULT_HISTORY", "LedgerHost", "now_ms"]
