"""Heuristic plausibility checks on a score claim before it is signed.

These checks are partial. They catch malformed claims and
obviously inconsistent telemetry; they do not replay the game.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import bittensor as bt
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from moisture.ledger.message import U64_MAX, is_valid_address

DEATH = "death"


class TelemetryEvent(BaseModel):
    """One entry of the client's event trail."""

    timestamp: float = Field(ge=0, description="Milliseconds since the run started")
    type: Literal["move", "shoot", "hit", "death"]
    data: Any = None


@dataclass
class ReplayCheck:
    """Result of a replay validation."""

    valid: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.valid


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ReplayValidator:
    """Validates (player, round, time, telemetry) claims."""

    def __init__(self, max_survival_time_ms: int = 3_600_000, death_tolerance_ms: int = 2000):
        self.max_survival_time_ms = max_survival_time_ms
        self.death_tolerance_ms = death_tolerance_ms

    def validate(
        self,
        player_id: object,
        round_id: object,
        survival_time: object,
        events: object = None,
    ) -> ReplayCheck:
        def _reject(reason: str) -> ReplayCheck:
            bt.logging.debug({"replay_validator": {"rejected": reason}})
            return ReplayCheck(valid=False, reason=reason)

        if not is_valid_address(player_id):
            return _reject("Invalid player address")

        if not _is_int(round_id) or round_id <= 0 or round_id > U64_MAX:
            return _reject("Invalid round ID")

        if not _is_int(survival_time) or survival_time <= 0:
            return _reject("Invalid survival time")

        if survival_time > self.max_survival_time_ms:
            return _reject("Survival time exceeds maximum allowed")

        if events is not None:
            return self._validate_events(events, survival_time, _reject)

        return ReplayCheck(valid=True)

    def _validate_events(self, events: object, survival_time: int, _reject) -> ReplayCheck:
        if not isinstance(events, list):
            return _reject("Malformed telemetry")
        try:
            parsed = [
                e if isinstance(e, TelemetryEvent) else TelemetryEvent.model_validate(e)
                for e in events
            ]
        except PydanticValidationError:
            return _reject("Malformed telemetry")

        deaths = [e for e in parsed if e.type == DEATH]
        if not deaths:
            return _reject("Missing death event")
        if len(deaths) > 1:
            return _reject("Multiple death events")

        last = 0.0
        for event in parsed:
            if event.timestamp < last:
                return _reject("Invalid event timestamp sequence")
            last = event.timestamp

        if parsed[-1].type != DEATH:
            return _reject("Death event is not terminal")

        if abs(deaths[0].timestamp - survival_time) > self.death_tolerance_ms:
            return _reject("Survival time mismatch with death event")

        return ReplayCheck(valid=True)


__all__ = ["ReplayCheck", "ReplayValidator", "TelemetryEvent"]
