"""Configuration for the round ledger and the oracle service.

Precedence (highest first): ``MOISTURE_*`` environment variables, CLI flags,
model defaults. Environment names use ``__`` as the section separator, e.g.
``MOISTURE_ORACLE__PORT``.
"""

from __future__ import annotations

import argparse
import os
from typing import Any

from pydantic import BaseModel, Field, model_validator

ENV_PREFIX = "MOISTURE_"

# One unit of native currency in its smallest denomination.
NATIVE_UNIT = 1_000_000_000


class LedgerParams(BaseModel):
    """Economic and timing constants of the round ledger."""

    model_config = {"frozen": True}

    entry_fee: int = Field(default=100_000_000, ge=0)
    reserve_floor: int = Field(default=NATIVE_UNIT, ge=0)
    round_duration_ms: int = Field(default=60 * 60 * 1000, gt=0)
    grace_period_ms: int = Field(default=5 * 60 * 1000, ge=0)
    max_winners: int = Field(default=3, ge=1)
    # Percentages for every winner slot except the last, which takes the remainder.
    payout_shares: tuple[int, ...] = (50, 30)

    @model_validator(mode="after")
    def _check_shares(self) -> "LedgerParams":
        if len(self.payout_shares) != self.max_winners - 1:
            raise ValueError("payout_shares must cover every slot but the last")
        if any(s < 0 for s in self.payout_shares) or sum(self.payout_shares) > 100:
            raise ValueError("payout_shares must be non-negative and sum to <= 100")
        if self.grace_period_ms >= self.round_duration_ms:
            raise ValueError("grace_period_ms must be shorter than round_duration_ms")
        return self


class OracleSettings(BaseModel):
    """Runtime settings of the oracle signing service."""

    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=0, le=65535)
    keypair_path: str = ".keypair.json"
    rate_limit_per_window: int = Field(default=30, ge=1)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)
    max_survival_time_ms: int = Field(default=3_600_000, gt=0)
    death_tolerance_ms: int = Field(default=2000, ge=0)
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )


def is_test_mode() -> bool:
    return os.environ.get(f"{ENV_PREFIX}TEST_MODE", "").lower() in ("true", "1")


def add_oracle_args(parser: argparse.ArgumentParser) -> None:
    """Adds the oracle service arguments to the parser."""

    parser.add_argument("--oracle.host", type=str, default=None, help="Interface to bind.")
    parser.add_argument("--oracle.port", type=int, default=None, help="Port to listen on.")
    parser.add_argument(
        "--oracle.keypair_path",
        type=str,
        default=None,
        help="Path to the persisted Ed25519 keypair JSON.",
    )
    parser.add_argument(
        "--oracle.rate_limit_per_window",
        type=int,
        default=None,
        help="Requests allowed per caller within one window.",
    )
    parser.add_argument(
        "--oracle.rate_limit_window_seconds",
        type=float,
        default=None,
        help="Length of the sliding rate-limit window.",
    )
    parser.add_argument(
        "--oracle.allowed_origins",
        type=str,
        default=None,
        help="Comma-separated CORS origins.",
    )


def _split_origins(value: str) -> list[str]:
    return [o.strip() for o in value.split(",") if o.strip()]


def load_oracle_settings(args: argparse.Namespace | None = None) -> OracleSettings:
    """Resolve OracleSettings from CLI args and the environment."""
    values: dict[str, Any] = {}

    for name in OracleSettings.model_fields:
        cli_value = getattr(args, f"oracle.{name}", None) if args is not None else None
        if cli_value is not None:
            values[name] = cli_value

        env_value = os.environ.get(f"{ENV_PREFIX}ORACLE__{name.upper()}")
        if env_value:
            values[name] = env_value

    origins = values.get("allowed_origins")
    if isinstance(origins, str):
        values["allowed_origins"] = _split_origins(origins)

    return OracleSettings(**values)


def load_ledger_params() -> LedgerParams:
    """Resolve LedgerParams from ``MOISTURE_LEDGER__*`` variables."""
    values: dict[str, Any] = {}
    for name in LedgerParams.model_fields:
        env_value = os.environ.get(f"{ENV_PREFIX}LEDGER__{name.upper()}")
        if not env_value:
            continue
        if name == "payout_shares":
            values[name] = tuple(int(p) for p in env_value.split(","))
        else:
            values[name] = env_value
    return LedgerParams(**values)


__all__ = [
    "ENV_PREFIX",
    "NATIVE_UNIT",
    "LedgerParams",
    "OracleSettings",
    "add_oracle_args",
    "is_test_mode",
    "load_ledger_params",
    "load_oracle_settings",
]
