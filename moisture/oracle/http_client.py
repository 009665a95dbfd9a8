"""HTTP client for the oracle service, as used by game clients.

A rejected or failed verification is returned as a result with ``valid``
False and an error string; nothing is raised for expected failures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import bittensor as bt
import httpx


@dataclass
class ReplayData:
    """Score claim sent to the oracle."""

    player_id: str
    round_id: int
    survival_time: int
    events: list[dict[str, Any]] | None = None
    checksum: str = ""

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "playerId": self.player_id,
            "roundId": self.round_id,
            "survivalTime": self.survival_time,
            "checksum": self.checksum,
        }
        if self.events is not None:
            body["events"] = self.events
        return body


@dataclass
class VerificationResult:
    valid: bool
    signature: bytes | None = None
    error: str = ""
    status_code: int | None = field(default=None, compare=False)


class OracleClient:
    """Async client for /health, /api/public-key and /api/verify-score."""

    def __init__(self, base_url: str = "http://localhost:3001", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> OracleClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def verify_run(self, replay: ReplayData) -> VerificationResult:
        """Ask the oracle to validate and sign a run."""
        try:
            resp = await self._client.post(
                f"{self.base_url}/api/verify-score", json=replay.to_json(),
            )
            result = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            bt.logging.warning({"oracle_client": {"endpoint": "verify-score", "error": str(e)}})
            return VerificationResult(valid=False, error=str(e) or "Network error")

        if not isinstance(result, dict):
            bt.logging.warning({"oracle_client": {"endpoint": "verify-score", "error": "non-object response"}})
            return VerificationResult(
                valid=False,
                error="Invalid response from oracle",
                status_code=resp.status_code,
            )

        if resp.status_code != 200:
            return VerificationResult(
                valid=False,
                error=result.get("error") or "Verification failed",
                status_code=resp.status_code,
            )

        if result.get("valid") and result.get("signature"):
            return VerificationResult(
                valid=True,
                signature=bytes(result["signature"]),
                status_code=resp.status_code,
            )

        return VerificationResult(
            valid=False,
            error=result.get("error") or "Invalid response from oracle",
            status_code=resp.status_code,
        )

    async def get_public_key(self) -> bytes | None:
        """Oracle public key bytes, or None if unavailable."""
        try:
            resp = await self._client.get(f"{self.base_url}/api/public-key")
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            bt.logging.warning({"oracle_client": {"endpoint": "public-key", "error": str(e)}})
            return None
        key = data.get("publicKeyBytes") if isinstance(data, dict) else None
        return bytes(key) if key else None

    async def check_health(self) -> bool:
        try:
            resp = await self._client.get(f"{self.base_url}/health")
        except httpx.HTTPError:
            return False
        return resp.status_code == 200


__all__ = ["OracleClient", "ReplayData", "VerificationResult"]
