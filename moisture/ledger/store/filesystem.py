"""Filesystem-based RoundArchive implementation.

Writes one gzip-compressed JSON file per finished round:
  {data_dir}/rounds/round_{N:012d}.json.gz

Retention: rounds distributed more than ``retention_days`` ago are pruned
on every write. ``retention_days=None`` keeps everything.
"""

from __future__ import annotations

import gzip
import json
import time
from pathlib import Path
from typing import Any

import bittensor as bt

from moisture.ledger.models import LedgerEvent, RewardsDistributed

from .interface import RoundRecord

_DAY_MS = 24 * 60 * 60 * 1000


def _write_gzip_json(path: Path, data: Any) -> None:
    """Write data as gzipped JSON, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = json.dumps(data, default=str, sort_keys=True).encode()
    tmp = path.with_suffix(path.suffix + ".tmp")
    with gzip.open(tmp, "wb") as f:
        f.write(raw)
    tmp.replace(path)


def _read_gzip_json(path: Path) -> Any:
    """Read gzipped JSON file."""
    with gzip.open(path, "rb") as f:
        return json.loads(f.read())


class FilesystemRoundArchive:
    """Local filesystem RoundArchive implementation."""

    def __init__(self, data_dir: str, retention_days: int | None = None):
        self.rounds_dir = Path(data_dir) / "rounds"
        self.retention_days = retention_days
        self.rounds_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _record_id(round_id: int) -> str:
        return f"round_{round_id:012d}"

    def _path(self, round_id: int) -> Path:
        return self.rounds_dir / f"{self._record_id(round_id)}.json.gz"

    def put_round(self, record: RoundRecord) -> str:
        """Write a round record to disk. Returns the record ID."""
        _write_gzip_json(self._path(record.round_id), record.model_dump(mode="json"))
        self._prune()
        return self._record_id(record.round_id)

    def get_round(self, round_id: int) -> RoundRecord | None:
        path = self._path(round_id)
        if not path.exists():
            return None
        return RoundRecord(**_read_gzip_json(path))

    def list_rounds(self, limit: int = 3) -> list[RoundRecord]:
        """Most recent rounds first."""
        paths = sorted(self.rounds_dir.glob("round_*.json.gz"), reverse=True)
        return [RoundRecord(**_read_gzip_json(p)) for p in paths[:limit]]

    def record(self, event: LedgerEvent) -> None:
        """Ledger subscriber: archive every rewards-distributed event."""
        if not isinstance(event, RewardsDistributed):
            return
        record_id = self.put_round(RoundRecord.from_event(event))
        bt.logging.info({"round_archive": {"stored": record_id, "winners": sum(1 for p in event.payouts if p.address)}})

    def _prune(self) -> None:
        """Remove rounds older than the retention window."""
        if self.retention_days is None:
            return
        cutoff = int(time.time() * 1000) - self.retention_days * _DAY_MS
        for path in list(self.rounds_dir.glob("round_*.json.gz")):
            try:
                distributed_at = int(_read_gzip_json(path).get("distributed_at", 0))
            except (OSError, ValueError) as e:
                bt.logging.warning({"round_archive": {"unreadable": path.name, "error": str(e)}})
                continue
            if distributed_at < cutoff:
                path.unlink(missing_ok=True)


__all__ = ["FilesystemRoundArchive"]
