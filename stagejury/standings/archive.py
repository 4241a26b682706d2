"""Filesystem archive of exported standings.

Layout:
  {data_dir}/standings/{snapshot_id}/manifest.json
  {data_dir}/standings/{snapshot_id}/reviews.json.gz
  {data_dir}/standings/{snapshot_id}/standings.json.gz
  {data_dir}/standings/{snapshot_id}/params.json

Snapshot IDs start with ``s_{YYYYMMDDTHHMMSS}`` so lexical order is
chronological. Snapshots older than the retention window are pruned on
every write; the snapshot just written is always kept.
"""

from __future__ import annotations

import gzip
import json
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import bittensor as bt

from stagejury.scoring.models import EntryReview, Standing

from .models import StandingsManifest, StandingsSnapshot


def _write_gzip_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = json.dumps(data, default=str, sort_keys=True).encode()
    with gzip.open(path, "wb") as f:
        f.write(raw)


def _read_gzip_json(path: Path) -> Any:
    with gzip.open(path, "rb") as f:
        return json.loads(f.read())


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, default=str, sort_keys=True, indent=2)


def _read_json(path: Path) -> Any:
    with open(path) as f:
        return json.load(f)


class StandingsArchive:
    """Stores StandingsSnapshots on local disk."""

    def __init__(self, data_dir: str, retention_days: int = 30):
        self.base = Path(data_dir) / "standings"
        self.retention_days = retention_days
        self.base.mkdir(parents=True, exist_ok=True)

    async def put(self, snapshot: StandingsSnapshot) -> str:
        """Write a snapshot to disk. Returns its snapshot ID."""
        snapshot_id = snapshot.manifest.snapshot_id
        snap_dir = self.base / snapshot_id

        _write_json(snap_dir / "manifest.json", snapshot.manifest.model_dump(mode="json"))
        _write_gzip_json(
            snap_dir / "reviews.json.gz",
            [r.model_dump(mode="json") for r in snapshot.reviews],
        )
        _write_gzip_json(
            snap_dir / "standings.json.gz",
            [s.model_dump(mode="json") for s in snapshot.standings],
        )
        _write_json(snap_dir / "params.json", snapshot.params)

        bt.logging.info({
            "standings_archive": {
                "written": snapshot_id,
                "path": str(snap_dir),
                "standings": len(snapshot.standings),
            }
        })

        self._prune(keep=snapshot_id)
        return snapshot_id

    async def list_snapshots(self) -> list[str]:
        """Snapshot IDs, oldest first."""
        if not self.base.exists():
            return []
        return sorted(
            d.name for d in self.base.iterdir()
            if d.is_dir() and (d / "manifest.json").exists()
        )

    async def get_latest(self) -> StandingsSnapshot | None:
        ids = await self.list_snapshots()
        if not ids:
            return None
        return self._load(self.base / ids[-1])

    async def get_snapshot(self, snapshot_id: str) -> StandingsSnapshot | None:
        snap_dir = self.base / snapshot_id
        if not (snap_dir / "manifest.json").exists():
            return None
        return self._load(snap_dir)

    def _load(self, snap_dir: Path) -> StandingsSnapshot:
        manifest = StandingsManifest(**_read_json(snap_dir / "manifest.json"))
        reviews = [EntryReview(**r) for r in _read_gzip_json(snap_dir / "reviews.json.gz")]
        standings = [Standing(**s) for s in _read_gzip_json(snap_dir / "standings.json.gz")]
        params = _read_json(snap_dir / "params.json")
        return StandingsSnapshot(
            manifest=manifest,
            reviews=reviews,
            standings=standings,
            params=params,
        )

    def _prune(self, keep: str | None = None) -> None:
        """Remove snapshots older than the retention window, except ``keep``."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=self.retention_days)
        cutoff_str = cutoff.strftime("%Y%m%dT%H%M%S")

        for snap_dir in list(self.base.iterdir()):
            # s_YYYYMMDDTHHMMSS_hash
            if snap_dir.name == keep:
                continue
            parts = snap_dir.name.split("_")
            if len(parts) >= 2 and parts[1] < cutoff_str:
                shutil.rmtree(snap_dir, ignore_errors=True)
                bt.logging.debug({"standings_archive": {"pruned": snap_dir.name}})


__all__ = ["StandingsArchive"]
