"""Filesystem-based VoteLedgerStore implementation.

Every successful write publishes a new immutable version file:
  {data_dir}/ledger/votes/s_{submission_id}/v{NNNNNNNNNN}.json

A version is claimed with an exclusive hard link from a temp file, so of
two writers holding the same expected version exactly one succeeds; the
other sees FileExistsError and reports a conflict. Old versions are kept:
a ledger grows by at most one version per distinct vote, and pruning
would let a stale writer re-claim a freed version number.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

from pydantic import ValidationError

from stagejury.ledger.errors import LedgerStoreError
from stagejury.ledger.models import VoteLedger

_VERSION_RE = re.compile(r"^v(\d{10})\.json$")
_DIR_PREFIX = "s_"


def _version_name(version: int) -> str:
    return f"v{version:010d}.json"


def _read_json(path: Path) -> Any:
    """Read plain JSON file."""
    with open(path) as f:
        return json.load(f)


class FilesystemLedgerStore:
    """Local filesystem VoteLedgerStore implementation."""

    def __init__(self, data_dir: str):
        self.base = Path(data_dir) / "ledger"
        self.votes_dir = self.base / "votes"
        self.votes_dir.mkdir(parents=True, exist_ok=True)

    def _submission_dir(self, submission_id: str) -> Path:
        # quote() keeps IDs like "../x" from escaping the votes directory
        return self.votes_dir / f"{_DIR_PREFIX}{quote(submission_id, safe='')}"

    @staticmethod
    def _latest_version(sub_dir: Path) -> int:
        if not sub_dir.exists():
            return 0
        versions = [
            int(m.group(1))
            for m in (_VERSION_RE.match(p.name) for p in sub_dir.iterdir())
            if m
        ]
        return max(versions, default=0)

    async def get_ledger(self, submission_id: str) -> VoteLedger | None:
        """Load the highest published version for a submission."""
        sub_dir = self._submission_dir(submission_id)
        version = self._latest_version(sub_dir)
        if version == 0:
            return None

        path = sub_dir / _version_name(version)
        try:
            ledger = VoteLedger(**_read_json(path))
        except (OSError, ValueError, ValidationError) as e:
            raise LedgerStoreError(f"Corrupt ledger file {path}: {e}") from e
        if ledger.version != version:
            raise LedgerStoreError(
                f"Ledger file {path} claims version {ledger.version}, expected {version}"
            )
        return ledger

    async def compare_and_set(self, ledger: VoteLedger, expected_version: int) -> VoteLedger | None:
        """Publish version expected_version + 1, or return None if it is taken."""
        sub_dir = self._submission_dir(ledger.submission_id)
        if self._latest_version(sub_dir) != expected_version:
            return None

        stored = ledger.model_copy(update={"version": expected_version + 1})
        target = sub_dir / _version_name(stored.version)
        sub_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp = tempfile.mkstemp(dir=sub_dir, prefix=".tmp_", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(stored.model_dump(mode="json"), f, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            try:
                os.link(tmp, target)
            except FileExistsError:
                return None
        except OSError as e:
            raise LedgerStoreError(f"Failed writing {target}: {e}") from e
        finally:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
        return stored

    async def list_submission_ids(self) -> list[str]:
        if not self.votes_dir.exists():
            return []
        return sorted(
            unquote(d.name[len(_DIR_PREFIX):])
            for d in self.votes_dir.iterdir()
            if d.is_dir() and d.name.startswith(_DIR_PREFIX) and self._latest_version(d) > 0
        )


__all__ = ["FilesystemLedgerStore"]
