"""In-process VoteLedgerStore backed by a dict."""

from __future__ import annotations

import threading

from stagejury.ledger.models import VoteLedger


class MemoryLedgerStore:
    """Dict-backed store; a lock makes compare-and-set atomic across threads."""

    def __init__(self) -> None:
        self._ledgers: dict[str, VoteLedger] = {}
        self._lock = threading.Lock()

    async def get_ledger(self, submission_id: str) -> VoteLedger | None:
        with self._lock:
            return self._ledgers.get(submission_id)

    async def compare_and_set(self, ledger: VoteLedger, expected_version: int) -> VoteLedger | None:
        with self._lock:
            current = self._ledgers.get(ledger.submission_id)
            current_version = current.version if current is not None else 0
            if current_version != expected_version:
                return None
            stored = ledger.model_copy(update={"version": expected_version + 1})
            self._ledgers[ledger.submission_id] = stored
            return stored

    async def list_submission_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._ledgers)


__all__ = ["MemoryLedgerStore"]
