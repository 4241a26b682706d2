"""VoteLedgerStore protocol - pluggable persistence interface.

Implementations: MemoryLedgerStore (tests, single process),
FilesystemLedgerStore (versioned JSON files), SQLLedgerStore (SQLAlchemy).

Every backend offers compare-and-set rather than blind overwrite so that
concurrent voters on one submission can never lose each other's updates.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from stagejury.ledger.models import VoteLedger


@runtime_checkable
class VoteLedgerStore(Protocol):
    """Abstract interface for reading and conditionally writing ledgers."""

    async def get_ledger(self, submission_id: str) -> VoteLedger | None:
        """Fetch the current ledger, or None if never written."""
        ...

    async def compare_and_set(self, ledger: VoteLedger, expected_version: int) -> VoteLedger | None:
        """Persist ``ledger`` only if the stored version equals ``expected_version``.

        Returns the stored ledger (version bumped to expected_version + 1)
        on success, None if another writer got there first.
        """
        ...

    async def list_submission_ids(self) -> list[str]:
        """List submissions that have a persisted ledger."""
        ...


__all__ = ["VoteLedgerStore"]
