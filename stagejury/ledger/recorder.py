"""Vote recording over a VoteLedgerStore.

Each mutation is an optimistic-concurrency loop:
1. read the current ledger (absent = empty at version 0)
2. if the voter is already in the target set, return current counts
3. otherwise add the voter and compare-and-set against the read version
4. on conflict, back off and retry against a fresh read

A voter already present never causes a write, so repeating a call is a
no-op. Retries are bounded; exhausting them raises LedgerConflictError
rather than dropping the vote.
"""

from __future__ import annotations

import asyncio

import bittensor as bt

from stagejury.config.contest_params import LedgerParams

from .errors import LedgerConflictError
from .models import VoteCounts, VoteKind, VoteLedger
from .store.interface import VoteLedgerStore


class VoteRecorder:
    """Applies approve / disapprove / view votes to ledgers."""

    def __init__(
        self,
        store: VoteLedgerStore,
        max_retries: int = 5,
        retry_backoff_seconds: float = 0.01,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.store = store
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds

    @classmethod
    def from_params(cls, store: VoteLedgerStore, params: LedgerParams) -> VoteRecorder:
        return cls(
            store=store,
            max_retries=params.max_retries,
            retry_backoff_seconds=params.retry_backoff_seconds,
        )

    async def record_approval(self, submission_id: str, voter_id: str) -> VoteCounts:
        return await self.record(submission_id, voter_id, VoteKind.APPROVE)

    async def record_disapproval(self, submission_id: str, voter_id: str) -> VoteCounts:
        return await self.record(submission_id, voter_id, VoteKind.DISAPPROVE)

    async def record_view(self, submission_id: str, voter_id: str) -> VoteCounts:
        return await self.record(submission_id, voter_id, VoteKind.VIEW)

    async def record(self, submission_id: str, voter_id: str, kind: VoteKind) -> VoteCounts:
        kind = VoteKind(kind)
        submission_id = str(submission_id)
        voter_id = str(voter_id)
        if not submission_id or not voter_id:
            raise ValueError("submission_id and voter_id must be non-empty")

        for attempt in range(1, self.max_retries + 1):
            current = await self.store.get_ledger(submission_id)
            if current is None:
                current = VoteLedger.empty(submission_id)

            if current.has_voter(kind, voter_id):
                return current.counts()

            stored = await self.store.compare_and_set(
                current.with_voter(kind, voter_id),
                expected_version=current.version,
            )
            if stored is not None:
                return stored.counts()

            bt.logging.debug({
                "vote_recorder": {
                    "conflict": submission_id,
                    "kind": kind.value,
                    "attempt": attempt,
                    "read_version": current.version,
                }
            })
            if attempt < self.max_retries and self.retry_backoff_seconds > 0:
                await asyncio.sleep(self.retry_backoff_seconds * attempt)

        bt.logging.error({
            "vote_recorder": {
                "retries_exhausted": submission_id,
                "kind": kind.value,
                "voter_id": voter_id,
                "attempts": self.max_retries,
            }
        })
        raise LedgerConflictError(submission_id, kind.value, voter_id, self.max_retries)

    async def get_counts(self, submission_id: str) -> VoteCounts:
        ledger = await self.store.get_ledger(str(submission_id))
        return ledger.counts() if ledger is not None else VoteCounts()


__all__ = ["VoteRecorder"]
