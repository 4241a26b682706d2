"""Vote ledger exceptions."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for vote ledger failures."""


class LedgerStoreError(LedgerError):
    """A backend could not read or write a ledger (I/O, corrupt data)."""


class LedgerConflictError(LedgerError):
    """A vote could not be applied because concurrent writers kept winning.

    Raised after the configured number of compare-and-set attempts so the
    caller sees the failure instead of the vote vanishing.
    """

    def __init__(self, submission_id: str, kind: str, voter_id: str, attempts: int):
        self.submission_id = submission_id
        self.kind = kind
        self.voter_id = voter_id
        self.attempts = attempts
        super().__init__(
            f"Could not record {kind} by {voter_id} on submission {submission_id} "
            f"after {attempts} attempts"
        )


__all__ = ["LedgerConflictError", "LedgerError", "LedgerStoreError"]
