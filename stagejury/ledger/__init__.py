"""Moderation vote ledger: per-submission voter sets and their mutation contract.

Votes are appended through VoteRecorder, which applies each one with
compare-and-set against a pluggable VoteLedgerStore so concurrent
reviewers never overwrite one another.
"""

from .errors import LedgerConflictError, LedgerError, LedgerStoreError
from .models import Submission, VoteCounts, VoteKind, VoteLedger
from .recorder import VoteRecorder

__all__ = [
    "LedgerConflictError",
    "LedgerError",
    "LedgerStoreError",
    "Submission",
    "VoteCounts",
    "VoteKind",
    "VoteLedger",
    "VoteRecorder",
]
