"""Moderation consensus: turns ledger counts into a review verdict.

Approval score = approvals + view votes, where view votes are a step
function of how many reviewers opened the entry. Objections are checked
first and override any approval score, so a verdict can move from
Accepted back to Rejected as objections arrive. Nothing is stored; the
verdict is recomputed from counts every time.
"""

from __future__ import annotations

import re
from typing import Iterable

from stagejury.config.contest_params import ConsensusParams, get_contest_params
from stagejury.ledger.models import VoteLedger

from .models import ConsensusVerdict, EntryReview, ReviewStatus

_NUMERIC_ID = re.compile(r"^\d+$")


def submission_sort_key(submission_id: str) -> tuple[int, int, str]:
    """Order numeric IDs numerically, ahead of non-numeric IDs."""
    if _NUMERIC_ID.match(submission_id):
        return (0, int(submission_id), submission_id)
    return (1, 0, submission_id)


def adjusted_view_votes(viewed_count: int, params: ConsensusParams | None = None) -> int:
    """Votes granted for ``viewed_count`` viewers (highest tier reached)."""
    params = params or get_contest_params().consensus
    votes = 0
    for tier in params.view_vote_tiers:
        if viewed_count >= tier.min_views:
            votes = tier.votes
    return votes


def evaluate_consensus(
    approved_count: int,
    viewed_count: int,
    disapproved_count: int,
    params: ConsensusParams | None = None,
) -> ConsensusVerdict:
    """Verdict for one submission from its three set sizes."""
    if min(approved_count, viewed_count, disapproved_count) < 0:
        raise ValueError("vote counts must be non-negative")
    params = params or get_contest_params().consensus

    view_votes = adjusted_view_votes(viewed_count, params)
    approval_score = approved_count + view_votes

    if disapproved_count >= params.rejection_threshold:
        status = ReviewStatus.REJECTED
    elif approval_score >= params.approval_threshold:
        status = ReviewStatus.ACCEPTED
    else:
        status = ReviewStatus.PENDING

    return ConsensusVerdict(
        status=status,
        approval_score=approval_score,
        disapproval_count=disapproved_count,
        approved_count=approved_count,
        viewed_count=viewed_count,
        adjusted_view_votes=view_votes,
    )


def evaluate_ledger(ledger: VoteLedger, params: ConsensusParams | None = None) -> ConsensusVerdict:
    counts = ledger.counts()
    return evaluate_consensus(counts.approved, counts.viewed, counts.disapproved, params)


def review_ledgers(
    ledgers: Iterable[VoteLedger],
    params: ConsensusParams | None = None,
) -> list[EntryReview]:
    """Review listing for a batch of ledgers, ordered by submission ID."""
    params = params or get_contest_params().consensus
    reviews = [
        EntryReview(submission_id=ledger.submission_id, verdict=evaluate_ledger(ledger, params))
        for ledger in ledgers
    ]
    reviews.sort(key=lambda r: submission_sort_key(r.submission_id))
    return reviews


__all__ = [
    "adjusted_view_votes",
    "evaluate_consensus",
    "evaluate_ledger",
    "review_ledgers",
    "submission_sort_key",
]
