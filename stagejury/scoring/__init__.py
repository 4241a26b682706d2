"""Consensus, rating aggregation and tiering.

All functions here are pure: they take snapshots and params and return
fresh models, holding no state between calls.
"""

from .consensus import (
    adjusted_view_votes,
    evaluate_consensus,
    evaluate_ledger,
    review_ledgers,
    submission_sort_key,
)
from .determinism import compute_hash, compute_section_hash
from .models import (
    RATING_MAX_SCORE,
    RATING_MIN_SCORE,
    ConsensusVerdict,
    EntryReview,
    RaterBreakdown,
    Rating,
    RatingSummary,
    ReviewStatus,
    Standing,
    StandingStatus,
    TieringEntry,
)
from .ratings import aggregate_ratings, formal_ratings
from .tiering import (
    compute_tiers,
    display_rating,
    filter_by_tier,
    is_eligible,
    stage_order,
    tier_for_percentile,
)
from .trust import TrustLookup, resolve_trust

__all__ = [
    "RATING_MAX_SCORE",
    "RATING_MIN_SCORE",
    "ConsensusVerdict",
    "EntryReview",
    "RaterBreakdown",
    "Rating",
    "RatingSummary",
    "ReviewStatus",
    "Standing",
    "StandingStatus",
    "TieringEntry",
    "TrustLookup",
    "adjusted_view_votes",
    "aggregate_ratings",
    "compute_hash",
    "compute_section_hash",
    "compute_tiers",
    "display_rating",
    "evaluate_consensus",
    "evaluate_ledger",
    "filter_by_tier",
    "formal_ratings",
    "is_eligible",
    "resolve_trust",
    "review_ledgers",
    "stage_order",
    "submission_sort_key",
    "tier_for_percentile",
]
