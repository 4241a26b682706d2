"""Trust-weighted rating aggregation for a single submission.

Given the submission's raw ratings and its owner:

    weighted_average = (trusted_sum * W + standard_sum)
                       / (trusted_count * W + standard_count)

Self-ratings are dropped before anything is counted. Every quotient is
guarded: an empty denominator yields 0, and a trusted-only ratio is
reported as unbounded rather than infinite.
"""

from __future__ import annotations

from typing import Iterable

from stagejury.config.contest_params import RatingParams, get_contest_params

from .models import RaterBreakdown, Rating, RatingSummary
from .trust import TrustLookup, resolve_trust


def formal_ratings(ratings: Iterable[Rating], owner_id: str) -> list[Rating]:
    """Ratings that count: everything not left by the owner."""
    return [r for r in ratings if r.rater_id != owner_id]


def aggregate_ratings(
    ratings: Iterable[Rating],
    owner_id: str,
    trust_lookup: TrustLookup = None,
    params: RatingParams | None = None,
) -> RatingSummary:
    """Summarize one submission's ratings.

    Args:
        ratings: All ratings left on the submission.
        owner_id: Submitter; their own ratings are excluded.
        trust_lookup: Mapping or callable, rater_id -> trusted.
        params: Rating params (trust weight); defaults to the contest config.

    Returns:
        RatingSummary with averages, trust counts, ratio and breakdown.
    """
    params = params or get_contest_params().ratings
    weight = params.trust_weight

    breakdown: list[RaterBreakdown] = []
    trusted_sum = 0
    trusted_count = 0
    standard_sum = 0
    standard_count = 0

    for rating in formal_ratings(ratings, str(owner_id)):
        trusted = resolve_trust(trust_lookup, rating.rater_id)
        if trusted:
            trusted_sum += rating.score
            trusted_count += 1
        else:
            standard_sum += rating.score
            standard_count += 1
        breakdown.append(RaterBreakdown(
            rater_id=rating.rater_id,
            score=rating.score,
            comment=rating.comment,
            created_at=rating.created_at,
            trusted=trusted,
        ))

    num_ratings = trusted_count + standard_count

    denominator = trusted_count * weight + standard_count
    weighted_average = (
        (trusted_sum * weight + standard_sum) / denominator if denominator > 0 else 0.0
    )
    original_average = (trusted_sum + standard_sum) / num_ratings if num_ratings else 0.0

    ratio: float | None
    ratio_unbounded = False
    if standard_count > 0:
        ratio = trusted_count / standard_count
    elif trusted_count > 0:
        ratio = None
        ratio_unbounded = True
    else:
        ratio = 0.0

    return RatingSummary(
        num_ratings=num_ratings,
        weighted_average=float(weighted_average),
        original_average=float(original_average),
        trusted_count=trusted_count,
        standard_count=standard_count,
        ratio=ratio,
        ratio_unbounded=ratio_unbounded,
        breakdown=breakdown,
    )


__all__ = ["aggregate_ratings", "formal_ratings"]
