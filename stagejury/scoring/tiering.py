"""Percentile tiering across all submissions of a contest.

Pipeline:
1. Eligibility: enough formal ratings and not disqualified
2. Stable descending sort of eligible entries by weighted average
3. percentile = rank / N, mapped onto inclusive upper breakpoints
4. Ineligible entries get a status label instead of a tier
5. Output ordered by submission ID

Exact ties keep their input order (stable sort); no secondary key is
applied.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from stagejury.config.contest_params import TieringParams, get_contest_params

from .consensus import submission_sort_key
from .models import Standing, StandingStatus, TieringEntry


def tier_for_percentile(percentile: float, params: TieringParams | None = None) -> str:
    """First tier whose upper breakpoint is >= ``percentile``."""
    params = params or get_contest_params().tiering
    for bp in params.breakpoints:
        if percentile <= bp.upper:
            return bp.tier
    return params.fallback_tier


def is_eligible(entry: TieringEntry, params: TieringParams) -> bool:
    return (
        not entry.disqualified
        and entry.summary.num_ratings >= params.min_ratings_for_ranking
    )


def _status_for(entry: TieringEntry, params: TieringParams) -> StandingStatus:
    if entry.disqualified:
        return StandingStatus.DISQUALIFIED
    if entry.summary.num_ratings < params.min_ratings_for_ranking:
        return StandingStatus.INSUFFICIENT_RATINGS
    return StandingStatus.UNRANKED


def _standing(entry: TieringEntry, status: StandingStatus, **ranked) -> Standing:
    s = entry.summary
    return Standing(
        submission_id=entry.submission_id,
        status=status,
        weighted_average=s.weighted_average,
        original_average=s.original_average,
        num_ratings=s.num_ratings,
        trusted_count=s.trusted_count,
        standard_count=s.standard_count,
        ratio=s.ratio,
        ratio_unbounded=s.ratio_unbounded,
        **ranked,
    )


def compute_tiers(
    entries: Iterable[TieringEntry],
    params: TieringParams | None = None,
) -> list[Standing]:
    """Rank eligible entries into percentile tiers; label the rest.

    Returns one Standing per input entry, ordered by submission ID.
    """
    params = params or get_contest_params().tiering
    entries = list(entries)

    eligible = [e for e in entries if is_eligible(e, params)]
    standings: list[Standing] = [
        _standing(e, _status_for(e, params)) for e in entries if not is_eligible(e, params)
    ]

    n = len(eligible)
    if n:
        scores = np.asarray([e.summary.weighted_average for e in eligible], dtype=np.float64)
        # argsort of the negated scores keeps equal scores in input order
        order = np.argsort(-scores, kind="stable")
        for position, idx in enumerate(order.tolist()):
            rank = position + 1
            percentile = rank / n
            standings.append(_standing(
                eligible[idx],
                StandingStatus.RANKED,
                tier=tier_for_percentile(percentile, params),
                rank=rank,
                percentile=percentile,
            ))

    standings.sort(key=lambda s: submission_sort_key(s.submission_id))
    return standings


def display_rating(entry: TieringEntry, params: TieringParams | None = None) -> float:
    """Rating shown on the stage page: 0 until the entry has enough ratings."""
    params = params or get_contest_params().tiering
    if entry.summary.num_ratings < params.min_ratings_for_ranking:
        return 0.0
    return entry.summary.weighted_average


def stage_order(
    entries: Iterable[TieringEntry],
    params: TieringParams | None = None,
) -> list[TieringEntry]:
    """Public stage ordering: display rating desc, then rating count desc."""
    params = params or get_contest_params().tiering
    return sorted(
        entries,
        key=lambda e: (-display_rating(e, params), -e.summary.num_ratings),
    )


def filter_by_tier(standings: Iterable[Standing], label: str) -> list[Standing]:
    """Standings whose tier (or status label) equals ``label``."""
    return [s for s in standings if s.label == label]


__all__ = [
    "compute_tiers",
    "display_rating",
    "filter_by_tier",
    "is_eligible",
    "stage_order",
    "tier_for_percentile",
]
