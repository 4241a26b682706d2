"""Standings exporter: one full recompute over a contest snapshot.

Consensus runs per submission from its ledger, rating aggregation runs
per submission from its ratings, and tiering runs once over every
aggregate. The result carries a manifest with section hashes so a later
recompute can be compared against it.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone

import bittensor as bt

from stagejury.config.contest_params import ContestParams, get_contest_params
from stagejury.ledger.models import VoteLedger
from stagejury.scoring.consensus import review_ledgers
from stagejury.scoring.determinism import compute_section_hash
from stagejury.scoring.models import Rating, ReviewStatus, StandingStatus, TieringEntry
from stagejury.scoring.ratings import aggregate_ratings
from stagejury.scoring.tiering import compute_tiers

from .models import (
    STANDINGS_SCHEMA_VERSION,
    ContestSnapshot,
    StandingsManifest,
    StandingsSnapshot,
)


def _snapshot_id(generated_at: datetime, standings_hash: str) -> str:
    return f"s_{generated_at.strftime('%Y%m%dT%H%M%S')}_{standings_hash[:8]}"


def build_standings(
    snapshot: ContestSnapshot,
    params: ContestParams | None = None,
    *,
    generated_at: datetime | None = None,
) -> StandingsSnapshot:
    """Compute reviews and standings for every submission in ``snapshot``.

    Args:
        snapshot: Submissions, ledgers, ratings and trust map.
        params: Contest params (default: the process-wide config).
        generated_at: Override the manifest timestamp (default: now, UTC).

    Returns:
        StandingsSnapshot with manifest hashes filled in.
    """
    params = params or get_contest_params()
    generated_at = generated_at or datetime.now(timezone.utc)

    submissions = []
    submission_ids: set[str] = set()
    for sub in snapshot.submissions:
        if sub.id in submission_ids:
            bt.logging.warning({"standings_export": {"duplicate_submission": sub.id}})
            continue
        submission_ids.add(sub.id)
        submissions.append(sub)

    ledgers_by_id: dict[str, VoteLedger] = {}
    for ledger in snapshot.ledgers:
        if ledger.submission_id not in submission_ids:
            bt.logging.warning({"standings_export": {"orphan_ledger": ledger.submission_id}})
            continue
        ledgers_by_id[ledger.submission_id] = ledger

    ratings_by_id: dict[str, list[Rating]] = defaultdict(list)
    orphan_ratings = 0
    for rating in snapshot.ratings:
        if rating.submission_id not in submission_ids:
            orphan_ratings += 1
            continue
        ratings_by_id[rating.submission_id].append(rating)
    if orphan_ratings:
        bt.logging.warning({"standings_export": {"orphan_ratings": orphan_ratings}})

    reviews = review_ledgers(
        (ledgers_by_id.get(s.id) or VoteLedger.empty(s.id) for s in submissions),
        params.consensus,
    )

    entries = [
        TieringEntry(
            submission_id=s.id,
            summary=aggregate_ratings(
                ratings_by_id.get(s.id, []),
                owner_id=s.owner_id,
                trust_lookup=snapshot.trusted_raters,
                params=params.ratings,
            ),
            disqualified=s.disqualified,
        )
        for s in submissions
    ]
    standings = compute_tiers(entries, params.tiering)

    params_dump = params.model_dump(mode="json")
    content_hashes = {
        "reviews": compute_section_hash(reviews),
        "standings": compute_section_hash(standings),
        "params": compute_section_hash(params_dump),
    }

    counts = {
        "submissions": len(submissions),
        "ratings": sum(len(v) for v in ratings_by_id.values()),
        "accepted": sum(1 for r in reviews if r.verdict.status == ReviewStatus.ACCEPTED),
        "rejected": sum(1 for r in reviews if r.verdict.status == ReviewStatus.REJECTED),
        "ranked": sum(1 for s in standings if s.status == StandingStatus.RANKED),
    }

    manifest = StandingsManifest(
        snapshot_id=_snapshot_id(generated_at, content_hashes["standings"]),
        schema_version=STANDINGS_SCHEMA_VERSION,
        generated_at=generated_at,
        content_hashes=content_hashes,
        counts=counts,
    )

    bt.logging.info({"standings_export": {"snapshot_id": manifest.snapshot_id, **counts}})

    return StandingsSnapshot(
        manifest=manifest,
        reviews=reviews,
        standings=standings,
        params=params_dump,
    )


__all__ = ["build_standings"]
