"""Pydantic models for contest snapshots and exported standings.

Structure:
- ContestSnapshot: everything one standings pass reads (input)
- StandingsManifest: metadata plus content hashes of each section
- StandingsSnapshot: manifest + review listing + standings + params used
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from stagejury.ledger.models import Submission, VoteLedger
from stagejury.scoring.models import EntryReview, Rating, Standing

STANDINGS_SCHEMA_VERSION = 1


class ContestSnapshot(BaseModel):
    """Point-in-time view of a contest handed in by collaborators."""

    submissions: list[Submission] = Field(default_factory=list)
    ledgers: list[VoteLedger] = Field(default_factory=list)
    ratings: list[Rating] = Field(default_factory=list)
    trusted_raters: dict[str, bool] = Field(default_factory=dict)


class StandingsManifest(BaseModel):
    """Describes one exported standings pass."""

    snapshot_id: str = Field(min_length=1)
    schema_version: int = STANDINGS_SCHEMA_VERSION
    generated_at: datetime
    content_hashes: dict[str, str] = Field(
        default_factory=dict,
        description="section_name -> SHA256 of canonical JSON",
    )
    counts: dict[str, int] = Field(default_factory=dict)


class StandingsSnapshot(BaseModel):
    manifest: StandingsManifest
    reviews: list[EntryReview] = Field(default_factory=list)
    standings: list[Standing] = Field(default_factory=list)
    params: dict[str, Any] = Field(default_factory=dict)

    def sections(self) -> dict[str, Any]:
        """Hashed sections, keyed as in ``manifest.content_hashes``."""
        return {
            "reviews": self.reviews,
            "standings": self.standings,
            "params": self.params,
        }


__all__ = [
    "STANDINGS_SCHEMA_VERSION",
    "ContestSnapshot",
    "StandingsManifest",
    "StandingsSnapshot",
]
