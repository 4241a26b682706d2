"""Pydantic models for ratings, verdicts and standings.

Inputs:
- Rating: one rater's score for one submission

Outputs:
- ConsensusVerdict: moderation outcome from ledger counts
- RatingSummary: trust-weighted aggregate of a submission's formal ratings
- Standing: rank / tier (or status label) after the tiering pass
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from stagejury.ledger.models import coerce_id

RATING_MIN_SCORE = 100
RATING_MAX_SCORE = 1000


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class Rating(BaseModel):
    """A single score, 100-1000, left by a rater on a submission."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    submission_id: str = Field(
        validation_alias=AliasChoices("submission_id", "submissionId", "workNumber"),
    )
    rater_id: str = Field(validation_alias=AliasChoices("rater_id", "raterId", "_owner"))
    score: int = Field(ge=RATING_MIN_SCORE, le=RATING_MAX_SCORE)
    comment: str = ""
    created_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt", "_createdDate"),
    )

    @field_validator("submission_id", "rater_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return coerce_id(value)

    @field_validator("comment", mode="before")
    @classmethod
    def _null_comment(cls, value: Any) -> Any:
        return "" if value is None else value


# ---------------------------------------------------------------------------
# Consensus
# ---------------------------------------------------------------------------


class ReviewStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    PENDING = "Pending"


class ConsensusVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ReviewStatus
    approval_score: int
    disapproval_count: int
    approved_count: int
    viewed_count: int
    adjusted_view_votes: int


class EntryReview(BaseModel):
    """Per-submission review line (counts plus verdict)."""

    model_config = ConfigDict(frozen=True)

    submission_id: str
    verdict: ConsensusVerdict


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------


class RaterBreakdown(BaseModel):
    """A formal rating annotated with its rater's trust classification."""

    model_config = ConfigDict(frozen=True)

    rater_id: str
    score: int
    comment: str = ""
    created_at: datetime | None = None
    trusted: bool


class RatingSummary(BaseModel):
    """Weighted score summary for one submission.

    ``ratio`` is trusted_count / standard_count. With trusted raters but no
    standard ones the ratio is unbounded: ``ratio`` is None and
    ``ratio_unbounded`` is True.
    """

    model_config = ConfigDict(frozen=True)

    num_ratings: int = 0
    weighted_average: float = 0.0
    original_average: float = 0.0
    trusted_count: int = 0
    standard_count: int = 0
    ratio: float | None = 0.0
    ratio_unbounded: bool = False
    breakdown: list[RaterBreakdown] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Tiering
# ---------------------------------------------------------------------------


class StandingStatus(str, Enum):
    RANKED = "Ranked"
    DISQUALIFIED = "Disqualified"
    INSUFFICIENT_RATINGS = "InsufficientRatings"
    UNRANKED = "Unranked"


class TieringEntry(BaseModel):
    """Input row for the tiering pass."""

    model_config = ConfigDict(frozen=True)

    submission_id: str
    summary: RatingSummary
    disqualified: bool = False

    @field_validator("submission_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return coerce_id(value)


class Standing(BaseModel):
    model_config = ConfigDict(frozen=True)

    submission_id: str
    status: StandingStatus
    tier: str | None = None
    rank: int | None = None
    percentile: float | None = None
    weighted_average: float = 0.0
    original_average: float = 0.0
    num_ratings: int = 0
    trusted_count: int = 0
    standard_count: int = 0
    ratio: float | None = 0.0
    ratio_unbounded: bool = False

    @property
    def label(self) -> str:
        """Tier for ranked entries, status label otherwise."""
        return self.tier if self.tier is not None else self.status.value


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
]
