"""Pydantic models for submissions and their moderation vote ledgers.

A ledger holds three append-only voter-ID sets per submission:
- approved_by: reviewers who approved the entry
- disapproved_by: reviewers who objected to it
- viewed_by: reviewers who opened it

A voter may sit in several sets at once (including both approved_by and
disapproved_by). Within one set a voter ID appears at most once.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

import bittensor as bt
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


def coerce_id(value: Any) -> Any:
    """Accept numeric sequence IDs from collaborators, store as str."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class Submission(BaseModel):
    """A contest entry as supplied by the submission collaborator."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(validation_alias=AliasChoices("id", "submission_id", "sequenceId"), min_length=1)
    owner_id: str = Field(validation_alias=AliasChoices("owner_id", "ownerId", "_owner"))
    disqualified: bool = Field(
        default=False, validation_alias=AliasChoices("disqualified", "isDq"),
    )

    @field_validator("id", "owner_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return coerce_id(value)

    @field_validator("disqualified", mode="before")
    @classmethod
    def _null_is_false(cls, value: Any) -> Any:
        return False if value is None else value


# ---------------------------------------------------------------------------
# Vote ledger
# ---------------------------------------------------------------------------


class VoteKind(str, Enum):
    APPROVE = "approve"
    DISAPPROVE = "disapprove"
    VIEW = "view"


_SET_FOR_KIND = {
    VoteKind.APPROVE: "approved_by",
    VoteKind.DISAPPROVE: "disapproved_by",
    VoteKind.VIEW: "viewed_by",
}

_SET_KEYS = {
    "approved_by": ("approved_by", "approvedBy", "approvedByString"),
    "disapproved_by": ("disapproved_by", "disapprovedBy"),
    "viewed_by": ("viewed_by", "viewedBy"),
}


class VoteCounts(BaseModel):
    """Set sizes of a ledger, returned by every mutation."""

    model_config = ConfigDict(frozen=True)

    approved: int = 0
    disapproved: int = 0
    viewed: int = 0


def _parse_voter_set(value: Any, field: str, submission_id: Any) -> list[str]:
    """Normalize a persisted voter set into an ordered, duplicate-free list.

    Legacy records store sets as JSON strings; absent or malformed data
    reads as empty.
    """
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except ValueError:
            bt.logging.warning({
                "vote_ledger": {
                    "malformed_set": field,
                    "submission_id": submission_id,
                    "reason": "invalid_json",
                }
            })
            return []

    if value is None:
        bt.logging.warning({
            "vote_ledger": {"missing_set": field, "submission_id": submission_id}
        })
        return []

    if not isinstance(value, (list, tuple, set, frozenset)):
        bt.logging.warning({
            "vote_ledger": {
                "malformed_set": field,
                "submission_id": submission_id,
                "reason": f"unexpected_type:{type(value).__name__}",
            }
        })
        return []

    voters: list[str] = []
    seen: set[str] = set()
    dropped = 0
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int)) or item == "":
            dropped += 1
            continue
        voter = str(item)
        if voter not in seen:
            seen.add(voter)
            voters.append(voter)
    if dropped:
        bt.logging.warning({
            "vote_ledger": {
                "malformed_entries": field,
                "submission_id": submission_id,
                "dropped": dropped,
            }
        })
    return voters


class VoteLedger(BaseModel):
    """Versioned voter sets for one submission.

    ``version`` counts successful writes; 0 means the ledger was never
    persisted. Stores only accept a write whose expected version matches.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    submission_id: str = Field(
        validation_alias=AliasChoices("submission_id", "submissionId", "sequenceId"),
        min_length=1,
    )
    approved_by: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("approved_by", "approvedBy", "approvedByString"),
    )
    disapproved_by: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("disapproved_by", "disapprovedBy"),
    )
    viewed_by: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("viewed_by", "viewedBy"),
    )
    version: int = Field(default=0, ge=0)

    @field_validator("submission_id", mode="before")
    @classmethod
    def _coerce_submission_id(cls, value: Any) -> Any:
        return coerce_id(value)

    @field_validator("approved_by", "disapproved_by", "viewed_by", mode="before")
    @classmethod
    def _coerce_voter_set(cls, value: Any, info: ValidationInfo) -> list[str]:
        return _parse_voter_set(value, info.field_name, info.data.get("submission_id"))

    @model_validator(mode="before")
    @classmethod
    def _warn_absent_sets(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        submission_id = next(
            (data[k] for k in ("submission_id", "submissionId", "sequenceId") if k in data),
            None,
        )
        for field, keys in _SET_KEYS.items():
            if not any(k in data for k in keys):
                bt.logging.warning({
                    "vote_ledger": {"missing_set": field, "submission_id": submission_id}
                })
        return data

    @classmethod
    def empty(cls, submission_id: str) -> VoteLedger:
        """A fresh, never-persisted ledger with no voters."""
        return cls(submission_id=submission_id, approved_by=[], disapproved_by=[], viewed_by=[])

    def has_voter(self, kind: VoteKind, voter_id: str) -> bool:
        return voter_id in getattr(self, _SET_FOR_KIND[VoteKind(kind)])

    def with_voter(self, kind: VoteKind, voter_id: str) -> VoteLedger:
        """Return a copy with ``voter_id`` added to one set (no-op if present).

        The version is left untouched; stores bump it on a successful write.
        """
        field = _SET_FOR_KIND[VoteKind(kind)]
        current = getattr(self, field)
        if voter_id in current:
            return self
        return self.model_copy(update={field: [*current, voter_id]})

    def counts(self) -> VoteCounts:
        return VoteCounts(
            approved=len(self.approved_by),
            disapproved=len(self.disapproved_by),
            viewed=len(self.viewed_by),
        )


__all__ = [
    "Submission",
    "coerce_id",
    "VoteCounts",
    "VoteKind",
    "VoteLedger",
]
