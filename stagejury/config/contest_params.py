"""Contest parameters: thresholds, weights and tier breakpoints.

Every tunable used by the consensus, rating and tiering passes lives here
so none of them is hardcoded in the engine. Values resolve in three layers:

1. model defaults (below)
2. optional YAML file named by ``STAGEJURY_CONFIG``
3. environment overrides, ``STAGEJURY_<SECTION>__<KEY>=value``
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import bittensor as bt
import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "STAGEJURY_"
CONFIG_PATH_ENV = "STAGEJURY_CONFIG"


# ---------------------------------------------------------------------------
# Consensus
# ---------------------------------------------------------------------------


class ViewVoteTier(BaseModel):
    """Viewers needed before views count as ``votes`` approval points."""

    min_views: int = Field(ge=1)
    votes: int = Field(ge=0)


class ConsensusParams(BaseModel):
    view_vote_tiers: list[ViewVoteTier] = Field(
        default_factory=lambda: [
            ViewVoteTier(min_views=10, votes=1),
            ViewVoteTier(min_views=20, votes=2),
        ]
    )
    approval_threshold: int = Field(default=5, ge=1)
    rejection_threshold: int = Field(default=3, ge=1)

    @field_validator("view_vote_tiers")
    @classmethod
    def _tiers_monotonic(cls, tiers: list[ViewVoteTier]) -> list[ViewVoteTier]:
        tiers = sorted(tiers, key=lambda t: t.min_views)
        for lower, upper in zip(tiers, tiers[1:]):
            if upper.min_views == lower.min_views:
                raise ValueError(f"duplicate view tier at {upper.min_views} views")
            if upper.votes < lower.votes:
                raise ValueError("view tier votes must not decrease as views grow")
        return tiers


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------


class RatingParams(BaseModel):
    trust_weight: float = Field(default=2.0, gt=0, description="Multiplier W for trusted raters")


# ---------------------------------------------------------------------------
# Tiering
# ---------------------------------------------------------------------------


class TierBreakpoint(BaseModel):
    """Inclusive upper percentile bound for a tier."""

    upper: float = Field(gt=0, le=1)
    tier: str = Field(min_length=1)


class TieringParams(BaseModel):
    min_ratings_for_ranking: int = Field(default=5, ge=0)
    breakpoints: list[TierBreakpoint] = Field(
        default_factory=lambda: [
            TierBreakpoint(upper=0.05, tier="T0"),
            TierBreakpoint(upper=0.20, tier="T1"),
            TierBreakpoint(upper=0.40, tier="T2"),
            TierBreakpoint(upper=0.60, tier="T3"),
        ]
    )
    fallback_tier: str = "T4"

    @field_validator("breakpoints")
    @classmethod
    def _breakpoints_increasing(cls, bps: list[TierBreakpoint]) -> list[TierBreakpoint]:
        for lower, upper in zip(bps, bps[1:]):
            if upper.upper <= lower.upper:
                raise ValueError("tier breakpoints must be strictly increasing")
        return bps


# ---------------------------------------------------------------------------
# Ledger / standings storage
# ---------------------------------------------------------------------------


class LedgerParams(BaseModel):
    backend: str = Field(default="filesystem", pattern=r"^(memory|filesystem|sql)$")
    data_dir: str = "stagejury/data"
    database_url: str = "sqlite+aiosqlite:///stagejury/data/ledger.db"
    max_retries: int = Field(default=5, ge=1)
    retry_backoff_seconds: float = Field(default=0.01, ge=0)


class StandingsParams(BaseModel):
    data_dir: str = "stagejury/data"
    retention_days: int = Field(default=30, ge=1)


class ContestParams(BaseModel):
    consensus: ConsensusParams = Field(default_factory=ConsensusParams)
    ratings: RatingParams = Field(default_factory=RatingParams)
    tiering: TieringParams = Field(default_factory=TieringParams)
    ledger: LedgerParams = Field(default_factory=LedgerParams)
    standings: StandingsParams = Field(default_factory=StandingsParams)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _coerce_env_value(section: str, field: str, raw: str) -> Any:
    # str fields (paths, URLs, tier names) are taken verbatim
    section_model = ContestParams.model_fields[section].annotation
    field_info = section_model.model_fields.get(field)
    if field_info is not None and field_info.annotation is str:
        return raw

    # YAML scalars give ints, floats, bools and lists for free
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _env_overrides(environ: dict[str, str]) -> dict[str, dict[str, Any]]:
    overrides: dict[str, dict[str, Any]] = {}
    sections = set(ContestParams.model_fields)
    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX) or "__" not in key:
            continue
        section, _, field = key[len(ENV_PREFIX):].lower().partition("__")
        if section not in sections or not field:
            continue
        overrides.setdefault(section, {})[field] = _coerce_env_value(section, field, raw)
    return overrides


def load_contest_params(
    path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> ContestParams:
    """Build ContestParams from defaults, an optional YAML file and env vars."""
    environ = dict(os.environ if environ is None else environ)
    data: dict[str, Any] = {}

    path = path or environ.get(CONFIG_PATH_ENV)
    if path:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Contest config {path} must be a mapping")
        data.update(loaded)

    for section, fields in _env_overrides(environ).items():
        merged = dict(data.get(section) or {})
        merged.update(fields)
        data[section] = merged

    params = ContestParams(**data)
    bt.logging.debug({"contest_params": {"source": str(path) if path else "defaults"}})
    return params


@lru_cache(maxsize=1)
def get_contest_params() -> ContestParams:
    return load_contest_params()


def reset_contest_params() -> None:
    get_contest_params.cache_clear()


__all__ = [
    "ConsensusParams",
    "ContestParams",
    "LedgerParams",
    "RatingParams",
    "StandingsParams",
    "TierBreakpoint",
    "TieringParams",
    "ViewVoteTier",
    "get_contest_params",
    "load_contest_params",
    "reset_contest_params",
]
