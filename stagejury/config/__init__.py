from .contest_params import (
    ConsensusParams,
    ContestParams,
    LedgerParams,
    RatingParams,
    StandingsParams,
    TierBreakpoint,
    TieringParams,
    ViewVoteTier,
    get_contest_params,
    load_contest_params,
    reset_contest_params,
)

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
