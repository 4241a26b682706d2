"""Standings export, archive and verification."""

from .archive import StandingsArchive
from .exporter import build_standings
from .models import (
    STANDINGS_SCHEMA_VERSION,
    ContestSnapshot,
    StandingsManifest,
    StandingsSnapshot,
)
from .verifier import VerificationResult, verify_standings

__all__ = [
    "STANDINGS_SCHEMA_VERSION",
    "ContestSnapshot",
    "StandingsArchive",
    "StandingsManifest",
    "StandingsSnapshot",
    "VerificationResult",
    "build_standings",
    "verify_standings",
]
