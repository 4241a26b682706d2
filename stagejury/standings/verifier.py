"""Integrity checks for exported standings.

Checks schema version and section hashes before archived standings are
published. Given the contest snapshot they came from, also recomputes the
standings with the recorded params and compares hashes.
"""

from __future__ import annotations

from dataclasses import dataclass

from stagejury.config.contest_params import ContestParams
from stagejury.scoring.determinism import compute_section_hash

from .exporter import build_standings
from .models import STANDINGS_SCHEMA_VERSION, ContestSnapshot, StandingsSnapshot


@dataclass
class VerificationResult:
    """Outcome of standings verification."""

    valid: bool
    errors: list[str]

    def __bool__(self) -> bool:
        return self.valid


def verify_standings(
    snapshot: StandingsSnapshot,
    contest: ContestSnapshot | None = None,
) -> VerificationResult:
    errors: list[str] = []
    manifest = snapshot.manifest

    if manifest.schema_version != STANDINGS_SCHEMA_VERSION:
        errors.append(
            f"schema_version mismatch: got {manifest.schema_version}, "
            f"expected {STANDINGS_SCHEMA_VERSION}"
        )

    for section_name, section_data in snapshot.sections().items():
        expected = manifest.content_hashes.get(section_name)
        if expected is None:
            errors.append(f"missing content hash for section: {section_name}")
            continue

        actual = compute_section_hash(section_data)
        if actual != expected:
            errors.append(
                f"content hash mismatch for {section_name}: "
                f"expected {expected[:16]}..., got {actual[:16]}..."
            )

    if contest is not None:
        recomputed = build_standings(
            contest,
            ContestParams(**snapshot.params),
            generated_at=manifest.generated_at,
        )
        for section_name in ("reviews", "standings"):
            if recomputed.manifest.content_hashes[section_name] != manifest.content_hashes.get(section_name):
                errors.append(f"recompute mismatch for {section_name}")

    return VerificationResult(valid=len(errors) == 0, errors=errors)


__all__ = ["VerificationResult", "verify_standings"]
