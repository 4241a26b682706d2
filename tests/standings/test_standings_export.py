"""Tests for standings export, archive and verification."""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import bittensor as bt
import pytest

from stagejury.config.contest_params import ContestParams
from stagejury.scoring.models import ReviewStatus, StandingStatus
from stagejury.standings.archive import StandingsArchive
from stagejury.standings.exporter import build_standings
from stagejury.standings.models import STANDINGS_SCHEMA_VERSION, ContestSnapshot
from stagejury.standings.verifier import verify_standings

GENERATED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _contest(n: int = 8) -> ContestSnapshot:
    submissions = [
        {"sequenceId": i, "_owner": f"owner{i}", "isDq": i == n}
        for i in range(1, n + 1)
    ]
    ledgers = [
        {"sequenceId": 1, "approvedByString": '["a","b","c","d","e"]', "viewedBy": "[]"},
        {"sequenceId": 2, "approved_by": ["a"], "disapproved_by": ["x", "y", "z"]},
        {"sequenceId": 3, "approved_by": None, "viewed_by": "{broken"},
        {"sequenceId": 999, "approved_by": ["ghost"]},
    ]
    ratings = []
    for i in range(1, n + 1):
        raters = 5 if i != 2 else 3
        for r in range(raters):
            ratings.append({
                "workNumber": i,
                "_owner": f"rater{r}",
                "score": 100 + i * 50 + r * 10,
            })
        # self-rating never counts
        ratings.append({"workNumber": i, "_owner": f"owner{i}", "score": 1000})
    ratings.append({"workNumber": 404, "_owner": "rater0", "score": 500})
    return ContestSnapshot(
        submissions=submissions,
        ledgers=ledgers,
        ratings=ratings,
        trusted_raters={"rater0": True, "rater1": False},
    )


class TestBuildStandings:

    def test_reviews_cover_every_submission(self):
        result = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        reviews = {r.submission_id: r.verdict for r in result.reviews}

        assert list(reviews) == [str(i) for i in range(1, 9)]
        assert reviews["1"].status == ReviewStatus.ACCEPTED
        assert reviews["2"].status == ReviewStatus.REJECTED
        assert reviews["3"].status == ReviewStatus.PENDING
        assert reviews["4"].approval_score == 0

    def test_standings(self):
        result = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        standings = {s.submission_id: s for s in result.standings}

        assert standings["2"].status == StandingStatus.INSUFFICIENT_RATINGS
        assert standings["8"].status == StandingStatus.DISQUALIFIED
        ranked = [s for s in result.standings if s.status == StandingStatus.RANKED]
        assert len(ranked) == 6
        # higher IDs were given higher scores
        assert standings["7"].rank == 1
        assert standings["1"].rank == 6
        assert all(s.num_ratings == 5 for s in ranked)
        assert all(s.trusted_count == 1 for s in ranked)

    def test_manifest(self):
        result = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        manifest = result.manifest

        assert manifest.schema_version == STANDINGS_SCHEMA_VERSION
        assert manifest.generated_at == GENERATED_AT
        assert manifest.snapshot_id.startswith("s_20240501T120000_")
        assert set(manifest.content_hashes) == {"reviews", "standings", "params"}
        assert manifest.counts["submissions"] == 8
        assert manifest.counts["accepted"] == 1
        assert manifest.counts["rejected"] == 1
        assert manifest.counts["ranked"] == 6
        assert manifest.counts["ratings"] == 8 * 5 - 2 + 8

    def test_recompute_is_deterministic(self):
        first = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        later = build_standings(
            _contest(), ContestParams(), generated_at=GENERATED_AT + timedelta(hours=1),
        )
        assert first.standings == later.standings
        assert first.manifest.content_hashes == later.manifest.content_hashes

    def test_params_change_hashes(self):
        base = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        strict = build_standings(
            _contest(),
            ContestParams(consensus={"approval_threshold": 6}),
            generated_at=GENERATED_AT,
        )
        assert base.manifest.content_hashes["params"] != strict.manifest.content_hashes["params"]
        assert base.manifest.content_hashes["reviews"] != strict.manifest.content_hashes["reviews"]

    def test_empty_contest(self):
        result = build_standings(ContestSnapshot(), ContestParams(), generated_at=GENERATED_AT)
        assert result.reviews == []
        assert result.standings == []
        assert result.manifest.counts["submissions"] == 0

    def test_duplicate_submissions_keep_first(self):
        contest = ContestSnapshot(submissions=[
            {"id": "1", "owner_id": "first"},
            {"id": "1", "owner_id": "second", "disqualified": True},
            {"id": "2", "owner_id": "other"},
        ])
        with patch.object(bt.logging, "warning") as warning:
            result = build_standings(contest, ContestParams(), generated_at=GENERATED_AT)

        assert [r.submission_id for r in result.reviews] == ["1", "2"]
        assert [s.submission_id for s in result.standings].count("1") == 1
        standing = next(s for s in result.standings if s.submission_id == "1")
        assert standing.status != StandingStatus.DISQUALIFIED
        assert result.manifest.counts["submissions"] == 2
        warning.assert_any_call({"standings_export": {"duplicate_submission": "1"}})


class TestVerifier:

    def test_valid(self):
        result = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        check = verify_standings(result)
        assert check
        assert check.errors == []

    def test_tampered_standings(self):
        result = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        tampered = result.model_copy(update={
            "standings": [
                s.model_copy(update={"tier": "T0"}) for s in result.standings
            ],
        })
        check = verify_standings(tampered)
        assert not check
        assert any("standings" in e for e in check.errors)

    def test_missing_hash_and_schema(self):
        result = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        manifest = result.manifest.model_copy(update={
            "schema_version": 99,
            "content_hashes": {"reviews": result.manifest.content_hashes["reviews"]},
        })
        check = verify_standings(result.model_copy(update={"manifest": manifest}))
        assert not check
        assert any("schema_version" in e for e in check.errors)
        assert any("missing content hash for section: standings" in e for e in check.errors)

    def test_recompute_against_contest(self):
        contest = _contest()
        result = build_standings(contest, ContestParams(), generated_at=GENERATED_AT)
        assert verify_standings(result, contest)

        changed = contest.model_copy(update={"trusted_raters": {}})
        check = verify_standings(result, changed)
        assert not check
        assert "recompute mismatch for standings" in check.errors


@pytest.mark.integration
class TestArchive:

    @pytest.mark.asyncio
    async def test_roundtrip(self, tmp_path):
        archive = StandingsArchive(data_dir=str(tmp_path), retention_days=10_000)
        result = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        snapshot_id = await archive.put(result)

        snap_dir = tmp_path / "standings" / snapshot_id
        assert (snap_dir / "manifest.json").exists()
        assert (snap_dir / "standings.json.gz").exists()

        loaded = await archive.get_snapshot(snapshot_id)
        assert loaded.model_dump() == result.model_dump()
        assert verify_standings(loaded)

    @pytest.mark.asyncio
    async def test_latest_and_listing(self, tmp_path):
        archive = StandingsArchive(data_dir=str(tmp_path), retention_days=10_000)
        assert await archive.get_latest() is None

        older = build_standings(_contest(), ContestParams(), generated_at=GENERATED_AT)
        newer = build_standings(
            _contest(4), ContestParams(), generated_at=GENERATED_AT + timedelta(days=1),
        )
        await archive.put(newer)
        await archive.put(older)

        ids = await archive.list_snapshots()
        assert ids == [older.manifest.snapshot_id, newer.manifest.snapshot_id]
        latest = await archive.get_latest()
        assert latest.manifest.snapshot_id == newer.manifest.snapshot_id
        assert await archive.get_snapshot("s_missing") is None

    @pytest.mark.asyncio
    async def test_prunes_expired(self, tmp_path):
        archive = StandingsArchive(data_dir=str(tmp_path), retention_days=7)
        now = datetime.now(timezone.utc)
        stale = build_standings(_contest(), ContestParams(), generated_at=now - timedelta(days=30))
        fresh = build_standings(_contest(), ContestParams(), generated_at=now)

        stale_id = await archive.put(stale)
        # the snapshot just written survives its own prune
        assert (tmp_path / "standings" / stale_id).is_dir()
        assert await archive.get_snapshot(stale_id) is not None

        fresh_id = await archive.put(fresh)
        assert not (tmp_path / "standings" / stale_id).exists()
        assert await archive.list_snapshots() == [fresh_id]
        assert os.path.isdir(tmp_path / "standings" / fresh_id)
