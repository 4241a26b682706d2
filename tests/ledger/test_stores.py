"""Compare-and-set contract, run against every VoteLedgerStore backend."""

import asyncio
import json

import pytest
import pytest_asyncio

from stagejury.config.contest_params import LedgerParams
from stagejury.ledger.errors import LedgerStoreError
from stagejury.ledger.models import VoteCounts, VoteKind, VoteLedger
from stagejury.ledger.recorder import VoteRecorder
from stagejury.ledger.store import (
    FilesystemLedgerStore,
    MemoryLedgerStore,
    SQLLedgerStore,
    VoteLedgerStore,
    open_store,
)


@pytest_asyncio.fixture(params=["memory", "filesystem", "sql"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryLedgerStore()
    elif request.param == "filesystem":
        yield FilesystemLedgerStore(data_dir=str(tmp_path))
    else:
        sql_store = SQLLedgerStore(database_url=f"sqlite+aiosqlite:///{tmp_path}/ledger.db")
        await sql_store.init_schema()
        yield sql_store
        await sql_store.close()


@pytest.mark.integration
class TestStoreContract:

    @pytest.mark.asyncio
    async def test_protocol(self, store):
        assert isinstance(store, VoteLedgerStore)

    @pytest.mark.asyncio
    async def test_missing_ledger(self, store):
        assert await store.get_ledger("nope") is None
        assert await store.list_submission_ids() == []

    @pytest.mark.asyncio
    async def test_first_write_and_read_back(self, store):
        ledger = VoteLedger(submission_id="12", approved_by=["a"], viewed_by=["a", "b"])
        stored = await store.compare_and_set(ledger, expected_version=0)
        assert stored.version == 1

        loaded = await store.get_ledger("12")
        assert loaded.model_dump() == stored.model_dump()
        assert loaded.approved_by == ["a"]
        assert loaded.viewed_by == ["a", "b"]

    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, store):
        base = VoteLedger(submission_id="1")
        first = await store.compare_and_set(base.with_voter(VoteKind.VIEW, "a"), 0)
        assert first is not None

        # second writer read the same empty ledger
        assert await store.compare_and_set(base.with_voter(VoteKind.VIEW, "b"), 0) is None
        assert (await store.get_ledger("1")).viewed_by == ["a"]

        second = await store.compare_and_set(first.with_voter(VoteKind.VIEW, "b"), 1)
        assert second.version == 2
        assert (await store.get_ledger("1")).viewed_by == ["a", "b"]

    @pytest.mark.asyncio
    async def test_future_version_rejected(self, store):
        await store.compare_and_set(VoteLedger(submission_id="1"), 0)
        assert await store.compare_and_set(VoteLedger(submission_id="1"), 5) is None

    @pytest.mark.asyncio
    async def test_list_submission_ids(self, store):
        for sid in ("b", "a"):
            await store.compare_and_set(VoteLedger(submission_id=sid), 0)
        assert await store.list_submission_ids() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_recorder_over_store(self, store):
        recorder = VoteRecorder(store, retry_backoff_seconds=0)
        await asyncio.gather(*(recorder.record_view("1", f"u{i}") for i in range(10)))
        await recorder.record_approval("1", "u0")
        assert await recorder.get_counts("1") == VoteCounts(approved=1, viewed=10)


@pytest.mark.integration
class TestFilesystemStore:

    @pytest.mark.asyncio
    async def test_versions_kept_as_files(self, tmp_path):
        store = FilesystemLedgerStore(data_dir=str(tmp_path))
        first = await store.compare_and_set(VoteLedger(submission_id="7"), 0)
        await store.compare_and_set(first.with_voter(VoteKind.APPROVE, "a"), 1)
        sub_dir = tmp_path / "ledger" / "votes" / "s_7"
        assert sorted(p.name for p in sub_dir.iterdir()) == [
            "v0000000001.json", "v0000000002.json",
        ]

    @pytest.mark.asyncio
    async def test_path_like_ids_stay_inside(self, tmp_path):
        store = FilesystemLedgerStore(data_dir=str(tmp_path / "data"))
        await store.compare_and_set(VoteLedger(submission_id="../escape"), 0)
        assert not (tmp_path / "escape").exists()
        assert await store.list_submission_ids() == ["../escape"]
        assert (await store.get_ledger("../escape")).version == 1

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, tmp_path):
        store = FilesystemLedgerStore(data_dir=str(tmp_path))
        await store.compare_and_set(VoteLedger(submission_id="1"), 0)
        (tmp_path / "ledger" / "votes" / "s_1" / "v0000000001.json").write_text("{oops")
        with pytest.raises(LedgerStoreError):
            await store.get_ledger("1")

    @pytest.mark.asyncio
    async def test_version_mismatch_raises(self, tmp_path):
        store = FilesystemLedgerStore(data_dir=str(tmp_path))
        await store.compare_and_set(VoteLedger(submission_id="1"), 0)
        path = tmp_path / "ledger" / "votes" / "s_1" / "v0000000001.json"
        path.write_text(json.dumps({"submission_id": "1", "version": 4}))
        with pytest.raises(LedgerStoreError):
            await store.get_ledger("1")

    @pytest.mark.asyncio
    async def test_threaded_writers_lose_nothing(self, tmp_path):
        store = FilesystemLedgerStore(data_dir=str(tmp_path))
        recorder = VoteRecorder(store, max_retries=50, retry_backoff_seconds=0.001)

        def vote(i: int):
            return asyncio.run(recorder.record_view("1", f"u{i}"))

        await asyncio.gather(*(asyncio.to_thread(vote, i) for i in range(16)))
        ledger = await store.get_ledger("1")
        assert sorted(ledger.viewed_by) == sorted(f"u{i}" for i in range(16))
        assert ledger.version == 16


@pytest.mark.integration
class TestSQLStore:

    @pytest.mark.asyncio
    async def test_legacy_rows_decode(self, tmp_path):
        store = SQLLedgerStore(database_url=f"sqlite+aiosqlite:///{tmp_path}/l.db")
        await store.init_schema()
        try:
            stored = await store.compare_and_set(
                VoteLedger(submission_id="3", approved_by=["x", "y"]), 0,
            )
            loaded = await store.get_ledger("3")
            assert loaded.approved_by == ["x", "y"]
            assert loaded.disapproved_by == []
            assert loaded.version == stored.version == 1
        finally:
            await store.close()

    def test_needs_url_or_engine(self):
        with pytest.raises(ValueError):
            SQLLedgerStore()


@pytest.mark.integration
class TestOpenStore:

    @pytest.mark.asyncio
    async def test_memory(self):
        assert isinstance(await open_store(LedgerParams(backend="memory")), MemoryLedgerStore)

    @pytest.mark.asyncio
    async def test_filesystem(self, tmp_path):
        store = await open_store(LedgerParams(backend="filesystem", data_dir=str(tmp_path)))
        assert isinstance(store, FilesystemLedgerStore)

    @pytest.mark.asyncio
    async def test_sql_creates_parent_dir(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path}/nested/dir/ledger.db"
        store = await open_store(LedgerParams(backend="sql", database_url=url))
        try:
            assert (tmp_path / "nested" / "dir").is_dir()
            assert await store.get_ledger("1") is None
        finally:
            await store.close()
