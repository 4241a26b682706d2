"""Vote ledger storage backends."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import make_url

from stagejury.config.contest_params import LedgerParams

from .filesystem import FilesystemLedgerStore
from .interface import VoteLedgerStore
from .memory import MemoryLedgerStore
from .sql import SQLLedgerStore


async def open_store(params: LedgerParams) -> VoteLedgerStore:
    """Build the backend named by ``params.backend``, ready for use."""
    if params.backend == "memory":
        return MemoryLedgerStore()
    if params.backend == "filesystem":
        return FilesystemLedgerStore(data_dir=params.data_dir)
    if params.backend == "sql":
        url = make_url(params.database_url)
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        store = SQLLedgerStore(database_url=params.database_url)
        await store.init_schema()
        return store
    raise ValueError(f"Unknown ledger backend: {params.backend}")


__all__ = [
    "FilesystemLedgerStore",
    "MemoryLedgerStore",
    "SQLLedgerStore",
    "VoteLedgerStore",
    "open_store",
]
