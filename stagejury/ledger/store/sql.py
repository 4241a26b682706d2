"""SQLAlchemy-backed VoteLedgerStore.

Conditional writes keyed on the ``version`` column:
- first write: INSERT; a primary-key collision means another writer won
- later writes: UPDATE ... WHERE version = :expected_version; zero rows
  updated means another writer won
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import bittensor as bt
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from stagejury.database.schema import Base
from stagejury.ledger.errors import LedgerStoreError
from stagejury.ledger.models import VoteLedger

_SELECT_LEDGER = text(
    """
    SELECT submission_id, approved_by, disapproved_by, viewed_by, version
    FROM vote_ledger
    WHERE submission_id = :submission_id
    """
)

_INSERT_LEDGER = text(
    """
    INSERT INTO vote_ledger (
        submission_id, approved_by, disapproved_by, viewed_by, version, updated_at
    ) VALUES (
        :submission_id, :approved_by, :disapproved_by, :viewed_by, :new_version, :ts
    )
    """
)

_UPDATE_LEDGER = text(
    """
    UPDATE vote_ledger
    SET approved_by = :approved_by,
        disapproved_by = :disapproved_by,
        viewed_by = :viewed_by,
        version = :new_version,
        updated_at = :ts
    WHERE submission_id = :submission_id
      AND version = :expected_version
    """
)

_SELECT_SUBMISSION_IDS = text("SELECT submission_id FROM vote_ledger ORDER BY submission_id")


class SQLLedgerStore:
    """Async SQL store (sqlite+aiosqlite locally, any SQLAlchemy async URL)."""

    def __init__(self, database_url: str | None = None, engine: AsyncEngine | None = None):
        if engine is None:
            if not database_url:
                raise ValueError("SQLLedgerStore needs a database_url or an engine")
            engine = create_async_engine(database_url)
        self.engine = engine

    async def init_schema(self) -> None:
        """Create the vote_ledger table if missing."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    async def get_ledger(self, submission_id: str) -> VoteLedger | None:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(_SELECT_LEDGER, {"submission_id": submission_id})
                row = result.mappings().first()
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Failed reading ledger {submission_id}: {e}") from e
        if row is None:
            return None
        return VoteLedger(**dict(row))

    async def compare_and_set(self, ledger: VoteLedger, expected_version: int) -> VoteLedger | None:
        stored = ledger.model_copy(update={"version": expected_version + 1})
        params = {
            "submission_id": stored.submission_id,
            "approved_by": json.dumps(stored.approved_by),
            "disapproved_by": json.dumps(stored.disapproved_by),
            "viewed_by": json.dumps(stored.viewed_by),
            "new_version": stored.version,
            "expected_version": expected_version,
            "ts": datetime.now(timezone.utc),
        }
        try:
            async with self.engine.begin() as conn:
                if expected_version == 0:
                    await conn.execute(_INSERT_LEDGER, params)
                else:
                    result = await conn.execute(_UPDATE_LEDGER, params)
                    if result.rowcount != 1:
                        return None
        except IntegrityError:
            bt.logging.debug({"sql_ledger_store": {"insert_race": stored.submission_id}})
            return None
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Failed writing ledger {stored.submission_id}: {e}") from e
        return stored

    async def list_submission_ids(self) -> list[str]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(_SELECT_SUBMISSION_IDS)
                return [row[0] for row in result]
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Failed listing ledgers: {e}") from e


__all__ = ["SQLLedgerStore"]
