"""Vote ledger table for the SQL-backed store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class VoteLedgerRow(Base):
    """One row per submission; voter sets are JSON-encoded arrays.

    Writers must go through ``version``: updates are conditional on the
    version they read, which is what prevents lost votes.
    """

    __tablename__ = "vote_ledger"

    submission_id: Mapped[str] = mapped_column(
        String,
        primary_key=True,
        comment="Contest submission ID",
    )
    approved_by: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
        comment="JSON array of approving voter IDs",
    )
    disapproved_by: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
        comment="JSON array of objecting voter IDs",
    )
    viewed_by: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
        comment="JSON array of viewing voter IDs",
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Optimistic concurrency version (bumped on every write)",
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        comment="When the ledger was last written",
    )


__all__ = ["VoteLedgerRow"]
