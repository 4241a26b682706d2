from .base import Base
from .vote_ledger import VoteLedgerRow

__all__ = ["Base", "VoteLedgerRow"]
