"""Sync ledger persistence."""

from .ledger_db import LedgerDatabase
from .sqlalchemy_core import SqlalchemyCore
from .types import EPOCH_ZERO, LedgerRecord, ledger_key

__all__ = [
    "EPOCH_ZERO",
    "LedgerDatabase",
    "LedgerRecord",
    "SqlalchemyCore",
    "ledger_key",
]
