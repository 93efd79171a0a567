"""Database model types."""

from .ledger_record import LedgerRecord, ledger_key
from .timezone_aware_datetime import EPOCH_ZERO, TimezoneAwareDatetime

__all__ = [
    "EPOCH_ZERO",
    "LedgerRecord",
    "TimezoneAwareDatetime",
    "ledger_key",
]
