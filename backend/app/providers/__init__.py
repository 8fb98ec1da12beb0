from __future__ import annotations

from backend.app.providers.base import LedgerProvider, RawRecord
from backend.app.providers.sql import SqlLedgerProvider


__all__ = [
    "LedgerProvider",
    "RawRecord",
    "SqlLedgerProvider",
]
