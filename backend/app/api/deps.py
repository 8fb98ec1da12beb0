# backend/app/api/deps.py
from __future__ import annotations

from datetime import datetime, timezone

from backend.app import settings
from backend.app.db import SessionLocal
from backend.app.providers.base import LedgerProvider
from backend.app.providers.sql import SqlLedgerProvider


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_provider() -> LedgerProvider:
    """
    The ledger reads the ERP tables through its own short-lived sessions, so
    this hands out a provider bound to the session factory, not a Session.

    Tests override this dependency with in-memory providers.
    """
    return SqlLedgerProvider(SessionLocal)


def get_source_timeout() -> float:
    return settings.source_timeout_seconds()
