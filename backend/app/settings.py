from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()


def database_url() -> str:
    url = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL or SQLALCHEMY_DATABASE_URL must be set to create the database engine."
        )
    return url


def source_timeout_seconds() -> float:
    raw = os.getenv("LEDGER_SOURCE_TIMEOUT_SECONDS", "5")
    try:
        value = float(raw)
    except ValueError as e:
        raise RuntimeError(f"LEDGER_SOURCE_TIMEOUT_SECONDS must be a number, got {raw!r}") from e
    if value <= 0:
        raise RuntimeError("LEDGER_SOURCE_TIMEOUT_SECONDS must be positive.")
    return value


def source_workers() -> int:
    raw = os.getenv("LEDGER_SOURCE_WORKERS", "4")
    try:
        return max(1, int(raw))
    except ValueError as e:
        raise RuntimeError(f"LEDGER_SOURCE_WORKERS must be an integer, got {raw!r}") from e


def currency_minor_unit() -> Decimal:
    raw = os.getenv("CURRENCY_MINOR_UNIT", "0.01")
    try:
        unit = Decimal(raw)
    except InvalidOperation as e:
        raise RuntimeError(f"CURRENCY_MINOR_UNIT must be a decimal, got {raw!r}") from e
    if unit <= 0:
        raise RuntimeError("CURRENCY_MINOR_UNIT must be positive.")
    return unit


def log_level() -> str:
    return (os.getenv("LOG_LEVEL") or "INFO").upper()
