from __future__ import annotations

from backend.app.recon.aggregate import month_bounds, period_totals, salary_breakdown, summarize
from backend.app.recon.emi import (
    DEFAULT_PLAN_CATALOG,
    EMIPlan,
    EMIQuote,
    IneligibleFinance,
    eligible_plans,
    quote,
    quote_catalog,
    service_charge,
)
from backend.app.recon.ledger import BalancePolicy, accumulate, policy_for, window
from backend.app.recon.normalize import MalformedRecord
from backend.app.recon.sequence import sequence
from backend.app.recon.sources import (
    Collected,
    RecordSource,
    SourceTimeout,
    TransactionSource,
    call_with_deadline,
    collect,
    sources_for,
)
from backend.app.recon.types import (
    CounterpartyType,
    LedgerInvariantError,
    LedgerSummary,
    OpeningBalance,
    SalaryPeriodBreakdown,
    SourceFailure,
    Transaction,
    TransactionKind,
    TransactionStatus,
)


__all__ = [
    "BalancePolicy",
    "Collected",
    "CounterpartyType",
    "DEFAULT_PLAN_CATALOG",
    "EMIPlan",
    "EMIQuote",
    "IneligibleFinance",
    "LedgerInvariantError",
    "LedgerSummary",
    "MalformedRecord",
    "OpeningBalance",
    "RecordSource",
    "SalaryPeriodBreakdown",
    "SourceFailure",
    "SourceTimeout",
    "Transaction",
    "TransactionKind",
    "TransactionSource",
    "TransactionStatus",
    "accumulate",
    "call_with_deadline",
    "collect",
    "eligible_plans",
    "month_bounds",
    "period_totals",
    "policy_for",
    "quote",
    "quote_catalog",
    "salary_breakdown",
    "sequence",
    "service_charge",
    "sources_for",
    "summarize",
    "window",
]
