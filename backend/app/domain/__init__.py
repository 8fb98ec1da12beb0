"""Domain contracts and shared types."""

from backend.app.domain.contracts import (  # noqa: F401
    EMIPlanContract,
    EMIQuoteContract,
    EMIQuoteResultContract,
    IneligibleFinanceContract,
    LedgerSummaryContract,
    LedgerViewContract,
    PeriodTotalsContract,
    SalaryBreakdownContract,
    SourceFailureContract,
    TransactionContract,
)
