"""
Recon - canonical ledger types.

Responsibility:
- Define the one Transaction shape every source is normalized into.
- Define the derived, never-persisted views built from it
  (LedgerSummary, PeriodTotals, SalaryPeriodBreakdown).

Design notes:
- Transactions are frozen. The accumulator produces new instances with
  running_balance filled in rather than mutating.
- Dates are always timezone-aware UTC datetimes so date-only and
  datetime inputs from different sources compare cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from .money import ZERO


class LedgerInvariantError(ValueError):
    """A computation invariant was violated. Treated as a programmer error."""


class CounterpartyType(str, Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    EMPLOYEE = "employee"


class TransactionKind(str, Enum):
    OPENING_BALANCE = "opening_balance"
    SALES_ORDER = "sales_order"
    VENDOR_BILL = "vendor_bill"
    SALES_RETURN = "sales_return"
    ADJUSTMENT = "adjustment"
    PAYMENT = "payment"
    REFUND = "refund"
    SALARY = "salary"
    OVERTIME = "overtime"
    INCENTIVE = "incentive"
    ALLOWANCE = "allowance"
    REIMBURSEMENT = "reimbursement"
    COMMISSION = "commission"
    OTHER_PAYROLL = "other_payroll"


PAYROLL_KINDS = frozenset(
    {
        TransactionKind.SALARY,
        TransactionKind.OVERTIME,
        TransactionKind.INCENTIVE,
        TransactionKind.ALLOWANCE,
        TransactionKind.REIMBURSEMENT,
        TransactionKind.COMMISSION,
        TransactionKind.OTHER_PAYROLL,
    }
)

# Paid on top of the monthly salary and reported as one "other" figure.
OTHER_PAYROLL_KINDS = frozenset(
    {
        TransactionKind.ALLOWANCE,
        TransactionKind.REIMBURSEMENT,
        TransactionKind.COMMISSION,
        TransactionKind.OTHER_PAYROLL,
    }
)


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def as_utc(value: date | datetime) -> datetime:
    """
    Promote a date to midnight UTC and pin naive datetimes to UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    raise TypeError(f"expected date or datetime, got {type(value).__name__}")


def check_amounts(txn: "Transaction") -> None:
    """
    Invariants:
    - both sides are Decimal and non-negative
    - only an opening-balance marker may carry two positive sides
    """
    for name in ("debit_amount", "credit_amount"):
        amt = getattr(txn, name)
        if not isinstance(amt, Decimal):
            raise LedgerInvariantError(f"{txn.id}: {name} must be Decimal, got {type(amt).__name__}")
        if amt < 0:
            raise LedgerInvariantError(f"{txn.id}: negative {name} {amt}")
    if (
        txn.kind != TransactionKind.OPENING_BALANCE
        and txn.debit_amount > 0
        and txn.credit_amount > 0
    ):
        raise LedgerInvariantError(f"{txn.id}: debit and credit are both positive")


@dataclass(frozen=True)
class Transaction:
    """
    One canonical ledger line.

    id is "{source-kind}-{source-id}" so ids from different sources never collide.
    """
    id: str
    date: datetime
    description: str
    kind: TransactionKind
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    reference: Optional[str] = None
    running_balance: Optional[Decimal] = None
    status: TransactionStatus = TransactionStatus.PENDING
    source_document: str = ""
    deletable: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", as_utc(self.date))
        check_amounts(self)

    @property
    def is_opening(self) -> bool:
        return self.kind == TransactionKind.OPENING_BALANCE


@dataclass(frozen=True)
class OpeningBalance:
    amount: Decimal = ZERO
    as_of: Optional[datetime] = None


@dataclass(frozen=True)
class SourceFailure:
    source: str
    reason: str


@dataclass(frozen=True)
class LedgerSummary:
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO
    net_balance: Decimal = ZERO
    transaction_count: int = 0


@dataclass(frozen=True)
class PeriodTotals:
    """
    Per-kind sums for one calendar month.

    Debit kinds (sales_order, vendor_bill) are summed on the debit side,
    everything else on the credit side.
    """
    year: int
    month: int
    by_kind: Dict[TransactionKind, Decimal] = field(default_factory=dict)

    def get(self, kind: TransactionKind) -> Decimal:
        return self.by_kind.get(kind, ZERO)


@dataclass(frozen=True)
class SalaryPeriodBreakdown:
    monthly_salary: Decimal
    total_paid: Decimal
    current_month_paid: Decimal
    current_month_pending: Decimal
    current_month_overtime: Decimal
    current_month_incentive: Decimal
    current_month_other: Decimal
    previous_month_paid: Decimal
    previous_month_pending: Decimal
    previous_month_overtime: Decimal
    previous_month_incentive: Decimal
    previous_month_other: Decimal
