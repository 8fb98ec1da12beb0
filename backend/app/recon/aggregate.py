"""
Recon - category aggregation.

Responsibility:
- Ledger-wide totals (LedgerSummary).
- Calendar-month buckets for the current and previous month, keyed by kind.
- The employee salary breakdown with the pending clamp.

Design notes:
- "now" is always passed in. Buckets are calendar months of the row date,
  not a rolling 30-day window.
- Empty input yields all-zero results, never an error.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from .ledger import BalancePolicy
from .money import ZERO
from .types import (
    LedgerSummary,
    PeriodTotals,
    SalaryPeriodBreakdown,
    Transaction,
    TransactionKind,
    OTHER_PAYROLL_KINDS,
    PAYROLL_KINDS,
    as_utc,
)

DEBIT_KINDS = frozenset({TransactionKind.SALES_ORDER, TransactionKind.VENDOR_BILL})

MonthKey = Tuple[int, int]


def month_bounds(now: datetime) -> Tuple[MonthKey, MonthKey]:
    """
    (current, previous) as (year, month) pairs.
    """
    ref = as_utc(now)
    current = (ref.year, ref.month)
    if ref.month == 1:
        previous = (ref.year - 1, 12)
    else:
        previous = (ref.year, ref.month - 1)
    return current, previous


def summarize(
    rows: Iterable[Transaction],
    policy: BalancePolicy,
    opening: Decimal = ZERO,
) -> LedgerSummary:
    total_debit = ZERO
    total_credit = ZERO
    net = opening
    count = 0
    for t in rows:
        if t.is_opening:
            continue
        total_debit += t.debit_amount
        total_credit += t.credit_amount
        net += policy.signed_delta(t)
        count += 1
    return LedgerSummary(
        total_debit=total_debit,
        total_credit=total_credit,
        net_balance=net,
        transaction_count=count,
    )


def _bucket_amount(t: Transaction) -> Decimal:
    return t.debit_amount if t.kind in DEBIT_KINDS else t.credit_amount


def period_totals(rows: Iterable[Transaction], now: datetime) -> Tuple[PeriodTotals, PeriodTotals]:
    """
    Sum each kind for the current and previous calendar month.
    """
    current, previous = month_bounds(now)
    sums: Dict[MonthKey, Dict[TransactionKind, Decimal]] = {current: {}, previous: {}}

    for t in rows:
        if t.is_opening:
            continue
        key = (t.date.year, t.date.month)
        bucket = sums.get(key)
        if bucket is None:
            continue
        bucket[t.kind] = bucket.get(t.kind, ZERO) + _bucket_amount(t)

    return (
        PeriodTotals(year=current[0], month=current[1], by_kind=sums[current]),
        PeriodTotals(year=previous[0], month=previous[1], by_kind=sums[previous]),
    )


def _other(period: PeriodTotals) -> Decimal:
    return sum((period.get(kind) for kind in OTHER_PAYROLL_KINDS), ZERO)


def _pending(monthly_salary: Decimal, paid: Decimal) -> Decimal:
    # Overpayment in a month leaves nothing pending; it never goes negative.
    return max(ZERO, monthly_salary - paid)


def salary_breakdown(
    rows: List[Transaction],
    monthly_salary: Decimal,
    now: datetime,
) -> SalaryPeriodBreakdown:
    """
    Pending is measured against salary credits only; overtime and incentives
    are paid on top of the monthly salary, as are allowances, reimbursements
    and commissions (reported together as "other").
    """
    current, previous = period_totals(rows, now)
    total_paid = sum(
        (t.credit_amount for t in rows if t.kind in PAYROLL_KINDS),
        ZERO,
    )

    cur_paid = current.get(TransactionKind.SALARY)
    prev_paid = previous.get(TransactionKind.SALARY)

    return SalaryPeriodBreakdown(
        monthly_salary=monthly_salary,
        total_paid=total_paid,
        current_month_paid=cur_paid,
        current_month_pending=_pending(monthly_salary, cur_paid),
        current_month_overtime=current.get(TransactionKind.OVERTIME),
        current_month_incentive=current.get(TransactionKind.INCENTIVE),
        current_month_other=_other(current),
        previous_month_paid=prev_paid,
        previous_month_pending=_pending(monthly_salary, prev_paid),
        previous_month_overtime=previous.get(TransactionKind.OVERTIME),
        previous_month_incentive=previous.get(TransactionKind.INCENTIVE),
        previous_month_other=_other(previous),
    )
