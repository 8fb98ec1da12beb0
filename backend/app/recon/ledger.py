"""
Recon - running-balance accumulator.

Responsibility:
- Walk a sequenced transaction list once and annotate every row with the
  balance after it.

Design notes:
- The sign convention is a BalancePolicy resolved once per ledger fetch:
  debtor ledgers (customer/supplier) grow with debits, payee ledgers
  (employee) grow with credits.
- Decimal all the way through; nothing here rounds.
- Invariant violations raise LedgerInvariantError. They are never clamped.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .money import ZERO
from .sequence import sort_key
from .types import (
    CounterpartyType,
    LedgerInvariantError,
    Transaction,
    check_amounts,
)


class BalancePolicy(str, Enum):
    DEBTOR = "debtor"
    PAYEE = "payee"

    def signed_delta(self, t: Transaction) -> Decimal:
        if self is BalancePolicy.PAYEE:
            return t.credit_amount - t.debit_amount
        return t.debit_amount - t.credit_amount


def policy_for(counterparty_type: CounterpartyType) -> BalancePolicy:
    if CounterpartyType(counterparty_type) == CounterpartyType.EMPLOYEE:
        return BalancePolicy.PAYEE
    return BalancePolicy.DEBTOR


def accumulate(
    txns: Iterable[Transaction],
    policy: BalancePolicy,
    opening: Decimal = ZERO,
) -> List[Transaction]:
    """
    Single left-to-right pass. Expects txns already sequenced.

    Opening-balance markers carry no amount, so their running balance is the
    opening balance itself.
    """
    balance = opening
    out: List[Transaction] = []
    for t in txns:
        check_amounts(t)
        if not t.is_opening:
            balance += policy.signed_delta(t)
        out.append(replace(t, running_balance=balance))
    return out


def check_ledger_integrity(
    rows: Iterable[Transaction],
    policy: BalancePolicy,
    *,
    opening: Decimal = ZERO,
) -> dict:
    """
    Side-effect-free ledger integrity check.

    Invariants:
    - Every row carries a running balance.
    - Running balances are continuous.
    - Rows are in sequencer order.
    - The last balance reconciles to opening + sum of signed deltas.
    """
    rows = list(rows)
    last_balance = opening
    prev_key: Optional[tuple] = None
    total_debit = ZERO
    total_credit = ZERO
    net = ZERO

    for idx, row in enumerate(rows):
        check_amounts(row)
        if row.running_balance is None:
            raise LedgerInvariantError(f"Invariant violation: row {idx} has no running balance.")

        key = sort_key(row)
        if prev_key is not None and key < prev_key:
            raise LedgerInvariantError("Invariant violation: ledger rows are not in chronological order.")

        delta = ZERO if row.is_opening else policy.signed_delta(row)
        if row.running_balance != last_balance + delta:
            raise LedgerInvariantError(f"Invariant violation: running balance mismatch at row {idx}.")

        total_debit += row.debit_amount
        total_credit += row.credit_amount
        net += delta
        last_balance = row.running_balance
        prev_key = key

    if rows and rows[-1].running_balance - opening != net:
        raise LedgerInvariantError(
            "Invariant violation: net movement does not reconcile to closing balance."
        )

    return {
        "rows": len(rows),
        "total_debit": total_debit,
        "total_credit": total_credit,
        "net_movement": net,
        "closing_balance": last_balance,
    }


def window(
    rows: List[Transaction],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    *,
    opening: Decimal = ZERO,
) -> Tuple[Decimal, List[Transaction]]:
    """
    Slice an accumulated ledger to [start, end] (inclusive).

    Balances stay those of the full history. Returns the balance brought
    forward into the window plus the rows inside it.
    """
    brought_forward = opening
    picked: List[Transaction] = []
    for row in rows:
        if start is not None and row.date < start:
            brought_forward = row.running_balance if row.running_balance is not None else brought_forward
            continue
        if end is not None and row.date > end:
            break
        picked.append(row)
    return brought_forward, picked
