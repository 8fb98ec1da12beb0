"""
Recon - chronological sequencer.

Same-date ties are broken by a fixed kind priority instead of input order,
because each source API returns rows in its own native order. Within equal
(date, priority) the sort is stable, so normalizer emission order wins.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .types import Transaction, TransactionKind

KIND_PRIORITY: Dict[TransactionKind, int] = {
    TransactionKind.OPENING_BALANCE: 0,
    TransactionKind.SALES_ORDER: 1,
    TransactionKind.VENDOR_BILL: 1,
    TransactionKind.SALES_RETURN: 2,
    TransactionKind.ADJUSTMENT: 2,
    TransactionKind.PAYMENT: 3,
    TransactionKind.REFUND: 4,
}

UNRANKED = max(KIND_PRIORITY.values()) + 1


def kind_priority(kind: TransactionKind) -> int:
    return KIND_PRIORITY.get(kind, UNRANKED)


def sort_key(t: Transaction) -> Tuple:
    return (t.date, kind_priority(t.kind))


def sequence(txns: Iterable[Transaction]) -> List[Transaction]:
    return sorted(txns, key=sort_key)
