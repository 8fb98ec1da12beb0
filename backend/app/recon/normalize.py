"""
Recon - transaction normalizer.

Responsibility:
- Map one raw record from a source collaborator onto the canonical Transaction.

Design notes:
- Every mapper is a pure function of the raw record: no IO, no clock, no state.
- A record missing a required field raises MalformedRecord. The caller drops
  and logs it; an amount is never defaulted to zero because that would
  silently understate a balance.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from .money import ZERO, to_money
from .types import (
    OpeningBalance,
    Transaction,
    TransactionKind,
    TransactionStatus,
    as_utc,
)

RawRecord = Mapping[str, Any]


class MalformedRecord(ValueError):
    def __init__(self, source: str, record_id: Any, reason: str) -> None:
        super().__init__(f"{source} record {record_id!r}: {reason}")
        self.source = source
        self.record_id = record_id
        self.reason = reason


# -------------------------
# Field extraction
# -------------------------

STATUS_MAP = {
    "paid": TransactionStatus.COMPLETED,
    "completed": TransactionStatus.COMPLETED,
    "complete": TransactionStatus.COMPLETED,
    "processed": TransactionStatus.COMPLETED,
    "delivered": TransactionStatus.COMPLETED,
    "received": TransactionStatus.COMPLETED,
    "refunded": TransactionStatus.COMPLETED,
    "partial": TransactionStatus.PARTIAL,
    "partially_paid": TransactionStatus.PARTIAL,
    "partially paid": TransactionStatus.PARTIAL,
    "cancelled": TransactionStatus.CANCELLED,
    "canceled": TransactionStatus.CANCELLED,
    "void": TransactionStatus.CANCELLED,
}


def normalize_status(raw: Any) -> TransactionStatus:
    key = str(raw or "").strip().lower()
    return STATUS_MAP.get(key, TransactionStatus.PENDING)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _record_id(record: RawRecord, source: str) -> str:
    rid = _text(record.get("id"))
    if rid is None:
        raise MalformedRecord(source, None, "missing id")
    return rid


def _amount(record: RawRecord, source: str, *fields: str) -> Decimal:
    rid = record.get("id")
    for name in fields:
        if record.get(name) is None:
            continue
        try:
            amt = to_money(record[name])
        except ValueError as e:
            raise MalformedRecord(source, rid, f"bad {name}: {e}") from e
        if amt < 0:
            raise MalformedRecord(source, rid, f"negative {name}: {amt}")
        return amt
    raise MalformedRecord(source, rid, f"missing amount ({' / '.join(fields)})")


def _when(record: RawRecord, source: str, *fields: str) -> datetime | date:
    rid = record.get("id")
    for name in fields:
        value = record.get(name)
        if value is None or value == "":
            continue
        if isinstance(value, (datetime, date)):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError as e:
                raise MalformedRecord(source, rid, f"bad {name}: {value!r}") from e
        raise MalformedRecord(source, rid, f"bad {name}: {value!r}")
    raise MalformedRecord(source, rid, f"missing date ({' / '.join(fields)})")


def _method(record: RawRecord) -> str:
    return _text(record.get("payment_method")) or "unspecified"


# -------------------------
# Customer sources
# -------------------------

def sales_order_to_txn(record: RawRecord) -> Transaction:
    source = "sales_order"
    rid = _record_id(record, source)
    number = _text(record.get("order_number"))
    return Transaction(
        id=f"sales-order-{rid}",
        date=_when(record, source, "order_date", "created_at"),
        description=f"Sales Order #{number or rid}",
        reference=number,
        kind=TransactionKind.SALES_ORDER,
        debit_amount=_amount(record, source, "grand_total", "final_price"),
        status=normalize_status(record.get("status")),
        source_document=f"Sales Order #{number or rid}",
    )


def customer_payment_to_txn(record: RawRecord) -> Transaction:
    source = "customer_payment"
    rid = _record_id(record, source)
    return Transaction(
        id=f"payment-{rid}",
        date=_when(record, source, "payment_date", "created_at"),
        description=f"Payment received - {_method(record)}",
        reference=_text(record.get("reference_number")),
        kind=TransactionKind.PAYMENT,
        credit_amount=_amount(record, source, "amount"),
        status=TransactionStatus.COMPLETED,
        source_document=f"Payment {rid}",
    )


def sales_return_to_txn(record: RawRecord) -> Transaction:
    source = "sales_return"
    rid = _record_id(record, source)
    number = _text(record.get("return_number"))
    return Transaction(
        id=f"return-{rid}",
        date=_when(record, source, "return_date", "created_at"),
        description=f"Sales Return #{number or rid}",
        reference=number,
        kind=TransactionKind.SALES_RETURN,
        credit_amount=_amount(record, source, "amount", "return_value"),
        status=normalize_status(record.get("status")),
        source_document=f"Return #{number or rid}",
    )


def refund_to_txn(record: RawRecord) -> Transaction:
    source = "refund"
    rid = _record_id(record, source)
    return Transaction(
        id=f"refund-{rid}",
        date=_when(record, source, "refund_date", "created_at"),
        description=f"Refund - {_method(record)}",
        reference=_text(record.get("reference_number")),
        kind=TransactionKind.REFUND,
        credit_amount=_amount(record, source, "amount", "refund_amount"),
        status=normalize_status(record.get("status")),
        source_document=f"Refund {rid}",
    )


# -------------------------
# Supplier sources
# -------------------------

def vendor_bill_to_txn(record: RawRecord) -> Transaction:
    source = "vendor_bill"
    rid = _record_id(record, source)
    number = _text(record.get("bill_number"))
    return Transaction(
        id=f"bill-{rid}",
        date=_when(record, source, "bill_date", "created_at"),
        description=f"Vendor Bill - {number or 'N/A'}",
        reference=number,
        kind=TransactionKind.VENDOR_BILL,
        debit_amount=_amount(record, source, "total_amount"),
        status=normalize_status(record.get("status")),
        source_document=f"Bill #{number or rid}",
    )


def vendor_payment_to_txn(record: RawRecord) -> Transaction:
    source = "vendor_payment"
    rid = _record_id(record, source)
    bill_number = _text(record.get("bill_number"))
    return Transaction(
        id=f"vendor-payment-{rid}",
        date=_when(record, source, "payment_date", "created_at"),
        description=f"Payment made - {_method(record)}",
        reference=_text(record.get("reference_number")) or bill_number,
        kind=TransactionKind.PAYMENT,
        credit_amount=_amount(record, source, "amount_paid", "amount"),
        status=TransactionStatus.COMPLETED,
        source_document=f"Payment for Bill {bill_number}" if bill_number else f"Vendor Payment {rid}",
    )


# -------------------------
# Employee sources
# -------------------------

PAYROLL_TYPES = {
    "salary": TransactionKind.SALARY,
    "overtime": TransactionKind.OVERTIME,
    "incentive": TransactionKind.INCENTIVE,
    "bonus": TransactionKind.INCENTIVE,
    "allowance": TransactionKind.ALLOWANCE,
    "reimbursement": TransactionKind.REIMBURSEMENT,
    "commission": TransactionKind.COMMISSION,
    "other": TransactionKind.OTHER_PAYROLL,
}


def payroll_line_to_txn(record: RawRecord) -> Transaction:
    source = "payroll_line"
    rid = _record_id(record, source)
    raw_type = str(record.get("payment_type") or "").strip().lower()
    if not raw_type:
        raise MalformedRecord(source, rid, "missing payment_type")
    # Unlisted types are still money paid to the employee; they land in other_payroll.
    kind = PAYROLL_TYPES.get(raw_type, TransactionKind.OTHER_PAYROLL)

    label = raw_type.replace("_", " ").capitalize()
    period = _text(record.get("period"))
    return Transaction(
        id=f"payroll-{rid}",
        date=_when(record, source, "pay_date", "created_at"),
        description=_text(record.get("description")) or (f"{label} payment {period}" if period else f"{label} payment"),
        reference=_text(record.get("reference_number")),
        kind=kind,
        credit_amount=_amount(record, source, "amount"),
        status=normalize_status(record.get("status") or "paid"),
        source_document="Payroll",
        deletable=True,
    )


# -------------------------
# Opening balance
# -------------------------

def opening_marker(
    counterparty_id: str,
    opening: OpeningBalance,
    first_date: Optional[datetime],
) -> Optional[Transaction]:
    """
    Zero-amount marker row carrying the opening balance into the ledger view.

    The balance itself seeds the accumulator; the marker only anchors it in the
    sequence, dated no later than the first real transaction.
    """
    if opening.amount == ZERO:
        return None
    candidates = [d for d in (opening.as_of, first_date) if d is not None]
    if not candidates:
        return None
    when = min(candidates, key=as_utc)
    return Transaction(
        id=f"opening-{counterparty_id}",
        date=when,
        description="Opening Balance",
        kind=TransactionKind.OPENING_BALANCE,
        status=TransactionStatus.COMPLETED,
        source_document="Opening Balance",
    )
