from datetime import date, datetime, timezone
from decimal import Decimal
import os
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from backend.app.recon.normalize import (  # noqa: E402
    MalformedRecord,
    customer_payment_to_txn,
    normalize_status,
    opening_marker,
    payroll_line_to_txn,
    refund_to_txn,
    sales_order_to_txn,
    sales_return_to_txn,
    vendor_bill_to_txn,
    vendor_payment_to_txn,
)
from backend.app.recon.types import (  # noqa: E402
    LedgerInvariantError,
    OpeningBalance,
    Transaction,
    TransactionKind,
    TransactionStatus,
)


def test_sales_order_maps_to_debit():
    txn = sales_order_to_txn(
        {"id": 42, "order_number": "SO-9", "order_date": "2024-03-01T10:00:00Z", "grand_total": "1,200.50", "status": "partial"}
    )

    assert txn.id == "sales-order-42"
    assert txn.kind == TransactionKind.SALES_ORDER
    assert txn.debit_amount == Decimal("1200.50")
    assert txn.credit_amount == Decimal("0")
    assert txn.status == TransactionStatus.PARTIAL
    assert txn.reference == "SO-9"
    assert txn.date == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def test_sales_order_falls_back_to_final_price():
    txn = sales_order_to_txn({"id": "a", "order_date": date(2024, 3, 1), "final_price": 500})
    assert txn.debit_amount == Decimal("500")
    assert txn.description == "Sales Order #a"
    assert txn.date == datetime(2024, 3, 1, tzinfo=timezone.utc)


def test_credit_side_mappers():
    when = datetime(2024, 3, 2, 12, 0)
    payment = customer_payment_to_txn({"id": 1, "payment_date": when, "amount": 300, "payment_method": "cash"})
    ret = sales_return_to_txn({"id": 2, "return_date": when, "return_value": "50"})
    refund = refund_to_txn({"id": 3, "refund_date": when, "refund_amount": 20.25, "status": "refunded"})

    assert payment.id == "payment-1"
    assert payment.kind == TransactionKind.PAYMENT
    assert payment.credit_amount == Decimal("300")
    assert payment.status == TransactionStatus.COMPLETED
    assert payment.description == "Payment received - cash"

    assert ret.id == "return-2"
    assert ret.credit_amount == Decimal("50")

    assert refund.id == "refund-3"
    assert refund.credit_amount == Decimal("20.25")
    assert refund.status == TransactionStatus.COMPLETED


def test_supplier_mappers():
    bill = vendor_bill_to_txn({"id": 7, "bill_number": "VB-1", "bill_date": "2024-02-01", "total_amount": "800"})
    payment = vendor_payment_to_txn({"id": 8, "payment_date": "2024-02-03", "amount_paid": "300", "bill_number": "VB-1"})

    assert bill.id == "bill-7"
    assert bill.debit_amount == Decimal("800")
    assert bill.description == "Vendor Bill - VB-1"
    assert payment.id == "vendor-payment-8"
    assert payment.credit_amount == Decimal("300")
    assert payment.reference == "VB-1"
    assert payment.source_document == "Payment for Bill VB-1"


@pytest.mark.parametrize(
    "payment_type,kind",
    [
        ("salary", TransactionKind.SALARY),
        ("Overtime", TransactionKind.OVERTIME),
        ("incentive", TransactionKind.INCENTIVE),
        ("bonus", TransactionKind.INCENTIVE),
        ("allowance", TransactionKind.ALLOWANCE),
        ("Reimbursement", TransactionKind.REIMBURSEMENT),
        ("commission", TransactionKind.COMMISSION),
        ("other", TransactionKind.OTHER_PAYROLL),
    ],
)
def test_payroll_line_kinds(payment_type, kind):
    txn = payroll_line_to_txn({"id": 5, "payment_type": payment_type, "pay_date": "2024-01-31", "amount": 100})
    assert txn.kind == kind
    assert txn.credit_amount == Decimal("100")
    assert txn.deletable is True
    assert txn.status == TransactionStatus.COMPLETED


def test_payroll_line_unlisted_type_is_kept_as_other_payroll():
    txn = payroll_line_to_txn({"id": 5, "payment_type": "travel_advance", "pay_date": "2024-01-31", "amount": 100})
    assert txn.kind == TransactionKind.OTHER_PAYROLL
    assert txn.credit_amount == Decimal("100")
    assert txn.description == "Travel advance payment"


@pytest.mark.parametrize("payment_type", [None, "", "   "])
def test_payroll_line_without_type_is_malformed(payment_type):
    with pytest.raises(MalformedRecord, match="missing payment_type"):
        payroll_line_to_txn({"id": 5, "payment_type": payment_type, "pay_date": "2024-01-31", "amount": 100})


@pytest.mark.parametrize(
    "record,reason",
    [
        ({"order_date": "2024-01-01", "grand_total": 10}, "missing id"),
        ({"id": 1, "order_date": "2024-01-01"}, "missing amount"),
        ({"id": 1, "order_date": "2024-01-01", "grand_total": "ten"}, "bad grand_total"),
        ({"id": 1, "order_date": "2024-01-01", "grand_total": -5}, "negative grand_total"),
        ({"id": 1, "grand_total": 10}, "missing date"),
        ({"id": 1, "order_date": "yesterday", "grand_total": 10}, "bad order_date"),
    ],
)
def test_malformed_sales_orders_raise(record, reason):
    with pytest.raises(MalformedRecord, match=reason):
        sales_order_to_txn(record)


def test_missing_amount_is_never_read_as_zero():
    with pytest.raises(MalformedRecord):
        customer_payment_to_txn({"id": 1, "payment_date": "2024-01-01", "amount": None})


def test_normalize_status_defaults_to_pending():
    assert normalize_status("Paid") == TransactionStatus.COMPLETED
    assert normalize_status("void") == TransactionStatus.CANCELLED
    assert normalize_status(None) == TransactionStatus.PENDING
    assert normalize_status("weird") == TransactionStatus.PENDING


def test_transaction_rejects_two_positive_sides():
    with pytest.raises(LedgerInvariantError, match="both positive"):
        Transaction(
            id="x",
            date=datetime(2024, 1, 1),
            description="bad",
            kind=TransactionKind.ADJUSTMENT,
            debit_amount=Decimal("1"),
            credit_amount=Decimal("1"),
        )


def test_transaction_rejects_float_amounts():
    with pytest.raises(LedgerInvariantError, match="must be Decimal"):
        Transaction(
            id="x",
            date=datetime(2024, 1, 1),
            description="bad",
            kind=TransactionKind.PAYMENT,
            credit_amount=1.5,
        )


def test_opening_marker_is_dated_before_first_transaction():
    first = datetime(2024, 3, 1, tzinfo=timezone.utc)
    marker = opening_marker("c1", OpeningBalance(Decimal("100"), datetime(2024, 5, 1, tzinfo=timezone.utc)), first)

    assert marker is not None
    assert marker.id == "opening-c1"
    assert marker.kind == TransactionKind.OPENING_BALANCE
    assert marker.date == first
    assert marker.debit_amount == Decimal("0")
    assert marker.credit_amount == Decimal("0")


def test_opening_marker_skipped_for_zero_balance():
    assert opening_marker("c1", OpeningBalance(Decimal("0")), datetime(2024, 3, 1)) is None
    assert opening_marker("c1", OpeningBalance(Decimal("10")), None) is None
