from decimal import Decimal
import os
from pathlib import Path
import sys
import threading
import time

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from backend.app.recon.sources import (  # noqa: E402
    RecordSource,
    SourceTimeout,
    call_with_deadline,
    collect,
    sources_for,
)
from backend.app.recon.types import CounterpartyType, LedgerInvariantError  # noqa: E402
from backend.tests.fakes import FakeLedgerProvider  # noqa: E402


def _bill(bill_id, day, total):
    return {"id": bill_id, "bill_number": f"VB-{bill_id}", "bill_date": f"2024-03-{day:02d}", "total_amount": total}


def test_sources_for_registers_fixed_pipelines():
    provider = FakeLedgerProvider()
    assert [s.name for s in sources_for(CounterpartyType.CUSTOMER, provider)] == [
        "sales_orders",
        "customer_payments",
        "sales_returns",
        "refunds",
    ]
    assert [s.name for s in sources_for("supplier", provider)] == ["vendor_bills", "vendor_payments"]
    assert [s.name for s in sources_for(CounterpartyType.EMPLOYEE, provider)] == ["payroll_lines"]


def test_collect_merges_in_registration_order():
    provider = FakeLedgerProvider(
        records={
            "vendor_bills": [_bill(1, 5, "100"), _bill(2, 1, "50")],
            "vendor_payments": [{"id": 9, "payment_date": "2024-03-02", "amount_paid": "30"}],
        }
    )

    collected = collect(sources_for(CounterpartyType.SUPPLIER, provider), "s1", timeout=2)

    assert [t.id for t in collected.transactions] == ["bill-1", "bill-2", "vendor-payment-9"]
    assert collected.failures == []
    assert collected.incomplete is False


def test_collect_drops_malformed_records_and_counts_them():
    provider = FakeLedgerProvider(
        records={
            "vendor_bills": [_bill(1, 5, "100"), {"id": 2, "bill_date": "2024-03-01"}],
        }
    )

    collected = collect(sources_for(CounterpartyType.SUPPLIER, provider), "s1", timeout=2)

    assert [t.id for t in collected.transactions] == ["bill-1"]
    assert collected.skipped_records == 1
    assert collected.incomplete is False


def test_failed_source_is_recorded_and_others_survive():
    provider = FakeLedgerProvider(
        records={"vendor_bills": [_bill(1, 5, "100")]},
        failing={"vendor_payments": RuntimeError("payments API down")},
    )

    collected = collect(sources_for(CounterpartyType.SUPPLIER, provider), "s1", timeout=2)

    assert [t.id for t in collected.transactions] == ["bill-1"]
    assert collected.transactions[0].debit_amount == Decimal("100")
    assert collected.incomplete is True
    assert len(collected.failures) == 1
    assert collected.failures[0].source == "vendor_payments"
    assert "payments API down" in collected.failures[0].reason


def test_slow_source_times_out_without_blocking_the_rest():
    provider = FakeLedgerProvider(
        records={"vendor_bills": [_bill(1, 5, "100")]},
        blocking={"vendor_payments"},
    )
    try:
        collected = collect(sources_for(CounterpartyType.SUPPLIER, provider), "s1", timeout=0.2)
    finally:
        provider.release.set()

    assert [t.id for t in collected.transactions] == ["bill-1"]
    assert collected.incomplete is True
    assert [(f.source, f.reason) for f in collected.failures] == [("vendor_payments", "timeout")]


def test_invariant_error_in_a_source_propagates():
    def broken(_counterparty_id):
        raise LedgerInvariantError("bad arithmetic")

    source = RecordSource("broken", broken, lambda record: record)

    with pytest.raises(LedgerInvariantError):
        collect([source], "c1", timeout=2)


def test_collect_with_no_sources():
    collected = collect([], "c1")
    assert collected.transactions == []
    assert collected.incomplete is False


def test_lookups_share_the_fan_out_deadline():
    provider = FakeLedgerProvider(
        records={"vendor_bills": [_bill(1, 5, "100")]},
        salaries={"e1": Decimal("900")},
        blocking={"opening_balance"},
    )
    lookups = {
        "opening_balance": lambda: provider.fetch_opening_balance("e1", CounterpartyType.EMPLOYEE),
        "employee_salary": lambda: provider.fetch_employee_salary("e1"),
    }
    started = time.monotonic()
    try:
        collected = collect(
            sources_for(CounterpartyType.SUPPLIER, provider),
            "s1",
            lookups=lookups,
            timeout=0.2,
        )
    finally:
        provider.release.set()

    assert time.monotonic() - started < 1.0
    assert collected.lookups == {"employee_salary": Decimal("900")}
    assert [(f.source, f.reason) for f in collected.failures] == [("opening_balance", "timeout")]
    assert [t.id for t in collected.transactions] == ["bill-1"]


def test_failed_lookup_is_listed_before_source_failures():
    provider = FakeLedgerProvider(failing={"vendor_payments": RuntimeError("down")})

    def broken_lookup():
        raise RuntimeError("hr down")

    collected = collect(
        sources_for(CounterpartyType.SUPPLIER, provider),
        "s1",
        lookups={"employee_salary": broken_lookup},
        timeout=2,
    )

    assert [f.source for f in collected.failures] == ["employee_salary", "vendor_payments"]
    assert collected.lookups == {}


def test_call_with_deadline_returns_the_value():
    assert call_with_deadline("answer", lambda a, b: a + b, 2, 3, timeout=1) == 5


def test_call_with_deadline_raises_on_a_stuck_call():
    release = threading.Event()
    started = time.monotonic()
    try:
        with pytest.raises(SourceTimeout) as exc:
            call_with_deadline("stuck", release.wait, 5, timeout=0.2)
    finally:
        release.set()

    assert time.monotonic() - started < 1.0
    assert exc.value.name == "stuck"


def test_call_with_deadline_propagates_errors():
    def broken():
        raise ConnectionError("db gone")

    with pytest.raises(ConnectionError, match="db gone"):
        call_with_deadline("broken", broken, timeout=1)
