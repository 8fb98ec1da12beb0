from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
import os
from pathlib import Path
import sys
import time

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from backend.app.recon.ledger import BalancePolicy, check_ledger_integrity  # noqa: E402
from backend.app.recon.sources import SourceTimeout  # noqa: E402
from backend.app.recon.types import (  # noqa: E402
    CounterpartyType,
    LedgerInvariantError,
    OpeningBalance,
    TransactionKind,
)
from backend.app.services import ledger_service  # noqa: E402
from backend.app.services.ledger_service import CounterpartyNotFound, get_ledger, list_ledgers  # noqa: E402
from backend.tests.fakes import FakeLedgerProvider  # noqa: E402

D = Decimal
NOW = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)


def _customer_provider(**kwargs):
    return FakeLedgerProvider(
        counterparties={CounterpartyType.CUSTOMER: {"c1"}},
        records={
            "sales_orders": [
                {"id": 1, "order_number": "SO-1", "order_date": "2024-03-01T10:00:00", "grand_total": "1000"},
                {"id": 2, "order_number": "SO-2", "order_date": "2024-02-10T10:00:00", "grand_total": "400"},
            ],
            "customer_payments": [
                {"id": 11, "payment_date": "2024-03-01T10:00:00", "amount": "600", "payment_method": "cash"},
            ],
            "sales_returns": [
                {"id": 21, "return_date": "2024-03-05", "amount": "50"},
            ],
            "refunds": [],
        },
        **kwargs,
    )


def test_customer_ledger_end_to_end():
    view = get_ledger(_customer_provider(), "c1", CounterpartyType.CUSTOMER, now=NOW)

    assert [t.id for t in view.transactions] == ["sales-order-2", "sales-order-1", "payment-11", "return-21"]
    assert [t.running_balance for t in view.transactions] == [D("400"), D("1400"), D("800"), D("750")]
    assert view.summary.total_debit == D("1400")
    assert view.summary.total_credit == D("650")
    assert view.summary.net_balance == D("750")
    assert view.summary.transaction_count == 4
    assert view.incomplete is False
    assert view.current_period.get(TransactionKind.SALES_ORDER) == D("1000")
    assert view.previous_period.get(TransactionKind.SALES_ORDER) == D("400")
    assert view.salary_breakdown is None

    check_ledger_integrity(view.transactions, BalancePolicy.DEBTOR, opening=view.brought_forward)


def test_opening_balance_seeds_running_balance():
    provider = _customer_provider(
        openings={"c1": OpeningBalance(D("250"), datetime(2024, 1, 1, tzinfo=timezone.utc))}
    )

    view = get_ledger(provider, "c1", "customer", now=NOW)

    first = view.transactions[0]
    assert first.kind == TransactionKind.OPENING_BALANCE
    assert first.running_balance == D("250")
    assert view.transactions[-1].running_balance == D("1000")
    assert view.summary.net_balance == D("1000")
    assert view.summary.transaction_count == 4


def test_date_range_keeps_full_history_balances():
    view = get_ledger(
        _customer_provider(),
        "c1",
        CounterpartyType.CUSTOMER,
        now=NOW,
        start=date(2024, 3, 1),
        end=date(2024, 3, 1),
    )

    assert view.brought_forward == D("400")
    assert [t.id for t in view.transactions] == ["sales-order-1", "payment-11"]
    assert [t.running_balance for t in view.transactions] == [D("1400"), D("800")]
    assert view.summary.net_balance == D("800")
    assert view.summary.transaction_count == 2


def test_supplier_partial_failure_is_flagged_incomplete():
    provider = FakeLedgerProvider(
        counterparties={CounterpartyType.SUPPLIER: {"s1"}},
        records={
            "vendor_bills": [
                {"id": 1, "bill_number": "VB-1", "bill_date": "2024-03-02", "total_amount": "800"},
            ],
        },
        failing={"vendor_payments": ConnectionError("timeout talking to payments")},
    )

    view = get_ledger(provider, "s1", CounterpartyType.SUPPLIER, now=NOW)

    assert [t.id for t in view.transactions] == ["bill-1"]
    assert view.summary.total_debit == D("800")
    assert view.summary.net_balance == D("800")
    assert view.incomplete is True
    assert [f.source for f in view.failures] == ["vendor_payments"]


def test_employee_ledger_has_salary_breakdown():
    provider = FakeLedgerProvider(
        counterparties={CounterpartyType.EMPLOYEE: {"e1"}},
        records={
            "payroll_lines": [
                {"id": 1, "payment_type": "salary", "pay_date": "2024-02-28", "amount": "30000"},
                {"id": 2, "payment_type": "salary", "pay_date": "2024-03-10", "amount": "10000"},
                {"id": 3, "payment_type": "overtime", "pay_date": "2024-03-11", "amount": "2000"},
                {"id": 4, "payment_type": "", "pay_date": "2024-03-11", "amount": "1"},
            ],
        },
        salaries={"e1": D("30000")},
    )

    view = get_ledger(provider, "e1", CounterpartyType.EMPLOYEE, now=NOW)

    assert [t.running_balance for t in view.transactions] == [D("30000"), D("40000"), D("42000")]
    assert view.skipped_records == 1
    b = view.salary_breakdown
    assert b is not None
    assert b.total_paid == D("42000")
    assert b.current_month_paid == D("10000")
    assert b.current_month_pending == D("20000")
    assert b.current_month_overtime == D("2000")
    assert b.previous_month_paid == D("30000")
    assert b.previous_month_pending == D("0")


def test_employee_salary_lookup_failure_drops_breakdown():
    provider = FakeLedgerProvider(
        counterparties={CounterpartyType.EMPLOYEE: {"e1"}},
        failing={"employee_salary": RuntimeError("hr down")},
    )

    view = get_ledger(provider, "e1", CounterpartyType.EMPLOYEE, now=NOW)

    assert view.salary_breakdown is None
    assert view.incomplete is True
    assert [f.source for f in view.failures] == ["employee_salary"]


def test_employee_without_salary_on_record_reads_zero():
    provider = FakeLedgerProvider(counterparties={CounterpartyType.EMPLOYEE: {"e1"}})

    view = get_ledger(provider, "e1", CounterpartyType.EMPLOYEE, now=NOW)

    assert view.salary_breakdown.monthly_salary == D("0")
    assert view.salary_breakdown.current_month_pending == D("0")
    assert view.incomplete is False


def test_empty_ledger_is_all_zero():
    provider = FakeLedgerProvider(counterparties={CounterpartyType.CUSTOMER: {"c1"}})

    view = get_ledger(provider, "c1", CounterpartyType.CUSTOMER, now=NOW)

    assert view.transactions == []
    assert view.summary.net_balance == D("0")
    assert view.summary.transaction_count == 0
    assert view.incomplete is False


def test_unknown_counterparty_raises():
    with pytest.raises(CounterpartyNotFound):
        get_ledger(FakeLedgerProvider(), "nobody", CounterpartyType.CUSTOMER, now=NOW)


def test_employee_allowances_count_toward_net_but_not_pending():
    provider = FakeLedgerProvider(
        counterparties={CounterpartyType.EMPLOYEE: {"e1"}},
        records={
            "payroll_lines": [
                {"id": 1, "payment_type": "salary", "pay_date": "2024-03-05", "amount": "1000"},
                {"id": 2, "payment_type": "allowance", "pay_date": "2024-03-06", "amount": "500"},
                {"id": 3, "payment_type": "reimbursement", "pay_date": "2024-03-07", "amount": "200"},
            ],
        },
        salaries={"e1": D("1500")},
    )

    view = get_ledger(provider, "e1", CounterpartyType.EMPLOYEE, now=NOW)

    assert view.summary.net_balance == D("1700")
    assert view.skipped_records == 0
    b = view.salary_breakdown
    assert b.total_paid == D("1700")
    assert b.current_month_paid == D("1000")
    assert b.current_month_pending == D("500")
    assert b.current_month_other == D("700")
    assert b.previous_month_other == D("0")


def test_blocking_salary_lookup_is_bounded_by_the_deadline():
    provider = FakeLedgerProvider(
        counterparties={CounterpartyType.EMPLOYEE: {"e1"}},
        records={
            "payroll_lines": [
                {"id": 1, "payment_type": "salary", "pay_date": "2024-03-05", "amount": "1000"},
            ],
        },
        salaries={"e1": D("1000")},
        blocking={"employee_salary"},
    )
    started = time.monotonic()
    try:
        view = get_ledger(provider, "e1", CounterpartyType.EMPLOYEE, now=NOW, timeout=0.2)
    finally:
        provider.release.set()

    assert time.monotonic() - started < 1.0
    assert [(f.source, f.reason) for f in view.failures] == [("employee_salary", "timeout")]
    assert view.salary_breakdown is None
    assert view.incomplete is True
    assert view.summary.net_balance == D("1000")


def test_blocking_opening_balance_lookup_reads_zero_and_flags_incomplete():
    provider = _customer_provider(
        openings={"c1": OpeningBalance(D("250"), datetime(2024, 1, 1, tzinfo=timezone.utc))},
        blocking={"opening_balance"},
    )
    started = time.monotonic()
    try:
        view = get_ledger(provider, "c1", CounterpartyType.CUSTOMER, now=NOW, timeout=0.2)
    finally:
        provider.release.set()

    assert time.monotonic() - started < 1.0
    assert [(f.source, f.reason) for f in view.failures] == [("opening_balance", "timeout")]
    assert view.opening_balance == D("0")
    assert view.summary.net_balance == D("750")


def test_opening_balance_lookup_failure_is_recorded():
    provider = _customer_provider(failing={"opening_balance": ConnectionError("ledger db down")})

    view = get_ledger(provider, "c1", CounterpartyType.CUSTOMER, now=NOW)

    assert [f.source for f in view.failures] == ["opening_balance"]
    assert "ledger db down" in view.failures[0].reason
    assert view.incomplete is True
    assert view.opening_balance == D("0")
    assert view.transactions[0].kind != TransactionKind.OPENING_BALANCE
    assert view.summary.net_balance == D("750")


def test_blocking_existence_check_raises_source_timeout():
    provider = _customer_provider(blocking={"counterparty_exists"})
    started = time.monotonic()
    try:
        with pytest.raises(SourceTimeout) as exc:
            get_ledger(provider, "c1", CounterpartyType.CUSTOMER, now=NOW, timeout=0.2)
    finally:
        provider.release.set()

    assert time.monotonic() - started < 1.0
    assert exc.value.name == "counterparty_exists"


def test_inconsistent_running_balances_fail_loudly(monkeypatch):
    real_accumulate = ledger_service.accumulate

    def skewed(txns, policy, opening=D("0")):
        rows = real_accumulate(txns, policy, opening)
        return rows[:-1] + [replace(rows[-1], running_balance=rows[-1].running_balance + 1)]

    monkeypatch.setattr(ledger_service, "accumulate", skewed)

    with pytest.raises(LedgerInvariantError):
        get_ledger(_customer_provider(), "c1", CounterpartyType.CUSTOMER, now=NOW)


def _book_provider():
    provider = _customer_provider()
    provider.counterparties = {
        CounterpartyType.CUSTOMER: {"c1", "c2"},
        CounterpartyType.SUPPLIER: {"s1"},
    }
    provider.names = {"c1": "Acme", "c2": "Bolt", "s1": "Zed Supply"}
    return provider


def test_list_ledgers_summarizes_every_party():
    result = list_ledgers(_book_provider(), now=NOW)

    assert [(i.counterparty_type, i.counterparty_id) for i in result.items] == [
        (CounterpartyType.CUSTOMER, "c1"),
        (CounterpartyType.CUSTOMER, "c2"),
        (CounterpartyType.SUPPLIER, "s1"),
    ]
    acme = result.items[0]
    assert acme.name == "Acme"
    assert acme.total_debit == D("1400")
    assert acme.total_credit == D("650")
    assert acme.balance_due == D("750")
    assert acme.transaction_count == 4
    assert acme.last_transaction_date == datetime(2024, 3, 5, tzinfo=timezone.utc)
    assert acme.incomplete is False
    supplier = result.items[2]
    assert supplier.balance_due == D("0")
    assert supplier.last_transaction_date is None
    assert result.total == 3
    assert result.has_more is False


def test_list_ledgers_hides_zero_balances_before_paging():
    result = list_ledgers(_book_provider(), now=NOW, hide_zero_balances=True, page=2, limit=1)

    assert [i.counterparty_id for i in result.items] == ["c2"]
    assert result.total == 2
    assert result.total_pages == 2
    assert result.has_more is False


def test_list_ledgers_first_page_reports_more():
    result = list_ledgers(_book_provider(), now=NOW, page=1, limit=2)

    assert [i.counterparty_id for i in result.items] == ["c1", "c2"]
    assert result.total_pages == 2
    assert result.has_more is True


def test_list_ledgers_filters_by_type_and_search():
    provider = _book_provider()

    suppliers = list_ledgers(provider, CounterpartyType.SUPPLIER, now=NOW)
    matched = list_ledgers(provider, now=NOW, search="acm")

    assert [i.counterparty_id for i in suppliers.items] == ["s1"]
    assert [i.counterparty_id for i in matched.items] == ["c1"]


def test_list_ledgers_keeps_settled_parties_with_activity():
    provider = FakeLedgerProvider(
        counterparties={CounterpartyType.CUSTOMER: {"c1"}},
        records={
            "sales_orders": [{"id": 1, "order_date": "2024-03-01", "grand_total": "500"}],
            "customer_payments": [{"id": 2, "payment_date": "2024-03-02", "amount": "500"}],
        },
    )

    result = list_ledgers(provider, now=NOW, hide_zero_balances=True)

    assert [(i.counterparty_id, i.balance_due) for i in result.items] == [("c1", D("0"))]


def test_list_ledgers_flags_incomplete_parties():
    provider = _book_provider()
    provider.failing = {"refunds": RuntimeError("refunds offline")}

    result = list_ledgers(provider, CounterpartyType.CUSTOMER, now=NOW)

    assert all(i.incomplete for i in result.items)


@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0)])
def test_list_ledgers_rejects_bad_paging(page, limit):
    with pytest.raises(ValueError):
        list_ledgers(_book_provider(), now=NOW, page=page, limit=limit)
