from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Type

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from backend.app.models import (
    Customer,
    CustomerPayment,
    EMIPlanRow,
    Employee,
    PayrollLine,
    Refund,
    SalesOrder,
    SalesReturn,
    Supplier,
    VendorBill,
    VendorPayment,
)
from backend.app.providers.base import RawRecord
from backend.app.recon.emi import DEFAULT_PLAN_CATALOG, EMIPlan
from backend.app.recon.money import ZERO
from backend.app.recon.types import CounterpartyType, OpeningBalance, as_utc


COUNTERPARTY_MODELS: Dict[CounterpartyType, Type] = {
    CounterpartyType.CUSTOMER: Customer,
    CounterpartyType.SUPPLIER: Supplier,
    CounterpartyType.EMPLOYEE: Employee,
}


def _columns(row, *names: str) -> RawRecord:
    return {name: getattr(row, name) for name in names}


class SqlLedgerProvider:
    """
    SQLAlchemy-backed provider over the ERP tables.

    Every read opens and closes its own Session, since the ledger fan-out
    calls these from several worker threads and a Session is not thread-safe.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    # -------------------------
    # Counter-parties
    # -------------------------

    def counterparty_exists(self, counterparty_id: str, counterparty_type: CounterpartyType) -> bool:
        model = COUNTERPARTY_MODELS[CounterpartyType(counterparty_type)]
        with self._session() as db:
            return db.get(model, counterparty_id) is not None

    def list_counterparties(
        self,
        counterparty_type: CounterpartyType,
        search: Optional[str] = None,
    ) -> List[RawRecord]:
        model = COUNTERPARTY_MODELS[CounterpartyType(counterparty_type)]
        stmt = select(model.id, model.name).order_by(model.name, model.id)
        needle = (search or "").strip()
        if needle:
            pattern = f"%{needle}%"
            if model is Customer:
                stmt = stmt.where(or_(model.name.ilike(pattern), model.phone.ilike(pattern)))
            else:
                stmt = stmt.where(model.name.ilike(pattern))
        with self._session() as db:
            return [{"id": r.id, "name": r.name} for r in db.execute(stmt)]

    def fetch_opening_balance(self, counterparty_id: str, counterparty_type: CounterpartyType) -> OpeningBalance:
        model = COUNTERPARTY_MODELS[CounterpartyType(counterparty_type)]
        with self._session() as db:
            row = db.get(model, counterparty_id)
            if row is None:
                return OpeningBalance()
            as_of = as_utc(row.opening_balance_date) if row.opening_balance_date else None
            return OpeningBalance(amount=Decimal(row.opening_balance or ZERO), as_of=as_of)

    # -------------------------
    # Customers
    # -------------------------

    def fetch_sales_orders(self, counterparty_id: str) -> List[RawRecord]:
        with self._session() as db:
            rows = db.execute(
                select(SalesOrder)
                .where(SalesOrder.customer_id == counterparty_id)
                .order_by(SalesOrder.order_date, SalesOrder.id)
            ).scalars().all()
            return [_columns(r, "id", "order_number", "order_date", "grand_total", "status") for r in rows]

    def fetch_customer_payments(self, counterparty_id: str) -> List[RawRecord]:
        with self._session() as db:
            rows = db.execute(
                select(CustomerPayment)
                .where(CustomerPayment.customer_id == counterparty_id)
                .order_by(CustomerPayment.payment_date, CustomerPayment.id)
            ).scalars().all()
            return [
                _columns(r, "id", "payment_date", "amount", "payment_method", "reference_number")
                for r in rows
            ]

    def fetch_returns(self, counterparty_id: str) -> List[RawRecord]:
        with self._session() as db:
            rows = db.execute(
                select(SalesReturn)
                .where(SalesReturn.customer_id == counterparty_id)
                .order_by(SalesReturn.return_date, SalesReturn.id)
            ).scalars().all()
            return [_columns(r, "id", "return_number", "return_date", "amount", "status") for r in rows]

    def fetch_refunds(self, counterparty_id: str) -> List[RawRecord]:
        with self._session() as db:
            rows = db.execute(
                select(Refund)
                .where(Refund.customer_id == counterparty_id)
                .order_by(Refund.refund_date, Refund.id)
            ).scalars().all()
            return [
                _columns(r, "id", "refund_date", "amount", "payment_method", "reference_number", "status")
                for r in rows
            ]

    # -------------------------
    # Suppliers
    # -------------------------

    def fetch_bills(self, counterparty_id: str) -> List[RawRecord]:
        with self._session() as db:
            rows = db.execute(
                select(VendorBill)
                .where(VendorBill.supplier_id == counterparty_id)
                .order_by(VendorBill.bill_date, VendorBill.id)
            ).scalars().all()
            return [_columns(r, "id", "bill_number", "bill_date", "total_amount", "status") for r in rows]

    def fetch_vendor_payments(self, counterparty_id: str) -> List[RawRecord]:
        with self._session() as db:
            rows = db.execute(
                select(VendorPayment, VendorBill.bill_number)
                .outerjoin(VendorBill, VendorBill.id == VendorPayment.vendor_bill_id)
                .where(VendorPayment.supplier_id == counterparty_id)
                .order_by(VendorPayment.payment_date, VendorPayment.id)
            ).all()
            out: List[RawRecord] = []
            for payment, bill_number in rows:
                rec = _columns(payment, "id", "payment_date", "amount_paid", "payment_method", "reference_number")
                out.append({**rec, "bill_number": bill_number})
            return out

    # -------------------------
    # Employees
    # -------------------------

    def fetch_payroll_lines(self, employee_id: str) -> List[RawRecord]:
        with self._session() as db:
            rows = db.execute(
                select(PayrollLine)
                .where(PayrollLine.employee_id == employee_id)
                .order_by(PayrollLine.pay_date, PayrollLine.id)
            ).scalars().all()
            return [
                _columns(r, "id", "payment_type", "pay_date", "amount", "period", "description", "status")
                for r in rows
            ]

    def fetch_employee_salary(self, employee_id: str) -> Optional[Decimal]:
        with self._session() as db:
            salary = db.execute(
                select(Employee.monthly_salary).where(Employee.id == employee_id)
            ).scalar_one_or_none()
            return Decimal(salary) if salary is not None else None

    # -------------------------
    # Finance
    # -------------------------

    def fetch_emi_plan_catalog(self) -> Sequence[EMIPlan]:
        with self._session() as db:
            rows = db.execute(
                select(EMIPlanRow)
                .where(EMIPlanRow.is_active.is_(True))
                .order_by(EMIPlanRow.term_months, EMIPlanRow.code)
            ).scalars().all()
            if not rows:
                return DEFAULT_PLAN_CATALOG
            return tuple(
                EMIPlan(
                    code=r.code,
                    name=r.name,
                    term_months=r.term_months,
                    annual_interest_rate_percent=Decimal(r.annual_interest_rate_percent),
                    processing_fee=Decimal(r.processing_fee),
                    min_finance_amount=Decimal(r.min_finance_amount),
                    max_finance_amount=Decimal(r.max_finance_amount),
                    down_payment_months=r.down_payment_months,
                    service_charge_percent=Decimal(r.service_charge_percent),
                    non_card_charge=Decimal(r.non_card_charge),
                )
                for r in rows
            )
