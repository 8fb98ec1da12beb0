from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db import Base


# -------------------------
# Helpers
# -------------------------

MONEY = Numeric(14, 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def uuid_str() -> str:
    return str(uuid.uuid4())


# -------------------------
# Counter-parties
# -------------------------

class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    opening_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    opening_balance_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    sales_orders = relationship(
        "SalesOrder",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Supplier(Base):
    __tablename__ = "suppliers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    opening_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    opening_balance_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    bills = relationship(
        "VendorBill",
        back_populates="supplier",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    # Read once per ledger fetch; never derived from payroll lines.
    monthly_salary: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    opening_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    opening_balance_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


# -------------------------
# Customer documents
# -------------------------
# Amount columns are nullable: legacy imports carry rows without totals, and
# the ledger must drop those rather than read them as zero.

class SalesOrder(Base):
    __tablename__ = "sales_orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order_number: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    order_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    grand_total: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)

    customer = relationship("Customer", back_populates="sales_orders")


class CustomerPayment(Base):
    __tablename__ = "customer_payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sales_order_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("sales_orders.id", ondelete="SET NULL"),
        nullable=True,
    )
    payment_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    amount: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    reference_number: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)


class SalesReturn(Base):
    __tablename__ = "sales_returns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    return_number: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    return_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    amount: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Refund(Base):
    __tablename__ = "refunds"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    refund_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    amount: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    reference_number: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)


# -------------------------
# Supplier documents
# -------------------------

class VendorBill(Base):
    __tablename__ = "vendor_bills"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    supplier_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bill_number: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    bill_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    total_amount: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    # Kept in sync by billing; the ledger reads vendor_payments instead.
    paid_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)

    supplier = relationship("Supplier", back_populates="bills")


class VendorPayment(Base):
    __tablename__ = "vendor_payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    supplier_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    vendor_bill_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("vendor_bills.id", ondelete="SET NULL"),
        nullable=True,
    )
    payment_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    amount_paid: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    reference_number: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    bill = relationship("VendorBill")


# -------------------------
# Payroll
# -------------------------

class PayrollLine(Base):
    __tablename__ = "payroll_lines"
    __table_args__ = (
        Index("ix_payroll_lines_employee_pay_date", "employee_id", "pay_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    employee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    payment_type: Mapped[str] = mapped_column(String(32), nullable=False)  # salary|overtime|incentive
    pay_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    amount: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    period: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)  # YYYY-MM
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="paid", nullable=False)


# -------------------------
# Finance catalog
# -------------------------

class EMIPlanRow(Base):
    __tablename__ = "emi_plans"

    code: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False)
    annual_interest_rate_percent: Mapped[Decimal] = mapped_column(Numeric(7, 4), default=Decimal("0"), nullable=False)
    processing_fee: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    min_finance_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    max_finance_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    down_payment_months: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    service_charge_percent: Mapped[Decimal] = mapped_column(Numeric(7, 4), default=Decimal("0"), nullable=False)
    non_card_charge: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
