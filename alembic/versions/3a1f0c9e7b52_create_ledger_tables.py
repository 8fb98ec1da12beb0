"""create ledger tables

Revision ID: 3a1f0c9e7b52
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "3a1f0c9e7b52"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(14, 2)


def _opening_columns():
    return [
        sa.Column("opening_balance", MONEY, nullable=False, server_default="0"),
        sa.Column("opening_balance_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        *_opening_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        *_opening_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "employees",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("position", sa.String(length=120), nullable=True),
        sa.Column("monthly_salary", MONEY, nullable=True),
        *_opening_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "sales_orders",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("order_number", sa.String(length=60), nullable=True),
        sa.Column("order_date", sa.DateTime(), nullable=False),
        sa.Column("grand_total", MONEY, nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sales_orders_customer_id", "sales_orders", ["customer_id"], unique=False)

    op.create_table(
        "customer_payments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("sales_order_id", sa.String(length=36), nullable=True),
        sa.Column("payment_date", sa.DateTime(), nullable=False),
        sa.Column("amount", MONEY, nullable=True),
        sa.Column("payment_method", sa.String(length=40), nullable=True),
        sa.Column("reference_number", sa.String(length=80), nullable=True),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sales_order_id"], ["sales_orders.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customer_payments_customer_id", "customer_payments", ["customer_id"], unique=False)

    op.create_table(
        "sales_returns",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("return_number", sa.String(length=60), nullable=True),
        sa.Column("return_date", sa.DateTime(), nullable=False),
        sa.Column("amount", MONEY, nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sales_returns_customer_id", "sales_returns", ["customer_id"], unique=False)

    op.create_table(
        "refunds",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("refund_date", sa.DateTime(), nullable=False),
        sa.Column("amount", MONEY, nullable=True),
        sa.Column("payment_method", sa.String(length=40), nullable=True),
        sa.Column("reference_number", sa.String(length=80), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_refunds_customer_id", "refunds", ["customer_id"], unique=False)

    op.create_table(
        "vendor_bills",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("supplier_id", sa.String(length=36), nullable=False),
        sa.Column("bill_number", sa.String(length=60), nullable=True),
        sa.Column("bill_date", sa.DateTime(), nullable=False),
        sa.Column("total_amount", MONEY, nullable=True),
        sa.Column("paid_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vendor_bills_supplier_id", "vendor_bills", ["supplier_id"], unique=False)

    op.create_table(
        "vendor_payments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("supplier_id", sa.String(length=36), nullable=False),
        sa.Column("vendor_bill_id", sa.String(length=36), nullable=True),
        sa.Column("payment_date", sa.DateTime(), nullable=False),
        sa.Column("amount_paid", MONEY, nullable=True),
        sa.Column("payment_method", sa.String(length=40), nullable=True),
        sa.Column("reference_number", sa.String(length=80), nullable=True),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["vendor_bill_id"], ["vendor_bills.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vendor_payments_supplier_id", "vendor_payments", ["supplier_id"], unique=False)

    op.create_table(
        "payroll_lines",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("employee_id", sa.String(length=36), nullable=False),
        sa.Column("payment_type", sa.String(length=32), nullable=False),
        sa.Column("pay_date", sa.DateTime(), nullable=False),
        sa.Column("amount", MONEY, nullable=True),
        sa.Column("period", sa.String(length=7), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_payroll_lines_employee_pay_date",
        "payroll_lines",
        ["employee_id", "pay_date"],
        unique=False,
    )

    op.create_table(
        "emi_plans",
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("term_months", sa.Integer(), nullable=False),
        sa.Column("annual_interest_rate_percent", sa.Numeric(7, 4), nullable=False, server_default="0"),
        sa.Column("processing_fee", MONEY, nullable=False, server_default="0"),
        sa.Column("min_finance_amount", MONEY, nullable=False),
        sa.Column("max_finance_amount", MONEY, nullable=False),
        sa.Column("down_payment_months", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("code"),
    )


def downgrade() -> None:
    op.drop_table("emi_plans")
    op.drop_index("ix_payroll_lines_employee_pay_date", table_name="payroll_lines")
    op.drop_table("payroll_lines")
    op.drop_index("ix_vendor_payments_supplier_id", table_name="vendor_payments")
    op.drop_table("vendor_payments")
    op.drop_index("ix_vendor_bills_supplier_id", table_name="vendor_bills")
    op.drop_table("vendor_bills")
    op.drop_index("ix_refunds_customer_id", table_name="refunds")
    op.drop_table("refunds")
    op.drop_index("ix_sales_returns_customer_id", table_name="sales_returns")
    op.drop_table("sales_returns")
    op.drop_index("ix_customer_payments_customer_id", table_name="customer_payments")
    op.drop_table("customer_payments")
    op.drop_index("ix_sales_orders_customer_id", table_name="sales_orders")
    op.drop_table("sales_orders")
    op.drop_table("employees")
    op.drop_table("suppliers")
    op.drop_table("customers")
