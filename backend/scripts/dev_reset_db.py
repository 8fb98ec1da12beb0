from __future__ import annotations

import argparse
import os
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker



def _load_database_url(cli_url: str | None) -> str:
    if cli_url:
        return cli_url
    env_url = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URL")
    if env_url:
        return env_url
    config = Config(str(Path(__file__).resolve().parents[2] / "alembic.ini"))
    ini_url = config.get_main_option("sqlalchemy.url")
    if not ini_url:
        raise RuntimeError("No DATABASE_URL or sqlalchemy.url configured.")
    return ini_url


def _alembic_config(database_url: str) -> Config:
    config = Config(str(Path(__file__).resolve().parents[2] / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


def _reset_postgres_db(database_url: str, db_name_override: str | None) -> str:
    url = make_url(database_url)
    target_db = db_name_override or url.database
    if not target_db:
        raise RuntimeError("Postgres URL is missing a database name.")

    maintenance_db = url.set(database="postgres")
    engine = create_engine(maintenance_db, future=True, isolation_level="AUTOCOMMIT")
    try:
        with engine.connect() as conn:
            conn.execute(
                text(
                    """
                    SELECT pg_terminate_backend(pid)
                    FROM pg_stat_activity
                    WHERE datname = :db_name AND pid <> pg_backend_pid();
                    """
                ),
                {"db_name": target_db},
            )
            conn.execute(text(f"DROP DATABASE IF EXISTS \"{target_db}\""))
            conn.execute(text(f"CREATE DATABASE \"{target_db}\""))
    finally:
        engine.dispose()

    return url.set(database=target_db).render_as_string(hide_password=False)


def _reset_sqlite_db(database_url: str) -> str:
    url = make_url(database_url)
    if url.database and url.database != ":memory:":
        db_path = Path(url.database)
        if db_path.exists():
            db_path.unlink()
    return database_url


def _seed_demo_ledgers(database_url: str) -> None:
    os.environ.setdefault("DATABASE_URL", database_url)
    from backend.app.models import (
        Customer,
        CustomerPayment,
        EMIPlanRow,
        Employee,
        PayrollLine,
        SalesOrder,
        Supplier,
        VendorBill,
        VendorPayment,
    )
    from backend.app.recon.emi import DEFAULT_PLAN_CATALOG

    engine = create_engine(database_url, future=True)
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = Session()
    try:
        customer = Customer(name="Demo Customer", opening_balance=Decimal("1500.00"), opening_balance_date=date(2026, 1, 1))
        supplier = Supplier(name="Demo Supplier")
        employee = Employee(name="Demo Employee", position="Technician", monthly_salary=Decimal("30000.00"))
        session.add_all([customer, supplier, employee])
        session.flush()

        order = SalesOrder(
            customer_id=customer.id,
            order_number="SO-1001",
            order_date=datetime(2026, 2, 3, 10, 0),
            grand_total=Decimal("12000.00"),
            status="partial",
        )
        session.add(order)
        session.flush()
        session.add(
            CustomerPayment(
                customer_id=customer.id,
                sales_order_id=order.id,
                payment_date=datetime(2026, 2, 3, 10, 0),
                amount=Decimal("5000.00"),
                payment_method="cash",
            )
        )

        bill = VendorBill(
            supplier_id=supplier.id,
            bill_number="VB-77",
            bill_date=datetime(2026, 2, 5, 9, 0),
            total_amount=Decimal("8000.00"),
            paid_amount=Decimal("3000.00"),
            status="partial",
        )
        session.add(bill)
        session.flush()
        session.add(
            VendorPayment(
                supplier_id=supplier.id,
                vendor_bill_id=bill.id,
                payment_date=datetime(2026, 2, 10, 9, 0),
                amount_paid=Decimal("3000.00"),
                payment_method="bank",
            )
        )

        session.add_all(
            [
                PayrollLine(
                    employee_id=employee.id,
                    payment_type="salary",
                    pay_date=datetime(2026, 2, 28, 17, 0),
                    amount=Decimal("30000.00"),
                    period="2026-02",
                ),
                PayrollLine(
                    employee_id=employee.id,
                    payment_type="overtime",
                    pay_date=datetime(2026, 2, 28, 17, 0),
                    amount=Decimal("2500.00"),
                    period="2026-02",
                ),
            ]
        )

        for plan in DEFAULT_PLAN_CATALOG:
            session.add(
                EMIPlanRow(
                    code=plan.code,
                    name=plan.name,
                    term_months=plan.term_months,
                    annual_interest_rate_percent=plan.annual_interest_rate_percent,
                    processing_fee=plan.processing_fee,
                    min_finance_amount=plan.min_finance_amount,
                    max_finance_amount=plan.max_finance_amount,
                    down_payment_months=plan.down_payment_months,
                    service_charge_percent=plan.service_charge_percent,
                    non_card_charge=plan.non_card_charge,
                )
            )
        session.commit()
        print(f"Seeded customer={customer.id} supplier={supplier.id} employee={employee.id}")
    finally:
        session.close()
        engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Reset the development database.")
    parser.add_argument("--url", help="Override the database URL.")
    parser.add_argument("--db-name", help="Override the database name (Postgres only).")
    parser.add_argument("--yes", action="store_true", help="Confirm destructive reset.")
    parser.add_argument("--seed", action="store_true", help="Seed demo counter-parties and the EMI catalog.")
    args = parser.parse_args()

    if not args.yes:
        print("Refusing to reset database without --yes.")
        return 1

    database_url = _load_database_url(args.url)
    url = make_url(database_url)

    if url.get_backend_name().startswith("postgres"):
        database_url = _reset_postgres_db(database_url, args.db_name)
    elif url.get_backend_name().startswith("sqlite"):
        database_url = _reset_sqlite_db(database_url)
    else:
        print(f"Unsupported database backend: {url.get_backend_name()}")
        return 1

    config = _alembic_config(database_url)
    command.upgrade(config, "head")

    if args.seed:
        _seed_demo_ledgers(database_url)

    print("DONE")
    print(f"Database URL: {make_url(database_url).render_as_string(hide_password=True)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
