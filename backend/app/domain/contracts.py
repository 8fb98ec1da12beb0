from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class TransactionContract(BaseModel):
    id: str
    date: datetime
    description: str
    reference: Optional[str] = None
    kind: str
    debit_amount: Decimal
    credit_amount: Decimal
    running_balance: Decimal
    status: str
    source_document: str
    deletable: bool


class LedgerSummaryContract(BaseModel):
    total_debit: Decimal
    total_credit: Decimal
    net_balance: Decimal
    transaction_count: int


class PeriodTotalsContract(BaseModel):
    year: int
    month: int
    totals: dict[str, Decimal]


class SalaryBreakdownContract(BaseModel):
    monthly_salary: Decimal
    total_paid: Decimal
    current_month_paid: Decimal
    current_month_pending: Decimal
    current_month_overtime: Decimal
    current_month_incentive: Decimal
    current_month_other: Decimal
    previous_month_paid: Decimal
    previous_month_pending: Decimal
    previous_month_overtime: Decimal
    previous_month_incentive: Decimal
    previous_month_other: Decimal


class SourceFailureContract(BaseModel):
    source: str
    reason: str


class LedgerViewContract(BaseModel):
    counterparty_id: str
    counterparty_type: str
    as_of: datetime
    opening_balance: Decimal
    brought_forward: Decimal
    summary: LedgerSummaryContract
    transactions: List[TransactionContract]
    current_period: PeriodTotalsContract
    previous_period: PeriodTotalsContract
    salary_breakdown: Optional[SalaryBreakdownContract] = None
    incomplete: bool
    failures: List[SourceFailureContract]
    skipped_records: int


class LedgerListingContract(BaseModel):
    counterparty_id: str
    counterparty_type: str
    name: str
    total_debit: Decimal
    total_credit: Decimal
    balance_due: Decimal
    transaction_count: int
    last_transaction_date: Optional[datetime] = None
    incomplete: bool


class PaginationContract(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool


class LedgerPageContract(BaseModel):
    items: List[LedgerListingContract]
    pagination: PaginationContract


class EMIPlanContract(BaseModel):
    code: str
    name: str
    term_months: int
    annual_interest_rate_percent: Decimal
    processing_fee: Decimal
    min_finance_amount: Decimal
    max_finance_amount: Decimal
    down_payment_months: int
    service_charge_percent: Decimal
    non_card_charge: Decimal


class EMIQuoteContract(BaseModel):
    plan_code: str
    order_amount: Decimal
    finance_amount: Decimal
    down_payment: Decimal
    monthly_installment: Decimal
    term_months: int
    total_payable: Decimal
    total_interest: Decimal
    processing_fee: Decimal
    service_charge: Decimal
    additional_charges: Decimal
    has_card: bool
    approved_amount: Optional[Decimal] = None
    plan_financed_amount: Optional[Decimal] = None
    split_other_amount: Decimal
    is_split: bool
    grand_total: Decimal


class IneligibleFinanceContract(BaseModel):
    plan_code: str
    bound: str
    limit: Decimal
    finance_amount: Decimal
    message: str


class EMIQuoteResultContract(BaseModel):
    eligible: bool
    plan: EMIPlanContract
    quote: Optional[EMIQuoteContract] = None
    ineligible: Optional[IneligibleFinanceContract] = None
