"""
Recon - EMI amortization calculator.

Responsibility:
- Turn (plan, order amount, down payment) into a reducing-balance installment
  quote, or a typed ineligibility result when the financed amount falls
  outside the plan bracket.
- Add the lender charges on top: a service charge on the order amount and a
  flat charge for customers without the lender card.
- Split the bill when the lender approved less than the financed amount; the
  remainder is paid by other methods.

Design notes:
- Pure and stateless; the plan catalog is passed in.
- Ineligibility is an expected business outcome and comes back as a value.
  Caller mistakes (negative down payment, non-positive order) raise ValueError.
- The installment is the single rounded quantity. Totals are exact products
  of it, so installment * n == total_payable == principal + total_interest.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Iterable, List, Optional, Tuple, Union

from .money import CENT, ZERO, quantize_money, to_money

DEFAULT_PLAN_THRESHOLD = Decimal("50000")


@dataclass(frozen=True)
class EMIPlan:
    code: str
    name: str
    term_months: int
    annual_interest_rate_percent: Decimal
    processing_fee: Decimal
    min_finance_amount: Decimal
    max_finance_amount: Decimal
    down_payment_months: int = 0
    service_charge_percent: Decimal = ZERO
    non_card_charge: Decimal = ZERO


@dataclass(frozen=True)
class EMIQuote:
    plan_code: str
    order_amount: Decimal
    finance_amount: Decimal
    down_payment: Decimal
    monthly_installment: Decimal
    total_payable: Decimal
    total_interest: Decimal
    processing_fee: Decimal
    term_months: int
    service_charge: Decimal = ZERO
    additional_charges: Decimal = ZERO
    has_card: bool = False
    approved_amount: Optional[Decimal] = None
    plan_financed_amount: Optional[Decimal] = None
    split_other_amount: Decimal = ZERO

    eligible = True

    @property
    def is_split(self) -> bool:
        return self.split_other_amount > ZERO

    @property
    def grand_total(self) -> Decimal:
        return (
            self.down_payment
            + self.total_payable
            + self.processing_fee
            + self.service_charge
            + self.additional_charges
            + self.split_other_amount
        )


@dataclass(frozen=True)
class IneligibleFinance:
    plan_code: str
    bound: str  # "min" | "max" | "approved"
    limit: Decimal
    finance_amount: Decimal

    eligible = False

    @property
    def message(self) -> str:
        if self.bound == "min":
            return f"finance amount {self.finance_amount} is below the plan minimum {self.limit}"
        if self.bound == "approved":
            return f"approved amount {self.finance_amount} is below the plan minimum {self.limit}"
        return f"finance amount {self.finance_amount} is above the plan maximum {self.limit}"


QuoteResult = Union[EMIQuote, IneligibleFinance]


DEFAULT_PLAN_CATALOG: Tuple[EMIPlan, ...] = (
    EMIPlan(
        code="6/0",
        name="6 Months / 0 Down Payment",
        term_months=6,
        annual_interest_rate_percent=Decimal("0"),
        processing_fee=Decimal("768"),
        min_finance_amount=Decimal("10000"),
        max_finance_amount=Decimal("500000"),
        down_payment_months=0,
        service_charge_percent=Decimal("8"),
        non_card_charge=Decimal("530"),
    ),
    EMIPlan(
        code="10/2",
        name="10 Months / 2 Months Advance",
        term_months=10,
        annual_interest_rate_percent=Decimal("0"),
        processing_fee=Decimal("768"),
        min_finance_amount=Decimal("10000"),
        max_finance_amount=Decimal("500000"),
        down_payment_months=2,
        service_charge_percent=Decimal("8"),
        non_card_charge=Decimal("530"),
    ),
)


def _raw_installment(principal: Decimal, annual_rate_percent: Decimal, n: int) -> Decimal:
    if annual_rate_percent == ZERO:
        return principal / Decimal(n)
    r = annual_rate_percent / Decimal(100) / Decimal(12)
    growth = (Decimal(1) + r) ** n
    return principal * r * growth / (growth - Decimal(1))


def installment(
    principal: Decimal,
    annual_rate_percent: Decimal,
    term_months: int,
    *,
    minor_unit: Decimal = CENT,
) -> Decimal:
    """
    installment = P * r * (1+r)^n / ((1+r)^n - 1), with r the monthly rate.
    A zero rate uses the limit form P / n.
    """
    if term_months <= 0:
        raise ValueError(f"term_months must be positive, got {term_months}")
    if annual_rate_percent < ZERO:
        raise ValueError(f"annual rate must not be negative, got {annual_rate_percent}")
    with localcontext() as ctx:
        ctx.prec = 40
        raw = _raw_installment(principal, annual_rate_percent, term_months)
    return quantize_money(raw, minor_unit)


def service_charge(plan: EMIPlan, order_amount, *, minor_unit: Decimal = CENT) -> Decimal:
    return quantize_money(to_money(order_amount) * plan.service_charge_percent / Decimal(100), minor_unit)


def quote(
    plan: EMIPlan,
    order_amount,
    down_payment=ZERO,
    *,
    has_card: bool = False,
    approved_amount=None,
    minor_unit: Decimal = CENT,
) -> QuoteResult:
    """
    finance_amount = order - down is checked against the plan bracket. When the
    lender approved less than that, the plan finances the approved amount and
    split_other_amount is collected by other methods. The service charge and
    the no-card charge are paid on top and never financed.
    """
    order = to_money(order_amount)
    down = to_money(down_payment)
    if order <= ZERO:
        raise ValueError(f"order_amount must be positive, got {order}")
    if down < ZERO:
        raise ValueError(f"down_payment must not be negative, got {down}")
    approved = None if approved_amount is None else to_money(approved_amount)
    if approved is not None and approved <= ZERO:
        raise ValueError(f"approved_amount must be positive, got {approved}")

    finance = order - down
    if finance < plan.min_finance_amount:
        return IneligibleFinance(plan.code, "min", plan.min_finance_amount, finance)
    if finance > plan.max_finance_amount:
        return IneligibleFinance(plan.code, "max", plan.max_finance_amount, finance)

    financed = finance
    if approved is not None and approved < finance:
        if approved < plan.min_finance_amount:
            return IneligibleFinance(plan.code, "approved", plan.min_finance_amount, approved)
        financed = approved

    n = plan.term_months
    emi = installment(financed, plan.annual_interest_rate_percent, n, minor_unit=minor_unit)
    total_payable = emi * n
    return EMIQuote(
        plan_code=plan.code,
        order_amount=order,
        finance_amount=finance,
        down_payment=down,
        monthly_installment=emi,
        total_payable=total_payable,
        total_interest=total_payable - financed,
        processing_fee=plan.processing_fee,
        term_months=n,
        service_charge=service_charge(plan, order, minor_unit=minor_unit),
        additional_charges=ZERO if has_card else plan.non_card_charge,
        has_card=has_card,
        approved_amount=approved,
        plan_financed_amount=financed,
        split_other_amount=finance - financed,
    )


def suggested_down_payment(plan: EMIPlan, order_amount, *, minor_unit: Decimal = CENT) -> Decimal:
    """
    Advance installments collected up front, e.g. two for a "10/2" plan.
    """
    if plan.down_payment_months <= 0:
        return ZERO
    order = to_money(order_amount)
    with localcontext() as ctx:
        ctx.prec = 40
        raw = _raw_installment(order, plan.annual_interest_rate_percent, plan.term_months)
        advance = raw * plan.down_payment_months
    return quantize_money(advance, minor_unit)


def default_plan_code(order_amount) -> str:
    # Billing falls back to the zero-down plan for smaller tickets.
    return "6/0" if to_money(order_amount) < DEFAULT_PLAN_THRESHOLD else "10/2"


def find_plan(catalog: Iterable[EMIPlan], code: str) -> Optional[EMIPlan]:
    key = (code or "").strip()
    for plan in catalog:
        if plan.code == key:
            return plan
    return None


def quote_catalog(
    catalog: Iterable[EMIPlan],
    order_amount,
    down_payment=None,
    *,
    has_card: bool = False,
    approved_amount=None,
    minor_unit: Decimal = CENT,
) -> List[Tuple[EMIPlan, QuoteResult]]:
    """
    Quote every plan. Without an explicit down payment each plan uses its own
    suggested advance.
    """
    out: List[Tuple[EMIPlan, QuoteResult]] = []
    for plan in catalog:
        down = (
            suggested_down_payment(plan, order_amount, minor_unit=minor_unit)
            if down_payment is None
            else down_payment
        )
        result = quote(
            plan,
            order_amount,
            down,
            has_card=has_card,
            approved_amount=approved_amount,
            minor_unit=minor_unit,
        )
        out.append((plan, result))
    return out


def eligible_plans(
    catalog: Iterable[EMIPlan],
    order_amount,
    down_payment=None,
    *,
    approved_amount=None,
    minor_unit: Decimal = CENT,
) -> List[EMIPlan]:
    return [
        plan
        for plan, result in quote_catalog(
            catalog,
            order_amount,
            down_payment,
            approved_amount=approved_amount,
            minor_unit=minor_unit,
        )
        if result.eligible
    ]
