from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from backend.app.providers.base import LedgerProvider
from backend.app.recon.emi import (
    EMIPlan,
    QuoteResult,
    find_plan,
    quote,
    quote_catalog,
)
from backend.app.recon.money import CENT

logger = logging.getLogger(__name__)


class PlanNotFound(LookupError):
    def __init__(self, plan_code: str) -> None:
        super().__init__(f"EMI plan {plan_code!r} not found")
        self.plan_code = plan_code


def list_plans(provider: LedgerProvider) -> Sequence[EMIPlan]:
    return provider.fetch_emi_plan_catalog()


def quote_emi(
    provider: LedgerProvider,
    plan_code: str,
    order_amount: Decimal,
    down_payment: Decimal,
    *,
    has_card: bool = False,
    approved_amount: Optional[Decimal] = None,
    minor_unit: Decimal = CENT,
) -> Tuple[EMIPlan, QuoteResult]:
    plan = find_plan(provider.fetch_emi_plan_catalog(), plan_code)
    if plan is None:
        raise PlanNotFound(plan_code)
    result = quote(
        plan,
        order_amount,
        down_payment,
        has_card=has_card,
        approved_amount=approved_amount,
        minor_unit=minor_unit,
    )
    if not result.eligible:
        logger.info("EMI quote ineligible for plan %s: %s", plan.code, result.message)
    elif result.is_split:
        logger.info(
            "EMI quote for plan %s split: %s financed, %s by other methods",
            plan.code,
            result.plan_financed_amount,
            result.split_other_amount,
        )
    return plan, result


def list_emi_options(
    provider: LedgerProvider,
    order_amount: Decimal,
    down_payment: Optional[Decimal] = None,
    *,
    has_card: bool = False,
    approved_amount: Optional[Decimal] = None,
    minor_unit: Decimal = CENT,
) -> List[Tuple[EMIPlan, QuoteResult]]:
    return quote_catalog(
        provider.fetch_emi_plan_catalog(),
        order_amount,
        down_payment,
        has_card=has_card,
        approved_amount=approved_amount,
        minor_unit=minor_unit,
    )
