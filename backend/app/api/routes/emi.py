# backend/app/api/routes/emi.py
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from backend.app import settings
from backend.app.api.deps import get_provider
from backend.app.domain.adapters import plan_to_contract, quote_result_to_contract
from backend.app.domain.contracts import EMIPlanContract, EMIQuoteResultContract
from backend.app.providers.base import LedgerProvider
from backend.app.recon.emi import default_plan_code
from backend.app.services import emi_service

router = APIRouter(prefix="/api/emi", tags=["emi"])


# -------------------------
# Schemas
# -------------------------

class QuoteIn(BaseModel):
    plan_code: str = Field(..., min_length=1)
    order_amount: Decimal = Field(..., gt=0)
    down_payment: Decimal = Field(Decimal("0"), ge=0)
    has_card: bool = False
    approved_amount: Optional[Decimal] = Field(None, gt=0)


class OptionsOut(BaseModel):
    order_amount: Decimal
    default_plan_code: str
    options: List[EMIQuoteResultContract]


# -------------------------
# Endpoints
# -------------------------

@router.get("/plans", response_model=List[EMIPlanContract])
def list_plans(provider: LedgerProvider = Depends(get_provider)):
    return [plan_to_contract(p) for p in emi_service.list_plans(provider)]


@router.get("/options", response_model=OptionsOut)
def emi_options(
    order_amount: Decimal = Query(..., gt=0),
    down_payment: Optional[Decimal] = Query(None, ge=0, description="Omit to use each plan's advance months"),
    has_card: bool = Query(False, description="Customer already holds the lender card"),
    approved_amount: Optional[Decimal] = Query(None, gt=0, description="Amount the lender approved for this customer"),
    provider: LedgerProvider = Depends(get_provider),
):
    rows = emi_service.list_emi_options(
        provider,
        order_amount,
        down_payment,
        has_card=has_card,
        approved_amount=approved_amount,
        minor_unit=settings.currency_minor_unit(),
    )
    return OptionsOut(
        order_amount=order_amount,
        default_plan_code=default_plan_code(order_amount),
        options=[quote_result_to_contract(plan, result) for plan, result in rows],
    )


@router.post("/quote", response_model=EMIQuoteResultContract)
def quote(req: QuoteIn, provider: LedgerProvider = Depends(get_provider)):
    # An ineligible amount is a normal answer (200, eligible=false), not an error.
    try:
        plan, result = emi_service.quote_emi(
            provider,
            req.plan_code,
            req.order_amount,
            req.down_payment,
            has_card=req.has_card,
            approved_amount=req.approved_amount,
            minor_unit=settings.currency_minor_unit(),
        )
    except emi_service.PlanNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return quote_result_to_contract(plan, result)
