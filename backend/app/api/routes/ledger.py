# backend/app/api/routes/ledger.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.app import settings
from backend.app.api.deps import get_provider, get_source_timeout, utcnow
from backend.app.domain.adapters import ledger_page_to_contract, ledger_view_to_contract
from backend.app.domain.contracts import LedgerPageContract, LedgerViewContract
from backend.app.providers.base import LedgerProvider
from backend.app.recon.sources import SourceTimeout
from backend.app.recon.types import CounterpartyType
from backend.app.services import ledger_service

router = APIRouter(prefix="/api/ledgers", tags=["ledger"])


@router.get("", response_model=LedgerPageContract)
def list_ledgers(
    counterparty_type: Optional[CounterpartyType] = Query(None, alias="type", description="Omit to list every kind of counter-party"),
    search: Optional[str] = Query(None, description="Case-insensitive match on name"),
    hide_zero_balances: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    as_of: Optional[datetime] = Query(None, description="Reference instant; defaults to now"),
    provider: LedgerProvider = Depends(get_provider),
    timeout: float = Depends(get_source_timeout),
):
    result = ledger_service.list_ledgers(
        provider,
        counterparty_type,
        now=as_of or utcnow(),
        search=search,
        hide_zero_balances=hide_zero_balances,
        page=page,
        limit=limit,
        timeout=timeout,
        max_workers=settings.source_workers(),
    )
    return ledger_page_to_contract(result)


@router.get(
    "/{counterparty_type}/{counterparty_id}",
    response_model=LedgerViewContract,
)
def get_ledger(
    counterparty_type: CounterpartyType,
    counterparty_id: str,
    start_date: Optional[date] = Query(None, description="Inclusive start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Inclusive end date (YYYY-MM-DD)"),
    as_of: Optional[datetime] = Query(None, description="Reference instant for month buckets; defaults to now"),
    provider: LedgerProvider = Depends(get_provider),
    timeout: float = Depends(get_source_timeout),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=422, detail="start_date must be on or before end_date")

    try:
        view = ledger_service.get_ledger(
            provider,
            counterparty_id,
            counterparty_type,
            now=as_of or utcnow(),
            start=start_date,
            end=end_date,
            timeout=timeout,
            max_workers=settings.source_workers(),
        )
    except ledger_service.CounterpartyNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except SourceTimeout as e:
        raise HTTPException(status_code=504, detail=str(e)) from e

    return ledger_view_to_contract(view)
