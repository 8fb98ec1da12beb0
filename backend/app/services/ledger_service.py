from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from functools import partial
from typing import List, Optional, Tuple

from backend.app.providers.base import LedgerProvider
from backend.app.recon.aggregate import period_totals, salary_breakdown, summarize
from backend.app.recon.ledger import accumulate, check_ledger_integrity, policy_for, window
from backend.app.recon.money import ZERO
from backend.app.recon.normalize import opening_marker
from backend.app.recon.sequence import sequence
from backend.app.recon.sources import call_with_deadline, collect, sources_for
from backend.app.recon.types import (
    CounterpartyType,
    LedgerSummary,
    OpeningBalance,
    PeriodTotals,
    SalaryPeriodBreakdown,
    SourceFailure,
    Transaction,
    as_utc,
)

logger = logging.getLogger(__name__)

OPENING_LOOKUP = "opening_balance"
SALARY_LOOKUP = "employee_salary"


class CounterpartyNotFound(LookupError):
    def __init__(self, counterparty_type: CounterpartyType, counterparty_id: str) -> None:
        super().__init__(f"{counterparty_type.value} {counterparty_id} not found")
        self.counterparty_type = counterparty_type
        self.counterparty_id = counterparty_id


@dataclass(frozen=True)
class LedgerView:
    """
    Derived, read-only ledger for one counter-party. Rebuilt on every fetch.
    """
    counterparty_id: str
    counterparty_type: CounterpartyType
    as_of: datetime
    opening_balance: Decimal
    brought_forward: Decimal
    summary: LedgerSummary
    transactions: List[Transaction]
    current_period: PeriodTotals
    previous_period: PeriodTotals
    salary_breakdown: Optional[SalaryPeriodBreakdown] = None
    failures: List[SourceFailure] = field(default_factory=list)
    skipped_records: int = 0

    @property
    def incomplete(self) -> bool:
        return bool(self.failures)


def _range_bounds(
    start: Optional[date],
    end: Optional[date],
) -> Tuple[Optional[datetime], Optional[datetime]]:
    start_dt = as_utc(start) if start is not None else None
    end_dt = None
    if end is not None:
        end_dt = end if isinstance(end, datetime) else datetime.combine(end, time.max, tzinfo=timezone.utc)
        end_dt = as_utc(end_dt)
    return start_dt, end_dt


def get_ledger(
    provider: LedgerProvider,
    counterparty_id: str,
    counterparty_type: CounterpartyType | str,
    *,
    now: datetime,
    start: Optional[date] = None,
    end: Optional[date] = None,
    timeout: Optional[float] = None,
    max_workers: int = 4,
) -> LedgerView:
    """
    normalize -> sequence -> accumulate -> window -> aggregate.

    Source failures never abort the fetch; they come back in `failures` and
    flip `incomplete`. Balances are always computed over the full history, a
    date range only picks which rows are shown.
    """
    ctype = CounterpartyType(counterparty_type)
    exists = call_with_deadline(
        "counterparty_exists",
        provider.counterparty_exists,
        counterparty_id,
        ctype,
        timeout=timeout,
    )
    if not exists:
        raise CounterpartyNotFound(ctype, counterparty_id)

    return _build_view(
        provider,
        counterparty_id,
        ctype,
        now=as_utc(now),
        start=start,
        end=end,
        timeout=timeout,
        max_workers=max_workers,
    )


def _build_view(
    provider: LedgerProvider,
    counterparty_id: str,
    ctype: CounterpartyType,
    *,
    now: datetime,
    start: Optional[date],
    end: Optional[date],
    timeout: Optional[float],
    max_workers: int,
) -> LedgerView:
    lookups = {OPENING_LOOKUP: partial(provider.fetch_opening_balance, counterparty_id, ctype)}
    if ctype == CounterpartyType.EMPLOYEE:
        lookups[SALARY_LOOKUP] = partial(provider.fetch_employee_salary, counterparty_id)

    collected = collect(
        sources_for(ctype, provider),
        counterparty_id,
        lookups=lookups,
        timeout=timeout,
        max_workers=max_workers,
    )
    failures: List[SourceFailure] = list(collected.failures)
    opening = collected.lookups.get(OPENING_LOOKUP) or OpeningBalance()

    ordered = sequence(collected.transactions)
    marker = opening_marker(counterparty_id, opening, ordered[0].date if ordered else now)
    if marker is not None:
        ordered = sequence([marker, *ordered])

    policy = policy_for(ctype)
    rows = accumulate(ordered, policy, opening.amount)
    check_ledger_integrity(rows, policy, opening=opening.amount)

    start_dt, end_dt = _range_bounds(start, end)
    brought_forward, shown = window(rows, start_dt, end_dt, opening=opening.amount)
    current, previous = period_totals(rows, now)

    # A failed salary lookup gives no breakdown; no salary on record reads as zero.
    breakdown = None
    if ctype == CounterpartyType.EMPLOYEE and SALARY_LOOKUP in collected.lookups:
        salary = collected.lookups[SALARY_LOOKUP]
        breakdown = salary_breakdown(rows, ZERO if salary is None else salary, now)

    view = LedgerView(
        counterparty_id=counterparty_id,
        counterparty_type=ctype,
        as_of=now,
        opening_balance=opening.amount,
        brought_forward=brought_forward,
        summary=summarize(shown, policy, brought_forward),
        transactions=shown,
        current_period=current,
        previous_period=previous,
        salary_breakdown=breakdown,
        failures=failures,
        skipped_records=collected.skipped_records,
    )
    logger.info(
        "Ledger built for %s %s: rows=%d skipped=%d incomplete=%s",
        ctype.value,
        counterparty_id,
        len(shown),
        view.skipped_records,
        view.incomplete,
    )
    return view


# -------------------------
# Ledger list
# -------------------------

LIST_ORDER: Tuple[CounterpartyType, ...] = (
    CounterpartyType.CUSTOMER,
    CounterpartyType.SUPPLIER,
    CounterpartyType.EMPLOYEE,
)


@dataclass(frozen=True)
class LedgerListing:
    counterparty_id: str
    counterparty_type: CounterpartyType
    name: str
    total_debit: Decimal
    total_credit: Decimal
    balance_due: Decimal
    transaction_count: int
    last_transaction_date: Optional[datetime]
    incomplete: bool


@dataclass(frozen=True)
class LedgerPage:
    items: List[LedgerListing]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def has_more(self) -> bool:
        return self.page * self.limit < self.total


def _listing(view: LedgerView, name: str) -> LedgerListing:
    moved = [t for t in view.transactions if not t.is_opening]
    return LedgerListing(
        counterparty_id=view.counterparty_id,
        counterparty_type=view.counterparty_type,
        name=name,
        total_debit=view.summary.total_debit,
        total_credit=view.summary.total_credit,
        balance_due=view.summary.net_balance,
        transaction_count=view.summary.transaction_count,
        last_transaction_date=moved[-1].date if moved else None,
        incomplete=view.incomplete,
    )


def _is_zero(listing: LedgerListing) -> bool:
    # Settled parties with activity stay listed; only untouched zero ledgers hide.
    return listing.balance_due == ZERO and listing.total_debit == ZERO and listing.total_credit == ZERO


def list_ledgers(
    provider: LedgerProvider,
    counterparty_type: Optional[CounterpartyType | str] = None,
    *,
    now: datetime,
    search: Optional[str] = None,
    hide_zero_balances: bool = False,
    page: int = 1,
    limit: int = 50,
    timeout: Optional[float] = None,
    max_workers: int = 4,
) -> LedgerPage:
    """
    One summary line per counter-party, each built from its full ledger.

    Without a type every kind of counter-party is listed, customers first.
    The zero-balance filter runs before pagination, so total counts only the
    parties that are shown.
    """
    if page < 1:
        raise ValueError(f"page must be at least 1, got {page}")
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    types = LIST_ORDER if counterparty_type is None else (CounterpartyType(counterparty_type),)
    now = as_utc(now)

    listings: List[LedgerListing] = []
    for ctype in types:
        for party in provider.list_counterparties(ctype, search):
            view = _build_view(
                provider,
                str(party["id"]),
                ctype,
                now=now,
                start=None,
                end=None,
                timeout=timeout,
                max_workers=max_workers,
            )
            listings.append(_listing(view, party.get("name") or ""))

    if hide_zero_balances:
        listings = [item for item in listings if not _is_zero(item)]

    offset = (page - 1) * limit
    result = LedgerPage(items=listings[offset:offset + limit], page=page, limit=limit, total=len(listings))
    logger.info(
        "Ledger list built: types=%s total=%d page=%d/%d",
        ",".join(t.value for t in types),
        result.total,
        page,
        result.total_pages,
    )
    return result
