from __future__ import annotations

from dataclasses import asdict

from backend.app.domain.contracts import (
    EMIPlanContract,
    EMIQuoteContract,
    EMIQuoteResultContract,
    IneligibleFinanceContract,
    LedgerListingContract,
    LedgerPageContract,
    LedgerSummaryContract,
    LedgerViewContract,
    PaginationContract,
    PeriodTotalsContract,
    SalaryBreakdownContract,
    SourceFailureContract,
    TransactionContract,
)
from backend.app.recon.emi import EMIPlan, EMIQuote, QuoteResult
from backend.app.recon.money import ZERO
from backend.app.recon.types import PeriodTotals, Transaction
from backend.app.services.ledger_service import LedgerPage, LedgerView


def transaction_to_contract(txn: Transaction) -> TransactionContract:
    return TransactionContract(
        id=txn.id,
        date=txn.date,
        description=txn.description,
        reference=txn.reference,
        kind=txn.kind.value,
        debit_amount=txn.debit_amount,
        credit_amount=txn.credit_amount,
        running_balance=txn.running_balance if txn.running_balance is not None else ZERO,
        status=txn.status.value,
        source_document=txn.source_document,
        deletable=txn.deletable,
    )


def _period_to_contract(period: PeriodTotals) -> PeriodTotalsContract:
    return PeriodTotalsContract(
        year=period.year,
        month=period.month,
        totals={kind.value: amount for kind, amount in period.by_kind.items()},
    )


def ledger_view_to_contract(view: LedgerView) -> LedgerViewContract:
    breakdown = None
    if view.salary_breakdown is not None:
        breakdown = SalaryBreakdownContract(**asdict(view.salary_breakdown))
    return LedgerViewContract(
        counterparty_id=view.counterparty_id,
        counterparty_type=view.counterparty_type.value,
        as_of=view.as_of,
        opening_balance=view.opening_balance,
        brought_forward=view.brought_forward,
        summary=LedgerSummaryContract(**asdict(view.summary)),
        transactions=[transaction_to_contract(t) for t in view.transactions],
        current_period=_period_to_contract(view.current_period),
        previous_period=_period_to_contract(view.previous_period),
        salary_breakdown=breakdown,
        incomplete=view.incomplete,
        failures=[SourceFailureContract(source=f.source, reason=f.reason) for f in view.failures],
        skipped_records=view.skipped_records,
    )


def ledger_page_to_contract(result: LedgerPage) -> LedgerPageContract:
    return LedgerPageContract(
        items=[
            LedgerListingContract(**{**asdict(item), "counterparty_type": item.counterparty_type.value})
            for item in result.items
        ],
        pagination=PaginationContract(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
            has_more=result.has_more,
        ),
    )


def plan_to_contract(plan: EMIPlan) -> EMIPlanContract:
    return EMIPlanContract(**asdict(plan))


def quote_result_to_contract(plan: EMIPlan, result: QuoteResult) -> EMIQuoteResultContract:
    if isinstance(result, EMIQuote):
        return EMIQuoteResultContract(
            eligible=True,
            plan=plan_to_contract(plan),
            quote=EMIQuoteContract(
                **asdict(result),
                is_split=result.is_split,
                grand_total=result.grand_total,
            ),
        )
    return EMIQuoteResultContract(
        eligible=False,
        plan=plan_to_contract(plan),
        ineligible=IneligibleFinanceContract(**asdict(result), message=result.message),
    )
