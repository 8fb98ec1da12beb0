"""
Recon - transaction sources.

Responsibility:
- Put every provider read behind one TransactionSource shape.
- Pick the fixed source pipeline for a counter-party type.
- Run the reads concurrently with a deadline and merge what came back.

Design notes:
- A failed or timed-out source is recorded as a SourceFailure and contributes
  nothing; the other sources still make it into the ledger.
- Merge order is registration order, never completion order, so the
  sequencer's stable sort sees the same input on every run.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from .normalize import (
    MalformedRecord,
    RawRecord,
    customer_payment_to_txn,
    payroll_line_to_txn,
    refund_to_txn,
    sales_order_to_txn,
    sales_return_to_txn,
    vendor_bill_to_txn,
    vendor_payment_to_txn,
)
from .types import CounterpartyType, LedgerInvariantError, SourceFailure, Transaction

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class SourceBatch:
    transactions: List[Transaction]
    skipped: int = 0


@dataclass(frozen=True)
class Collected:
    transactions: List[Transaction] = field(default_factory=list)
    failures: List[SourceFailure] = field(default_factory=list)
    skipped_records: int = 0
    lookups: Dict[str, Any] = field(default_factory=dict)

    @property
    def incomplete(self) -> bool:
        return bool(self.failures)


class TransactionSource(Protocol):
    name: str

    def fetch(self, counterparty_id: str) -> SourceBatch:
        ...


class RecordSource:
    """
    Provider read + pure mapper = TransactionSource.

    Malformed records are dropped and logged here, one by one, so a single bad
    row never takes the rest of its source down with it.
    """

    def __init__(
        self,
        name: str,
        fetcher: Callable[[str], Iterable[RawRecord]],
        mapper: Callable[[RawRecord], Transaction],
    ) -> None:
        self.name = name
        self._fetcher = fetcher
        self._mapper = mapper

    def fetch(self, counterparty_id: str) -> SourceBatch:
        out: List[Transaction] = []
        skipped = 0
        for record in self._fetcher(counterparty_id) or []:
            try:
                out.append(self._mapper(record))
            except MalformedRecord as e:
                skipped += 1
                logger.warning("Dropping malformed %s record for %s: %s", self.name, counterparty_id, e)
        return SourceBatch(transactions=out, skipped=skipped)

    def __repr__(self) -> str:
        return f"RecordSource({self.name!r})"


def sources_for(counterparty_type: CounterpartyType, provider: Any) -> List[TransactionSource]:
    """
    The registered pipeline for each counter-party type.
    """
    ctype = CounterpartyType(counterparty_type)
    if ctype == CounterpartyType.CUSTOMER:
        return [
            RecordSource("sales_orders", provider.fetch_sales_orders, sales_order_to_txn),
            RecordSource("customer_payments", provider.fetch_customer_payments, customer_payment_to_txn),
            RecordSource("sales_returns", provider.fetch_returns, sales_return_to_txn),
            RecordSource("refunds", provider.fetch_refunds, refund_to_txn),
        ]
    if ctype == CounterpartyType.SUPPLIER:
        return [
            RecordSource("vendor_bills", provider.fetch_bills, vendor_bill_to_txn),
            RecordSource("vendor_payments", provider.fetch_vendor_payments, vendor_payment_to_txn),
        ]
    return [
        RecordSource("payroll_lines", provider.fetch_payroll_lines, payroll_line_to_txn),
    ]


class SourceTimeout(TimeoutError):
    def __init__(self, name: str, timeout: float) -> None:
        super().__init__(f"{name} did not answer within {timeout:.2f}s")
        self.name = name
        self.timeout = timeout


def call_with_deadline(name: str, fn: Callable[..., Any], *args: Any, timeout: Optional[float] = None) -> Any:
    """
    Run one provider call with a deadline. A call still running when it
    expires is abandoned and SourceTimeout is raised.
    """
    deadline = DEFAULT_TIMEOUT_SECONDS if timeout is None else float(timeout)
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ledger-lookup")
    try:
        fut = pool.submit(fn, *args)
        done, _ = wait([fut], timeout=deadline)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)
    if not done:
        logger.warning("%s timed out after %.2fs", name, deadline)
        raise SourceTimeout(name, deadline)
    return fut.result()


def _failure_reason(fut: Future) -> Optional[str]:
    if not fut.done() or fut.cancelled():
        return "timeout"
    exc = fut.exception()
    if isinstance(exc, LedgerInvariantError):
        raise exc
    if exc is not None:
        return f"error: {exc}"
    return None


def collect(
    sources: Sequence[TransactionSource],
    counterparty_id: str,
    *,
    lookups: Optional[Mapping[str, Callable[[], Any]]] = None,
    timeout: Optional[float] = None,
    max_workers: int = 4,
) -> Collected:
    """
    Read every source concurrently and merge the results.

    lookups are single-value reads (opening balance, salary) that share the
    same deadline; their results come back in Collected.lookups and a failed
    or timed-out lookup is simply absent from it.

    timeout is a deadline for the whole fan-out, not per source. Reads still
    running when it expires are abandoned: the pool is shut down without
    waiting and queued reads are cancelled.
    """
    lookups = dict(lookups or {})
    if not sources and not lookups:
        return Collected()

    deadline = DEFAULT_TIMEOUT_SECONDS if timeout is None else float(timeout)
    pool = ThreadPoolExecutor(
        max_workers=max(1, min(max_workers, len(sources) + len(lookups))),
        thread_name_prefix="ledger-source",
    )
    try:
        lookup_futures: Dict[str, Future] = {name: pool.submit(fn) for name, fn in lookups.items()}
        futures: List[Future] = [pool.submit(src.fetch, counterparty_id) for src in sources]
        wait([*lookup_futures.values(), *futures], timeout=deadline)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    transactions: List[Transaction] = []
    failures: List[SourceFailure] = []
    values: Dict[str, Any] = {}
    skipped = 0

    for name, fut in lookup_futures.items():
        reason = _failure_reason(fut)
        if reason is not None:
            logger.warning("Lookup %s failed for %s: %s", name, counterparty_id, reason)
            failures.append(SourceFailure(source=name, reason=reason))
            continue
        values[name] = fut.result()

    for src, fut in zip(sources, futures):
        reason = _failure_reason(fut)
        if reason is not None:
            logger.warning("Source %s failed for %s: %s", src.name, counterparty_id, reason)
            failures.append(SourceFailure(source=src.name, reason=reason))
            continue
        batch: SourceBatch = fut.result()
        transactions.extend(batch.transactions)
        skipped += batch.skipped

    return Collected(
        transactions=transactions,
        failures=failures,
        skipped_records=skipped,
        lookups=values,
    )
