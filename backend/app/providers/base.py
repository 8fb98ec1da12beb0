from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Protocol, Sequence

from backend.app.recon.emi import EMIPlan
from backend.app.recon.normalize import RawRecord
from backend.app.recon.types import CounterpartyType, OpeningBalance


class LedgerProvider(Protocol):
    """
    Read-only collaborators the ledger engine pulls from.

    Implementations must be safe to call from several threads at once: the
    source reads of one ledger fetch run concurrently.
    """

    def counterparty_exists(self, counterparty_id: str, counterparty_type: CounterpartyType) -> bool:
        ...

    def list_counterparties(
        self,
        counterparty_type: CounterpartyType,
        search: Optional[str] = None,
    ) -> List[RawRecord]:
        """Records with id and name, ordered by name."""
        ...

    def fetch_opening_balance(self, counterparty_id: str, counterparty_type: CounterpartyType) -> OpeningBalance:
        ...

    # customers
    def fetch_sales_orders(self, counterparty_id: str) -> List[RawRecord]:
        ...

    def fetch_customer_payments(self, counterparty_id: str) -> List[RawRecord]:
        ...

    def fetch_returns(self, counterparty_id: str) -> List[RawRecord]:
        ...

    def fetch_refunds(self, counterparty_id: str) -> List[RawRecord]:
        ...

    # suppliers
    def fetch_bills(self, counterparty_id: str) -> List[RawRecord]:
        ...

    def fetch_vendor_payments(self, counterparty_id: str) -> List[RawRecord]:
        ...

    # employees
    def fetch_payroll_lines(self, employee_id: str) -> List[RawRecord]:
        ...

    def fetch_employee_salary(self, employee_id: str) -> Optional[Decimal]:
        ...

    # finance
    def fetch_emi_plan_catalog(self) -> Sequence[EMIPlan]:
        ...
