"""Abstract report source interface."""

from abc import ABC, abstractmethod
from datetime import date

from qbopulse.domain.entities import AccountingMethod, ReportKind


class ReportSource(ABC):
    """Where backfill reads QuickBooks reports and entities from.

    Every method raises ReportFetchError when the upstream request fails.
    """

    @abstractmethod
    def fetch_report(
        self,
        kind: ReportKind,
        start_date: date,
        end_date: date,
        accounting_method: AccountingMethod = AccountingMethod.CASH,
    ) -> dict:
        """Fetch a report tree covering ``start_date``..``end_date``."""
        pass

    @abstractmethod
    def fetch_transactions(self, txn_type: str, since: date) -> list[dict]:
        """Fetch all entities of ``txn_type`` dated on or after ``since``."""
        pass

    @abstractmethod
    def fetch_accounts(self) -> list[dict]:
        """Fetch the chart of accounts."""
        pass
