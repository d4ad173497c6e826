"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date, datetime

# Import entities directly to avoid circular import through domain/__init__.py
from qbopulse.domain.entities import (
    AccountReference,
    MonthlyFinancialFact,
    SyncState,
    SyncStatus,
    TransactionRecord,
)


class Database(ABC):
    """Abstract persistence sink for qbopulse.

    Write methods raise PersistenceError when the store rejects a write.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Monthly fact operations
    @abstractmethod
    def upsert_monthly_facts(self, facts: Sequence[MonthlyFinancialFact]) -> int:
        """Insert or replace facts keyed by (company_id, month). Returns count written."""
        pass

    @abstractmethod
    def list_monthly_facts(
        self,
        company_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[MonthlyFinancialFact]:
        """List a company's facts, ordered by month ascending.

        Args:
            company_id: Company to read
            start_date: Optional inclusive lower bound on month
            end_date: Optional inclusive upper bound on month
        """
        pass

    # Transaction record operations
    @abstractmethod
    def insert_transactions(self, records: Sequence[TransactionRecord]) -> int:
        """Insert transaction records. Returns count inserted."""
        pass

    @abstractmethod
    def delete_transactions(self, company_id: str) -> int:
        """Delete every transaction record for a company. Returns count deleted."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        company_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[TransactionRecord]:
        """List a company's transaction records, ordered by date ascending."""
        pass

    # Chart of accounts operations
    @abstractmethod
    def replace_accounts(self, company_id: str, accounts: Sequence[AccountReference]) -> int:
        """Replace a company's chart-of-accounts snapshot. Returns count stored."""
        pass

    @abstractmethod
    def list_accounts(self, company_id: str) -> list[AccountReference]:
        """List a company's chart-of-accounts snapshot."""
        pass

    # Sync status operations
    @abstractmethod
    def create_sync_status(self, company_id: str) -> int:
        """Create a pending sync status. Returns sync status ID."""
        pass

    @abstractmethod
    def get_latest_sync_status(
        self, company_id: str, status: Optional[SyncState] = None
    ) -> Optional[SyncStatus]:
        """Get the most recently created sync status, optionally by state."""
        pass

    @abstractmethod
    def update_sync_status(
        self,
        sync_id: int,
        status: SyncState,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
        records_synced: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Update a sync status record."""
        pass
