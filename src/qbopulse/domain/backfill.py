"""Historical backfill of monthly P&L facts and report line items."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, UTC
from typing import Iterator, Optional, Sequence, TypeVar

from qbopulse.config import DEFAULT_MONTHS_BACK
from qbopulse.database.base import Database
from qbopulse.domain.entities import (
    AccountingMethod,
    AccountReference,
    BackfillResult,
    MonthlyFinancialFact,
    MonthRange,
    ReportKind,
    SyncState,
    SyncStatus,
    TransactionRecord,
)
from qbopulse.domain.errors import (
    DomainError,
    NotFoundError,
    ReportFetchError,
    ValidationError,
    month_skipped,
    no_sync_status,
)
from qbopulse.domain.reconciler import ReconciliationMap, build_reconciliation_map
from qbopulse.domain.report_parser import parse_detail, parse_summary
from qbopulse.qbo.base import ReportSource
from qbopulse.utils.amount_parser import round2
from qbopulse.utils.date_parser import add_months, first_of_month, last_of_month

logger = logging.getLogger(__name__)

FACT_BATCH_SIZE = 50
TRANSACTION_BATCH_SIZE = 500

T = TypeVar("T")


def month_ranges(months_back: int, today: Optional[date] = None) -> list[MonthRange]:
    """Return calendar-month windows ending with the current month.

    The list is most-recent-first and always has ``months_back`` entries.
    """
    if months_back < 1:
        raise ValidationError("months_back must be at least 1")

    current = first_of_month(today or date.today())
    ranges = []
    for offset in range(months_back):
        start = add_months(current, -offset)
        ranges.append(MonthRange(start=start, end=last_of_month(start)))
    return ranges


def batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    for index in range(0, len(items), size):
        yield items[index : index + size]


def account_from_entity(company_id: str, raw: dict) -> AccountReference:
    """Build an AccountReference from a QBO Account entity."""
    return AccountReference(
        company_id=company_id,
        external_id=str(raw.get("Id", "")),
        name=raw.get("Name") or "",
        type=raw.get("AccountType"),
        subtype=raw.get("AccountSubType"),
    )


@dataclass(frozen=True)
class MonthOutcome:
    """Result of parsing a single month's reports."""

    month_range: MonthRange
    fact: Optional[MonthlyFinancialFact] = None
    transactions: tuple[TransactionRecord, ...] = ()
    errors: tuple[str, ...] = ()


class BackfillService:
    """Service that rebuilds a company's monthly facts from QuickBooks reports."""

    def __init__(self, db: Database, source: ReportSource):
        """Initialize backfill service.

        Args:
            db: Database instance
            source: Report source (usually a QBOClient)
        """
        self.db = db
        self.source = source

    def request_sync(self, company_id: str) -> int:
        """Queue a backfill by creating a pending sync status. Returns its ID."""
        return self.db.create_sync_status(company_id)

    def get_sync_status(self, company_id: str) -> SyncStatus:
        """Return the latest sync status for a company.

        Raises:
            NotFoundError: If the company has never been synced
        """
        status = self.db.get_latest_sync_status(company_id)
        if status is None:
            raise NotFoundError(no_sync_status(company_id))
        return status

    def parse_month(
        self,
        company_id: str,
        month_range: MonthRange,
        accounts_by_name: dict[str, AccountReference],
        reconciliation: Optional[ReconciliationMap],
        accounting_method: AccountingMethod = AccountingMethod.CASH,
    ) -> MonthOutcome:
        """Fetch and parse both reports for one month.

        A failed summary fetch yields no fact. A failed detail fetch still
        yields the fact, just without line items.
        """
        try:
            summary_report = self.source.fetch_report(
                ReportKind.PROFIT_AND_LOSS_SUMMARY,
                month_range.start,
                month_range.end,
                accounting_method,
            )
        except ReportFetchError as e:
            logger.warning("Skipping %s: %s", month_range.key, e)
            return MonthOutcome(
                month_range=month_range,
                errors=(month_skipped(month_range.key, "summary", str(e)),),
            )

        totals = parse_summary(summary_report)
        fact = MonthlyFinancialFact(
            company_id=company_id,
            month=month_range.start,
            revenue=round2(totals.revenue),
            cogs=round2(totals.cogs),
            expenses=round2(totals.expenses),
            net_profit=totals.net_profit,
        )

        try:
            detail_report = self.source.fetch_report(
                ReportKind.PROFIT_AND_LOSS_DETAIL,
                month_range.start,
                month_range.end,
                accounting_method,
            )
        except ReportFetchError as e:
            logger.warning("No detail for %s: %s", month_range.key, e)
            return MonthOutcome(
                month_range=month_range,
                fact=fact,
                errors=(month_skipped(month_range.key, "detail", str(e)),),
            )

        transactions = parse_detail(
            detail_report,
            month_range,
            company_id,
            accounts_by_name=accounts_by_name,
            timestamps=reconciliation,
        )
        return MonthOutcome(month_range=month_range, fact=fact, transactions=tuple(transactions))

    def run(
        self,
        company_id: str,
        months_back: int = DEFAULT_MONTHS_BACK,
        accounting_method: AccountingMethod = AccountingMethod.CASH,
        today: Optional[date] = None,
    ) -> BackfillResult:
        """Run a full backfill for a company.

        Existing line items are deleted first and regenerated. Facts are
        upserted per (company, month), so re-running is idempotent.

        Args:
            company_id: Company (QBO realm) to backfill
            months_back: Number of calendar months including the current one
            accounting_method: Cash or Accrual report basis
            today: Reference date, defaults to today

        Returns:
            BackfillResult with the emitted facts and per-month errors

        Raises:
            ReportFetchError: If the chart of accounts cannot be fetched
            PersistenceError: If the database rejects a write
        """
        today = today or date.today()
        ranges = month_ranges(months_back, today)
        sync = self.db.get_latest_sync_status(company_id, SyncState.PENDING)
        sync_id = sync.id if sync is not None else None
        if sync_id is not None:
            self.db.update_sync_status(sync_id, SyncState.IN_PROGRESS, started_at=datetime.now(UTC))

        logger.info("Backfilling %d months for %s", months_back, company_id)

        try:
            deleted = self.db.delete_transactions(company_id)
            logger.info("Cleared %d existing transactions", deleted)

            accounts = [account_from_entity(company_id, raw) for raw in self.source.fetch_accounts()]
            self.db.replace_accounts(company_id, accounts)
            accounts_by_name = {account.lookup_name: account for account in accounts}

            reconciliation = build_reconciliation_map(self.source, add_months(today, -months_back))

            facts: list[MonthlyFinancialFact] = []
            errors: list[str] = []
            total_transactions = 0

            for month_range in ranges:
                outcome = self.parse_month(
                    company_id, month_range, accounts_by_name, reconciliation, accounting_method
                )
                errors.extend(outcome.errors)
                if outcome.fact is None:
                    continue

                facts.append(outcome.fact)
                for batch in batched(outcome.transactions, TRANSACTION_BATCH_SIZE):
                    total_transactions += self.db.insert_transactions(batch)
                logger.info(
                    "%s: revenue %s, %d transactions",
                    month_range.key,
                    outcome.fact.revenue,
                    len(outcome.transactions),
                )

            for batch in batched(facts, FACT_BATCH_SIZE):
                self.db.upsert_monthly_facts(batch)
        except DomainError as e:
            logger.error("Backfill for %s failed: %s", company_id, e)
            if sync_id is not None:
                self.db.update_sync_status(
                    sync_id,
                    SyncState.FAILED,
                    completed_at=datetime.now(UTC),
                    error_message=str(e),
                )
            raise

        if sync_id is not None:
            self.db.update_sync_status(
                sync_id,
                SyncState.COMPLETED,
                completed_at=datetime.now(UTC),
                records_synced=total_transactions,
                error_message="; ".join(errors) if errors else None,
            )

        logger.info(
            "Backfill for %s complete: %d months, %d transactions, %d errors",
            company_id,
            len(facts),
            total_transactions,
            len(errors),
        )
        return BackfillResult(
            company_id=company_id,
            months_processed=len(facts),
            total_transactions=total_transactions,
            facts=tuple(facts),
            errors=tuple(errors),
        )
