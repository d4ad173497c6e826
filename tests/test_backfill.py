"""Tests for the backfill service."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import text

from qbopulse.domain.backfill import BackfillService, batched, month_ranges
from qbopulse.domain.entities import AccountingMethod, ReportKind, Section, SyncState
from qbopulse.domain.errors import NotFoundError, PersistenceError, ReportFetchError, ValidationError
from qbopulse.utils.amount_parser import round2

TODAY = date(2024, 4, 15)
MARCH = date(2024, 3, 1)
APRIL = date(2024, 4, 1)
COMPANY = "realm-1"


@pytest.fixture
def loaded_source(fake_source, summary_report, detail_report):
    """Fake source with March 2024 reports and a small chart of accounts."""
    fake_source.reports = {
        (ReportKind.PROFIT_AND_LOSS_SUMMARY, MARCH): summary_report,
        (ReportKind.PROFIT_AND_LOSS_DETAIL, MARCH): detail_report,
    }
    fake_source.accounts = [
        {"Id": "79", "Name": "Sales", "AccountType": "Income", "AccountSubType": "SalesOfProductIncome"},
        {"Id": "12", "Name": " Rent or Lease ", "AccountType": "Expense"},
    ]
    return fake_source


@pytest.fixture
def backfill_service(temp_db, loaded_source):
    return BackfillService(temp_db, loaded_source)


class TestMonthRanges:
    """Tests for calendar-month window generation."""

    def test_most_recent_first(self):
        ranges = month_ranges(3, date(2024, 1, 20))

        assert [r.start for r in ranges] == [date(2024, 1, 1), date(2023, 12, 1), date(2023, 11, 1)]
        assert [r.end for r in ranges] == [date(2024, 1, 31), date(2023, 12, 31), date(2023, 11, 30)]
        assert ranges[0].key == "2024-01-01"

    def test_leap_february(self):
        (feb,) = month_ranges(1, date(2024, 2, 29))

        assert feb.end == date(2024, 2, 29)

    def test_requires_at_least_one_month(self):
        with pytest.raises(ValidationError):
            month_ranges(0, TODAY)


def test_batched():
    assert [list(b) for b in batched([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]
    assert list(batched([], 50)) == []


class TestBackfillRun:
    """Tests for BackfillService.run."""

    def test_persists_facts_and_transactions(self, backfill_service, temp_db):
        result = backfill_service.run(COMPANY, months_back=2, today=TODAY)

        assert result.months_processed == 2
        assert result.total_transactions == 4
        assert result.errors == ()

        facts = temp_db.list_monthly_facts(COMPANY)
        assert [f.month for f in facts] == [MARCH, APRIL]
        march = facts[0]
        assert march.revenue == Decimal("12345.67")
        assert march.cogs == Decimal("2000.00")
        assert march.expenses == Decimal("4500.50")
        assert march.net_profit == Decimal("5845.17")
        assert facts[1].revenue == Decimal("0.00")

        transactions = temp_db.list_transactions(COMPANY)
        assert len(transactions) == 4
        assert {t.section for t in transactions} == {Section.INCOME, Section.COGS, Section.EXPENSE}

    def test_net_profit_invariant(self, backfill_service):
        result = backfill_service.run(COMPANY, months_back=2, today=TODAY)

        for fact in result.facts:
            assert fact.net_profit == round2(fact.revenue - fact.cogs - fact.expenses)

    def test_rerun_is_idempotent(self, backfill_service, temp_db):
        backfill_service.run(COMPANY, months_back=2, today=TODAY)
        first = [(f.month, f.revenue, f.cogs, f.expenses, f.net_profit) for f in temp_db.list_monthly_facts(COMPANY)]

        backfill_service.run(COMPANY, months_back=2, today=TODAY)
        second = [(f.month, f.revenue, f.cogs, f.expenses, f.net_profit) for f in temp_db.list_monthly_facts(COMPANY)]

        assert first == second
        assert len(temp_db.list_transactions(COMPANY)) == 4

    def test_accounts_snapshot_and_resolution(self, backfill_service, temp_db):
        backfill_service.run(COMPANY, months_back=1, today=date(2024, 3, 20))

        accounts = temp_db.list_accounts(COMPANY)
        assert {a.external_id for a in accounts} == {"79", "12"}
        account_ids = [t.account_id for t in temp_db.list_transactions(COMPANY)]
        assert sorted(a for a in account_ids if a) == ["12", "79", "79"]

    def test_reconciled_timestamps_are_stored(self, backfill_service, loaded_source, temp_db):
        loaded_source.transactions = {
            "SalesReceipt": [
                {
                    "Id": "88",
                    "TxnDate": "2024-03-12",
                    "TotalAmt": 250.0,
                    "MetaData": {"LastUpdatedTime": "2024-03-13T09:30:00-07:00"},
                }
            ]
        }

        backfill_service.run(COMPANY, months_back=2, today=TODAY)

        stamped = [t for t in temp_db.list_transactions(COMPANY) if t.qbo_last_updated is not None]
        assert len(stamped) == 1
        assert stamped[0].date == date(2024, 3, 12)

    def test_reconciliation_window_and_method(self, backfill_service, loaded_source):
        backfill_service.run(COMPANY, months_back=2, accounting_method=AccountingMethod.ACCRUAL, today=TODAY)

        since = {call[2] for call in loaded_source.calls if call[0] == "transactions"}
        assert since == {date(2024, 2, 15)}
        methods = {call[4] for call in loaded_source.calls if call[0] == "report"}
        assert methods == {AccountingMethod.ACCRUAL}

    def test_summary_failure_skips_month(self, backfill_service, loaded_source, temp_db):
        loaded_source.failing_summaries = {APRIL}

        result = backfill_service.run(COMPANY, months_back=2, today=TODAY)

        assert result.months_processed == 1
        assert [f.month for f in temp_db.list_monthly_facts(COMPANY)] == [MARCH]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("2024-04-01 summary:")

    def test_detail_failure_keeps_fact(self, backfill_service, loaded_source, temp_db):
        loaded_source.failing_details = {MARCH}

        result = backfill_service.run(COMPANY, months_back=2, today=TODAY)

        assert result.months_processed == 2
        assert result.total_transactions == 0
        assert temp_db.list_monthly_facts(COMPANY)[0].revenue == Decimal("12345.67")
        assert result.errors[0].startswith("2024-03-01 detail:")

    def test_previous_transactions_are_replaced(self, backfill_service, loaded_source, temp_db):
        backfill_service.run(COMPANY, months_back=2, today=TODAY)
        loaded_source.failing_details = {MARCH}

        backfill_service.run(COMPANY, months_back=2, today=TODAY)

        assert temp_db.list_transactions(COMPANY) == []


class TestSyncStatus:
    """Tests for the sync status lifecycle around a run."""

    def test_request_and_complete(self, backfill_service, loaded_source, temp_db):
        sync_id = backfill_service.request_sync(COMPANY)
        assert backfill_service.get_sync_status(COMPANY).status == SyncState.PENDING

        loaded_source.failing_summaries = {APRIL}
        backfill_service.run(COMPANY, months_back=2, today=TODAY)

        status = backfill_service.get_sync_status(COMPANY)
        assert status.id == sync_id
        assert status.status == SyncState.COMPLETED
        assert status.records_synced == 4
        assert status.started_at is not None
        assert status.completed_at is not None
        assert "2024-04-01 summary" in status.error_message

    def test_clean_run_has_no_error_message(self, backfill_service):
        backfill_service.request_sync(COMPANY)
        backfill_service.run(COMPANY, months_back=2, today=TODAY)

        assert backfill_service.get_sync_status(COMPANY).error_message is None

    def test_accounts_failure_marks_failed(self, backfill_service, loaded_source):
        backfill_service.request_sync(COMPANY)
        loaded_source.fail_accounts = True

        with pytest.raises(ReportFetchError):
            backfill_service.run(COMPANY, months_back=2, today=TODAY)

        status = backfill_service.get_sync_status(COMPANY)
        assert status.status == SyncState.FAILED
        assert "401" in status.error_message

    def test_persistence_failure_marks_failed(self, backfill_service, temp_db, monkeypatch):
        backfill_service.request_sync(COMPANY)

        def reject(facts):
            raise PersistenceError("Failed to upsert monthly facts: disk full")

        monkeypatch.setattr(temp_db, "upsert_monthly_facts", reject)

        with pytest.raises(PersistenceError):
            backfill_service.run(COMPANY, months_back=2, today=TODAY)

        status = backfill_service.get_sync_status(COMPANY)
        assert status.status == SyncState.FAILED
        assert "disk full" in status.error_message

    def test_missing_status(self, backfill_service):
        with pytest.raises(NotFoundError):
            backfill_service.get_sync_status("unknown")

    def test_statement_failure_marks_failed(self, backfill_service, temp_db):
        backfill_service.request_sync(COMPANY)
        session = temp_db._get_session()
        session.execute(text("DROP TABLE raw_transactions"))
        session.commit()

        with pytest.raises(PersistenceError, match="delete transactions"):
            backfill_service.run(COMPANY, months_back=2, today=TODAY)

        status = backfill_service.get_sync_status(COMPANY)
        assert status.status == SyncState.FAILED
        assert "raw_transactions" in status.error_message
        assert status.completed_at is not None
