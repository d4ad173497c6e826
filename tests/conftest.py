"""Shared pytest fixtures for qbopulse tests."""

import json
import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from qbopulse.database.factories import create_sqlite_database
from qbopulse.domain.entities import AccountingMethod, MonthlyFinancialFact, ReportKind
from qbopulse.domain.errors import ReportFetchError
from qbopulse.qbo.base import ReportSource


class FakeReportSource(ReportSource):
    """In-memory ReportSource.

    Reports are keyed by (kind, month start). Months listed in
    ``failing_summaries`` / ``failing_details`` raise ReportFetchError, as do
    transaction types listed in ``failing_types``.
    """

    def __init__(self, reports=None, transactions=None, accounts=None):
        self.reports = dict(reports or {})
        self.transactions = dict(transactions or {})
        self.accounts = list(accounts or [])
        self.failing_summaries: set[date] = set()
        self.failing_details: set[date] = set()
        self.failing_types: set[str] = set()
        self.fail_accounts = False
        self.calls: list[tuple] = []

    def fetch_report(self, kind, start_date, end_date, accounting_method=AccountingMethod.CASH):
        self.calls.append(("report", kind, start_date, end_date, accounting_method))
        failing = (
            self.failing_summaries
            if kind == ReportKind.PROFIT_AND_LOSS_SUMMARY
            else self.failing_details
        )
        if start_date in failing:
            raise ReportFetchError(f"QuickBooks API error 500 on reports/{kind.value}: boom")
        return self.reports.get((kind, start_date), {})

    def fetch_transactions(self, txn_type, since):
        self.calls.append(("transactions", txn_type, since))
        if txn_type in self.failing_types:
            raise ReportFetchError(f"QuickBooks API error 400 on query: {txn_type}")
        return self.transactions.get(txn_type, [])

    def fetch_accounts(self):
        self.calls.append(("accounts",))
        if self.fail_accounts:
            raise ReportFetchError("QuickBooks API error 401 on query: unauthorized")
        return self.accounts


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that go through the CLI
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def summary_report(fixtures_dir):
    """March 2024 ProfitAndLoss summary report."""
    return json.loads((fixtures_dir / "pnl_summary.json").read_text())


@pytest.fixture
def detail_report(fixtures_dir):
    """March 2024 ProfitAndLossDetail report."""
    return json.loads((fixtures_dir / "pnl_detail.json").read_text())


@pytest.fixture
def fake_source():
    """Empty FakeReportSource; tests fill in reports as needed."""
    return FakeReportSource()


@pytest.fixture
def make_fact():
    """Factory for MonthlyFinancialFact with a consistent net profit."""

    def _make(month, revenue, cogs=0, expenses=0, company_id="realm-1"):
        revenue = Decimal(str(revenue)).quantize(Decimal("0.01"))
        cogs = Decimal(str(cogs)).quantize(Decimal("0.01"))
        expenses = Decimal(str(expenses)).quantize(Decimal("0.01"))
        return MonthlyFinancialFact(
            company_id=company_id,
            month=month,
            revenue=revenue,
            cogs=cogs,
            expenses=expenses,
            net_profit=revenue - cogs - expenses,
        )

    return _make
