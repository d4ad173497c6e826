"""Domain model entities for qbopulse.

These are pure data classes representing business concepts, independent of
database schema. The persistence layer maps its ORM rows onto them, so the
parsing and projection logic never sees SQLAlchemy objects.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class Section(str, Enum):
    """P&L section a report line belongs to."""

    INCOME = "income"
    COGS = "cogs"
    EXPENSE = "expense"


class ReportKind(str, Enum):
    """Supported QuickBooks report types."""

    PROFIT_AND_LOSS_SUMMARY = "ProfitAndLoss"
    PROFIT_AND_LOSS_DETAIL = "ProfitAndLossDetail"


class AccountingMethod(str, Enum):
    """Accounting basis used when requesting reports."""

    CASH = "Cash"
    ACCRUAL = "Accrual"


class SyncState(str, Enum):
    """Backfill run status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class InsightType(str, Enum):
    """Category of a generated insight."""

    SEASONALITY = "seasonality"
    TREND = "trend"
    RECURRING = "recurring"
    WARNING = "warning"


class Severity(str, Enum):
    """Display severity of a generated insight."""

    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


class Metric(str, Enum):
    """Dashboard metrics available for period comparison."""

    GROSS_REVENUE = "gross_revenue"
    COGS = "cogs"
    GROSS_MARGIN = "gross_margin"
    FIXED_OVERHEAD = "fixed_overhead"
    NET_MARGIN = "net_margin"


class TimePeriod(str, Enum):
    """Named current-vs-comparison period pairs."""

    LAST_WEEK_VS_PREVIOUS = "last_week_vs_previous"
    LAST_MONTH_VS_PREVIOUS = "last_month_vs_previous"
    LAST_QUARTER_VS_PREVIOUS = "last_quarter_vs_previous"
    LAST_YEAR_VS_PREVIOUS = "last_year_vs_previous"
    THIS_WEEK_VS_LAST_YEAR = "this_week_vs_last_year"
    THIS_MONTH_VS_LAST_YEAR = "this_month_vs_last_year"
    THIS_QUARTER_VS_LAST_YEAR = "this_quarter_vs_last_year"
    THIS_YEAR_VS_LAST_YEAR = "this_year_vs_last_year"


@dataclass(frozen=True)
class MonthlyFinancialFact:
    """Per-company, per-month P&L aggregate."""

    company_id: str
    month: date
    revenue: Decimal
    cogs: Decimal
    expenses: Decimal
    net_profit: Decimal
    updated_at: Optional[datetime] = None

    @property
    def cash_flow(self) -> Decimal:
        """Revenue less expenses and cost of goods sold."""
        return self.revenue - self.expenses - self.cogs


@dataclass(frozen=True)
class TransactionRecord:
    """Line item parsed out of a P&L detail report."""

    company_id: str
    txn_id: str
    date: date
    amount: Decimal
    source: str
    description: str
    section: Section
    account_id: Optional[str] = None
    qbo_last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class AccountReference:
    """Chart-of-accounts snapshot entry."""

    company_id: str
    external_id: str
    name: str
    type: Optional[str] = None
    subtype: Optional[str] = None

    @property
    def lookup_name(self) -> str:
        return self.name.lower().strip()


@dataclass(frozen=True)
class SyncStatus:
    """Backfill run status record."""

    id: int
    company_id: str
    status: SyncState
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    records_synced: int = 0
    error_message: Optional[str] = None


@dataclass(frozen=True)
class MonthRange:
    """Calendar month window; ``end`` is the last day of the month."""

    start: date
    end: date

    @property
    def month(self) -> date:
        return self.start

    @property
    def key(self) -> str:
        return self.start.isoformat()


@dataclass(frozen=True)
class RecurringExpense:
    """Expense expected to repeat in a projected month."""

    description: str
    amount: Decimal
    expected_date: date


@dataclass(frozen=True)
class ProjectionPoint:
    """Observed or projected month on the projection chart."""

    month: date
    label: str
    revenue: Decimal
    cash_flow: Decimal
    net_profit: Decimal
    is_projected: bool
    seasonality_factor: Optional[float] = None
    recurring_expenses: tuple[RecurringExpense, ...] = ()


@dataclass(frozen=True)
class Insight:
    """Categorized natural-language observation."""

    type: InsightType
    message: str
    severity: Severity


@dataclass(frozen=True)
class BackfillResult:
    """Outcome of one backfill run."""

    company_id: str
    months_processed: int
    total_transactions: int
    facts: tuple[MonthlyFinancialFact, ...] = ()
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class RelatedMetric:
    """Secondary metric shown next to a comparison."""

    name: str
    value: float
    change: float


@dataclass(frozen=True)
class PeriodRange:
    """Current and comparison date ranges for a TimePeriod."""

    current_start: date
    current_end: date
    compare_start: date
    compare_end: date
    current_label: str
    compare_label: str


@dataclass(frozen=True)
class PerformanceComparison:
    """Current-vs-comparison result for one metric."""

    metric: Metric
    period: PeriodRange
    current_value: float
    compare_value: float
    change_amount: float
    change_percentage: float
    is_positive: bool
    is_neutral: bool
    related_metrics: tuple[RelatedMetric, ...] = field(default_factory=tuple)
    insight: str = ""


@dataclass(frozen=True)
class KPISummary:
    """Trailing twelve months against the twelve months before."""

    total_revenue: float
    revenue_change: float
    net_profit: float
    net_profit_change: float
