"""Period-over-period performance comparison."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Sequence

from dateutil.relativedelta import relativedelta

from qbopulse.database.base import Database
from qbopulse.domain.entities import (
    KPISummary,
    Metric,
    MonthlyFinancialFact,
    PerformanceComparison,
    PeriodRange,
    RelatedMetric,
    TimePeriod,
)
from qbopulse.domain.errors import NotFoundError, no_performance_data
from qbopulse.domain.insights import comparison_insight, is_favorable_change, is_neutral_change
from qbopulse.utils.date_parser import add_months, first_of_month, last_of_month


def percentage_change(current: float, previous: float) -> float:
    """Percent change relative to ``|previous|``; 0 when previous is 0."""
    if previous == 0:
        return 0.0
    return (current - previous) / abs(previous) * 100


def week_start(value: date) -> date:
    """Monday of the week containing ``value``."""
    return value - timedelta(days=value.weekday())


def quarter_start(year: int, quarter: int) -> date:
    return date(year, quarter * 3 + 1, 1)


def quarter_end(year: int, quarter: int) -> date:
    return last_of_month(date(year, quarter * 3 + 3, 1))


def _month_label(value: date) -> str:
    return value.strftime("%b %Y")


def _week_label(value: date, with_year: bool = False) -> str:
    label = f"Week of {value.strftime('%b')} {value.day}"
    if with_year:
        label += f", {value.year}"
    return label


def period_ranges(period: TimePeriod, today: Optional[date] = None) -> PeriodRange:
    """Resolve a named period into current and comparison date ranges.

    "Last" periods are the most recent complete period against the one before
    it. "This" periods run to ``today`` against the same period a year earlier.
    """
    today = today or date.today()
    year = today.year
    quarter = (today.month - 1) // 3

    if period == TimePeriod.LAST_WEEK_VS_PREVIOUS:
        current_start = week_start(today - timedelta(days=7))
        compare_start = current_start - timedelta(days=7)
        return PeriodRange(
            current_start=current_start,
            current_end=current_start + timedelta(days=6),
            compare_start=compare_start,
            compare_end=compare_start + timedelta(days=6),
            current_label=_week_label(current_start),
            compare_label=_week_label(compare_start),
        )

    if period == TimePeriod.LAST_MONTH_VS_PREVIOUS:
        current_start = add_months(first_of_month(today), -1)
        compare_start = add_months(current_start, -1)
        return PeriodRange(
            current_start=current_start,
            current_end=last_of_month(current_start),
            compare_start=compare_start,
            compare_end=last_of_month(compare_start),
            current_label=_month_label(current_start),
            compare_label=_month_label(compare_start),
        )

    if period == TimePeriod.LAST_QUARTER_VS_PREVIOUS:
        last_q, last_q_year = (quarter - 1, year) if quarter > 0 else (3, year - 1)
        prev_q, prev_q_year = (last_q - 1, last_q_year) if last_q > 0 else (3, last_q_year - 1)
        return PeriodRange(
            current_start=quarter_start(last_q_year, last_q),
            current_end=quarter_end(last_q_year, last_q),
            compare_start=quarter_start(prev_q_year, prev_q),
            compare_end=quarter_end(prev_q_year, prev_q),
            current_label=f"Q{last_q + 1} {last_q_year}",
            compare_label=f"Q{prev_q + 1} {prev_q_year}",
        )

    if period == TimePeriod.LAST_YEAR_VS_PREVIOUS:
        return PeriodRange(
            current_start=date(year - 1, 1, 1),
            current_end=date(year - 1, 12, 31),
            compare_start=date(year - 2, 1, 1),
            compare_end=date(year - 2, 12, 31),
            current_label=str(year - 1),
            compare_label=str(year - 2),
        )

    if period == TimePeriod.THIS_WEEK_VS_LAST_YEAR:
        current_start = week_start(today)
        compare_start = current_start - relativedelta(years=1)
        return PeriodRange(
            current_start=current_start,
            current_end=current_start + timedelta(days=6),
            compare_start=compare_start,
            compare_end=compare_start + timedelta(days=6),
            current_label=_week_label(current_start, with_year=True),
            compare_label=_week_label(compare_start, with_year=True),
        )

    if period == TimePeriod.THIS_MONTH_VS_LAST_YEAR:
        current_start = first_of_month(today)
        compare_start = current_start - relativedelta(years=1)
        return PeriodRange(
            current_start=current_start,
            current_end=today,
            compare_start=compare_start,
            compare_end=last_of_month(compare_start),
            current_label=_month_label(current_start),
            compare_label=_month_label(compare_start),
        )

    if period == TimePeriod.THIS_QUARTER_VS_LAST_YEAR:
        return PeriodRange(
            current_start=quarter_start(year, quarter),
            current_end=today,
            compare_start=quarter_start(year - 1, quarter),
            compare_end=quarter_end(year - 1, quarter),
            current_label=f"Q{quarter + 1} {year}",
            compare_label=f"Q{quarter + 1} {year - 1}",
        )

    return PeriodRange(
        current_start=date(year, 1, 1),
        current_end=today,
        compare_start=date(year - 1, 1, 1),
        compare_end=date(year - 1, 12, 31),
        current_label=f"{year} YTD",
        compare_label=str(year - 1),
    )


def _totals(facts: Sequence[MonthlyFinancialFact]) -> tuple[float, float, float]:
    revenue = sum((fact.revenue for fact in facts), Decimal("0"))
    cogs = sum((fact.cogs for fact in facts), Decimal("0"))
    expenses = sum((fact.expenses for fact in facts), Decimal("0"))
    return float(revenue), float(cogs), float(expenses)


def calculate_metric(facts: Sequence[MonthlyFinancialFact], metric: Metric) -> float:
    """Sum a metric over the given facts."""
    revenue, cogs, expenses = _totals(facts)
    if metric == Metric.GROSS_REVENUE:
        return revenue
    if metric == Metric.COGS:
        return cogs
    if metric == Metric.GROSS_MARGIN:
        return revenue - cogs
    if metric == Metric.FIXED_OVERHEAD:
        return expenses
    return revenue - cogs - expenses


def related_metrics(
    current: Sequence[MonthlyFinancialFact],
    compare: Sequence[MonthlyFinancialFact],
    metric: Metric,
) -> tuple[RelatedMetric, ...]:
    """Two supporting metrics shown next to the main comparison."""
    if metric == Metric.GROSS_MARGIN:
        names = ((Metric.GROSS_REVENUE, "Revenue"), (Metric.COGS, "COGS"))
    elif metric == Metric.NET_MARGIN:
        names = ((Metric.GROSS_MARGIN, "Gross Margin"), (Metric.FIXED_OVERHEAD, "Fixed Overhead"))
    elif metric == Metric.GROSS_REVENUE:
        names = ((Metric.COGS, "COGS"), (Metric.GROSS_MARGIN, "Gross Margin"))
    else:
        names = ((Metric.GROSS_REVENUE, "Revenue"), (Metric.NET_MARGIN, "Net Margin"))

    related = []
    for related_metric, name in names:
        value = calculate_metric(current, related_metric)
        change = percentage_change(value, calculate_metric(compare, related_metric))
        related.append(RelatedMetric(name=name, value=value, change=change))
    return tuple(related)


class PerformanceService:
    """Service for period comparisons and headline KPIs."""

    def __init__(self, db: Database):
        """Initialize performance service.

        Args:
            db: Database instance
        """
        self.db = db

    def compare(
        self,
        company_id: str,
        period: TimePeriod,
        metric: Metric,
        today: Optional[date] = None,
    ) -> PerformanceComparison:
        """Compare a metric between a period and its comparison period.

        Raises:
            NotFoundError: If neither period has any monthly facts
        """
        ranges = period_ranges(period, today)
        current = self.db.list_monthly_facts(company_id, ranges.current_start, ranges.current_end)
        compare = self.db.list_monthly_facts(company_id, ranges.compare_start, ranges.compare_end)
        if not current and not compare:
            raise NotFoundError(no_performance_data(ranges.current_label, ranges.compare_label))

        current_value = calculate_metric(current, metric)
        compare_value = calculate_metric(compare, metric)
        change_amount = current_value - compare_value
        change_percentage = percentage_change(current_value, compare_value)
        neutral = is_neutral_change(change_percentage)
        positive = is_favorable_change(metric, change_amount, neutral)
        related = related_metrics(current, compare, metric)

        return PerformanceComparison(
            metric=metric,
            period=ranges,
            current_value=current_value,
            compare_value=compare_value,
            change_amount=change_amount,
            change_percentage=change_percentage,
            is_positive=positive,
            is_neutral=neutral,
            related_metrics=related,
            insight=comparison_insight(
                metric,
                current_value,
                compare_value,
                change_percentage,
                positive,
                neutral,
                related,
                ranges.compare_label,
            ),
        )

    def kpi_summary(self, company_id: str, today: Optional[date] = None) -> KPISummary:
        """Trailing twelve months of revenue and net profit against the prior twelve."""
        today = today or date.today()
        current_start = first_of_month(today) - relativedelta(years=1)
        previous_start = current_start - relativedelta(years=1)
        current = self.db.list_monthly_facts(company_id, current_start, today)
        previous = self.db.list_monthly_facts(
            company_id, previous_start, current_start - timedelta(days=1)
        )

        current_revenue = float(sum((fact.revenue for fact in current), Decimal("0")))
        previous_revenue = float(sum((fact.revenue for fact in previous), Decimal("0")))
        current_profit = float(sum((fact.net_profit for fact in current), Decimal("0")))
        previous_profit = float(sum((fact.net_profit for fact in previous), Decimal("0")))

        return KPISummary(
            total_revenue=current_revenue,
            revenue_change=percentage_change(current_revenue, previous_revenue),
            net_profit=current_profit,
            net_profit_change=percentage_change(current_profit, previous_profit),
        )
