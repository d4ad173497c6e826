"""Template-based insight text for comparisons, history and projections."""

import calendar
from decimal import Decimal
from typing import Optional, Sequence

from qbopulse.domain.entities import (
    Insight,
    InsightType,
    Metric,
    MonthlyFinancialFact,
    ProjectionPoint,
    RelatedMetric,
    Severity,
)
from qbopulse.domain.projection import half_over_half_growth, sort_facts
from qbopulse.utils.amount_parser import format_thousands

NEUTRAL_BAND = 2.0
TREND_THRESHOLD = 3.0
SEASONALITY_THRESHOLD = 10.0
MIN_POINTS_FOR_TREND = 12

METRIC_NAMES = {
    Metric.GROSS_REVENUE: "revenue",
    Metric.COGS: "cost of goods sold",
    Metric.GROSS_MARGIN: "gross margin",
    Metric.FIXED_OVERHEAD: "fixed overhead",
    Metric.NET_MARGIN: "net margin",
}

COST_METRICS = (Metric.COGS, Metric.FIXED_OVERHEAD)


def is_neutral_change(change_percentage: float) -> bool:
    """True when a change is within the +/-2% stability band (inclusive)."""
    return abs(change_percentage) <= NEUTRAL_BAND


def is_favorable_change(metric: Metric, change_amount: float, neutral: bool) -> bool:
    """Whether a change reads as good news; neutral counts as favorable."""
    if neutral:
        return True
    if metric in COST_METRICS:
        return change_amount < 0
    return change_amount > 0


def _find(related: Sequence[RelatedMetric], name: str) -> Optional[RelatedMetric]:
    for item in related:
        if item.name == name:
            return item
    return None


def comparison_insight(
    metric: Metric,
    current_value: float,
    compare_value: float,
    change_percentage: float,
    is_positive: bool,
    is_neutral: bool,
    related_metrics: Sequence[RelatedMetric],
    compare_label: str,
) -> str:
    """Describe a current-vs-comparison change in a few sentences.

    Output depends only on the arguments.
    """
    name = METRIC_NAMES[metric]
    abs_change = f"{abs(change_percentage):.0f}"
    direction = "increased" if change_percentage >= 0 else "decreased"

    if is_neutral:
        return (
            f"Your {name} remained relatively stable compared to {compare_label}, "
            f"with only a {abs_change}% change. "
            "This consistency suggests stable operations. "
            "Consider whether this is aligned with your growth goals or if there are "
            "opportunities to optimize."
        )

    revenue = _find(related_metrics, "Revenue")

    if metric in COST_METRICS:
        if is_positive:
            text = f"Great news! Your {name} {direction} by {abs_change}% compared to {compare_label}. "
            if revenue is not None and revenue.change > 0:
                text += f"Even better, revenue grew by {revenue.change:.0f}% while costs dropped. "
            return text + "This efficiency improvement is boosting your bottom line. Keep monitoring what's working."

        text = f"Your {name} {direction} by {abs_change}% compared to {compare_label}. "
        if related_metrics:
            if revenue is not None and revenue.change > 0 and revenue.change > change_percentage:
                text += (
                    f"However, revenue growth ({revenue.change:.0f}%) outpaced this increase, "
                    "so margins may still be healthy. "
                )
            else:
                text += "Review your cost structure to identify areas for optimization. "
        return text + "Consider negotiating with suppliers or improving operational efficiency."

    if is_positive:
        text = (
            f"Your {name} {direction} by {abs_change}% compared to {compare_label}, "
            f"reaching {format_thousands(current_value)}. "
        )
        if metric == Metric.GROSS_MARGIN:
            cogs = _find(related_metrics, "COGS")
            if cogs is not None and revenue is not None and revenue.change > cogs.change:
                text += (
                    f"This is excellent - you're scaling efficiently with revenue "
                    f"({revenue.change:.0f}%) growing faster than COGS ({cogs.change:.0f}%). "
                )
        if metric == Metric.GROSS_REVENUE:
            text += "Strong revenue growth indicates healthy demand. "
            margin = _find(related_metrics, "Gross Margin")
            if margin is not None and margin.change > 0:
                text += "Your margins are also improving, suggesting profitable growth."
            else:
                text += "Monitor margins to ensure growth remains profitable."
        else:
            text += "Consider reinvesting this gain into growth initiatives while maintaining cost discipline."
        return text

    text = (
        f"Your {name} {direction} by {abs_change}% compared to {compare_label}, "
        f"now at {format_thousands(current_value)}. "
    )
    if metric == Metric.GROSS_REVENUE:
        text += (
            "This decline warrants attention. Review sales pipeline, marketing effectiveness, "
            "and market conditions. "
        )
    elif metric == Metric.GROSS_MARGIN:
        cogs = _find(related_metrics, "COGS")
        if cogs is not None and cogs.change > 0:
            text += (
                f"Rising COGS ({cogs.change:.0f}%) is compressing margins. "
                "Review supplier contracts and production costs. "
            )
    elif metric == Metric.NET_MARGIN:
        overhead = _find(related_metrics, "Fixed Overhead")
        if overhead is not None and overhead.change > 0:
            text += (
                f"Increased overhead ({overhead.change:.0f}%) is impacting net margin. "
                "Review fixed costs for optimization opportunities. "
            )
    return text + "Focus on cost optimization and revenue recovery strategies."


def _average(values: Sequence[Decimal]) -> float:
    return float(sum(values, Decimal("0"))) / len(values) if values else 0.0


def historical_insights(facts: Sequence[MonthlyFinancialFact]) -> list[Insight]:
    """Trend, seasonality and profitability observations over history."""
    if len(facts) < 2:
        return [
            Insight(
                type=InsightType.WARNING,
                message="More historical data needed for accurate projections",
                severity=Severity.WARNING,
            )
        ]

    ordered = sort_facts(facts)
    insights: list[Insight] = []

    if len(ordered) >= MIN_POINTS_FOR_TREND:
        growth = half_over_half_growth(ordered) * 100
        if abs(growth) > TREND_THRESHOLD:
            insights.append(
                Insight(
                    type=InsightType.TREND,
                    message=f"Trend: {'+' if growth > 0 else ''}{growth:.0f}% revenue growth over the period",
                    severity=Severity.SUCCESS if growth > 0 else Severity.WARNING,
                )
            )

    avg_revenue = _average([fact.revenue for fact in ordered])
    by_month: dict[int, list[Decimal]] = {}
    for fact in ordered:
        by_month.setdefault(fact.month.month, []).append(fact.revenue)

    high_month, high_pct = "", 0.0
    low_month, low_pct = "", 0.0
    for month, revenues in sorted(by_month.items()):
        diff = (_average(revenues) - avg_revenue) / avg_revenue * 100 if avg_revenue > 0 else 0.0
        if diff > high_pct:
            high_month, high_pct = calendar.month_name[month], diff
        if diff < low_pct:
            low_month, low_pct = calendar.month_name[month], diff

    if abs(high_pct) > SEASONALITY_THRESHOLD or abs(low_pct) > SEASONALITY_THRESHOLD:
        parts = []
        if high_month:
            parts.append(f"{high_month} typically +{round(high_pct)}%")
        if low_month:
            parts.append(f"{low_month} typically {round(low_pct)}%")
        insights.append(
            Insight(
                type=InsightType.SEASONALITY,
                message="Seasonality: " + ", ".join(parts),
                severity=Severity.INFO,
            )
        )

    avg_net_profit = _average([fact.net_profit for fact in ordered])
    margin = avg_net_profit / avg_revenue * 100 if avg_revenue > 0 else 0.0
    profitable = avg_net_profit > 0
    insights.append(
        Insight(
            type=InsightType.TREND if profitable else InsightType.WARNING,
            message=f"Average profit margin: {margin:.1f}% ({'profitable' if profitable else 'needs attention'})",
            severity=Severity.SUCCESS if profitable else Severity.WARNING,
        )
    )
    return insights


def projection_insights(points: Sequence[ProjectionPoint]) -> list[Insight]:
    """Flag the first projected month carrying a recurring expense."""
    for point in points:
        if point.is_projected and point.recurring_expenses:
            expense = point.recurring_expenses[0]
            return [
                Insight(
                    type=InsightType.RECURRING,
                    message=(
                        f"Recurring expense: {format_thousands(float(expense.amount))} "
                        f"{expense.description} due {point.month.strftime('%B %Y')}"
                    ),
                    severity=Severity.WARNING,
                )
            ]
    return []
