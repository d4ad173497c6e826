"""Seasonal naive-growth projections over monthly facts."""

from decimal import Decimal
from typing import Iterable, Sequence

from qbopulse.domain.entities import MonthlyFinancialFact, ProjectionPoint, RecurringExpense
from qbopulse.domain.errors import ValidationError, empty_history
from qbopulse.utils.amount_parser import round2
from qbopulse.utils.date_parser import add_months, month_label

DEFAULT_GROWTH = 0.05
MIN_GROWTH = -0.30
MAX_GROWTH = 0.50
MIN_POINTS_FOR_GROWTH = 12
HORIZON_MONTHS = 12


def sort_facts(facts: Iterable[MonthlyFinancialFact]) -> list[MonthlyFinancialFact]:
    return sorted(facts, key=lambda fact: fact.month)


def clamp_growth(growth: float) -> float:
    return max(MIN_GROWTH, min(MAX_GROWTH, growth))


def half_over_half_growth(facts: Sequence[MonthlyFinancialFact]) -> float:
    """Revenue growth of the second half of the series over the first.

    Halves are split by count; 0 unless the first half has positive revenue.
    """
    middle = len(facts) // 2
    first_total = sum((fact.revenue for fact in facts[:middle]), Decimal("0"))
    second_total = sum((fact.revenue for fact in facts[middle:]), Decimal("0"))
    if first_total <= 0:
        return 0.0
    return float((second_total - first_total) / first_total)


def _mean(values: Sequence[Decimal]) -> float:
    if not values:
        return 0.0
    return float(sum(values, Decimal("0"))) / len(values)


class ProjectionEngine:
    """Project twelve months of revenue, cash flow and net profit.

    Each projected value is the historical average scaled by a monthly
    compounded growth rate and the calendar month's seasonality factor.
    There are no confidence intervals and no outlier handling.
    """

    def __init__(self, horizon: int = HORIZON_MONTHS, default_growth: float = DEFAULT_GROWTH):
        self.horizon = horizon
        self.default_growth = default_growth

    def growth_rate(self, facts: Sequence[MonthlyFinancialFact]) -> float:
        """Annual growth rate, clamped to [-0.30, 0.50]."""
        ordered = sort_facts(facts)
        if len(ordered) >= MIN_POINTS_FOR_GROWTH:
            return clamp_growth(half_over_half_growth(ordered))
        return clamp_growth(self.default_growth)

    def seasonality_factors(self, facts: Sequence[MonthlyFinancialFact]) -> dict[int, float]:
        """Map calendar month (1-12) to its average revenue over the overall average.

        Every factor is 1.0 unless the overall average is positive.
        """
        overall = _mean([fact.revenue for fact in facts])
        by_month: dict[int, list[Decimal]] = {}
        for fact in facts:
            by_month.setdefault(fact.month.month, []).append(fact.revenue)

        factors = {}
        for month in range(1, 13):
            revenues = by_month.get(month)
            if not revenues or overall <= 0:
                factors[month] = 1.0
            else:
                factors[month] = _mean(revenues) / overall
        return factors

    def historical_points(self, facts: Iterable[MonthlyFinancialFact]) -> list[ProjectionPoint]:
        """Render observed facts as chart points."""
        return [
            ProjectionPoint(
                month=fact.month,
                label=month_label(fact.month),
                revenue=fact.revenue,
                cash_flow=round2(fact.cash_flow),
                net_profit=fact.net_profit,
                is_projected=False,
            )
            for fact in sort_facts(facts)
        ]

    def project(
        self,
        facts: Sequence[MonthlyFinancialFact],
        recurring: Iterable[RecurringExpense] = (),
    ) -> list[ProjectionPoint]:
        """Project the months following the last observed one.

        Args:
            facts: Observed monthly facts, in any order
            recurring: Expected recurring expenses; each is attached to the
                projected month containing its expected date

        Returns:
            Exactly ``horizon`` projected points

        Raises:
            ValidationError: If no facts are given
        """
        ordered = sort_facts(facts)
        if not ordered:
            raise ValidationError(empty_history())

        avg_revenue = _mean([fact.revenue for fact in ordered])
        avg_cash_flow = _mean([fact.cash_flow for fact in ordered])
        avg_net_profit = _mean([fact.net_profit for fact in ordered])
        growth = self.growth_rate(ordered)
        factors = self.seasonality_factors(ordered)
        recurring = list(recurring)
        last_month = ordered[-1].month.replace(day=1)

        points = []
        for offset in range(1, self.horizon + 1):
            month = add_months(last_month, offset)
            factor = factors[month.month]
            scale = (1 + growth / 12) ** offset * factor
            expected = tuple(
                expense
                for expense in recurring
                if (expense.expected_date.year, expense.expected_date.month) == (month.year, month.month)
            )
            points.append(
                ProjectionPoint(
                    month=month,
                    label=month_label(month),
                    revenue=round2(avg_revenue * scale),
                    cash_flow=round2(avg_cash_flow * scale),
                    net_profit=round2(avg_net_profit * scale),
                    is_projected=True,
                    seasonality_factor=factor,
                    recurring_expenses=expected,
                )
            )
        return points
