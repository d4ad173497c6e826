"""Detect recurring expenses from parsed report line items."""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from statistics import median
from typing import Iterable, Optional

from qbopulse.domain.entities import RecurringExpense, Section, TransactionRecord
from qbopulse.utils.date_parser import add_months, last_of_month

MIN_OCCURRENCES = 3


@dataclass(frozen=True)
class Cadence:
    """Interval band (in days) and the calendar step used to roll forward."""

    name: str
    min_days: float
    max_days: float
    months: int

    def matches(self, days: float) -> bool:
        return self.min_days <= days <= self.max_days


CADENCES = (
    Cadence("monthly", 20, 40, 1),
    Cadence("quarterly", 80, 100, 3),
    Cadence("annual", 350, 380, 12),
)


def classify_interval(days: float) -> Optional[Cadence]:
    """Return the cadence whose band contains ``days``, if any."""
    for cadence in CADENCES:
        if cadence.matches(days):
            return cadence
    return None


class RecurringExpenseDetector:
    """Find expense lines that repeat on a regular cadence."""

    def __init__(self, min_occurrences: int = MIN_OCCURRENCES):
        self.min_occurrences = min_occurrences

    def group(self, transactions: Iterable[TransactionRecord]) -> dict[tuple[str, Decimal], list[date]]:
        """Group expense and COGS dates by (description, amount)."""
        groups: dict[tuple[str, Decimal], list[date]] = {}
        for txn in transactions:
            if txn.section not in (Section.EXPENSE, Section.COGS):
                continue
            groups.setdefault((txn.description, txn.amount), []).append(txn.date)
        return groups

    def detect(
        self,
        transactions: Iterable[TransactionRecord],
        after: date,
        horizon_months: int = 12,
    ) -> list[RecurringExpense]:
        """Return expected occurrences of recurring expenses.

        Args:
            transactions: Parsed report line items
            after: Only occurrences strictly after this date are returned
            horizon_months: Number of calendar months after ``after`` to cover

        Returns:
            Expected expenses ordered by date
        """
        horizon_end = last_of_month(add_months(after, horizon_months))
        expected: list[RecurringExpense] = []

        for (description, amount), dates in self.group(transactions).items():
            dates = sorted(set(dates))
            if len(dates) < self.min_occurrences:
                continue

            intervals = [(later - earlier).days for earlier, later in zip(dates, dates[1:])]
            median_days = median(intervals)
            cadence = classify_interval(median_days)
            if cadence is None:
                continue

            # Step from the anchor, not the previous due date, so a 31st stays a 31st
            anchor = dates[-1] + timedelta(days=round(median_days))
            step = 0
            next_due = anchor
            while next_due <= after:
                step += 1
                next_due = add_months(anchor, step * cadence.months)

            while next_due <= horizon_end:
                expected.append(
                    RecurringExpense(description=description, amount=amount, expected_date=next_due)
                )
                step += 1
                next_due = add_months(anchor, step * cadence.months)

        return sorted(expected, key=lambda expense: (expense.expected_date, expense.description))
