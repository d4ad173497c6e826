"""Date parsing and calendar-month utilities."""

from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Accepts "today", "yesterday" and absolute dates such as "2024-01-15" or
    "January 15, 2024".

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_report_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD report column value, returning None when invalid."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp such as QBO's LastUpdatedTime."""
    if not value:
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, TypeError):
        return None


def first_of_month(value: date) -> date:
    """Return the first day of the month containing ``value``."""
    return value.replace(day=1)


def last_of_month(value: date) -> date:
    """Return the last day of the month containing ``value``."""
    return first_of_month(value) + relativedelta(months=1) - timedelta(days=1)


def add_months(value: date, months: int) -> date:
    """Shift a date by whole calendar months."""
    return value + relativedelta(months=months)


def month_label(value: date) -> str:
    """Short chart label, e.g. "Mar '25"."""
    return value.strftime("%b '%y")
