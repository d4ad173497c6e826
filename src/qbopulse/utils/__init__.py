"""Utility functions for qbopulse."""

from qbopulse.utils.date_parser import parse_date
from qbopulse.utils.amount_parser import parse_amount, round2

__all__ = ["parse_date", "parse_amount", "round2"]
