"""QuickBooks Online access layer."""

from qbopulse.qbo.base import ReportSource
from qbopulse.qbo.client import QBOClient

__all__ = ["ReportSource", "QBOClient"]
