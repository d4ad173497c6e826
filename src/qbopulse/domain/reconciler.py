"""Last-modified timestamp reconciliation for parsed report lines.

P&L detail reports carry no transaction ids, so parsed lines are matched back
to QuickBooks entities on ``{date}-{absolute amount}``. That key collides for
unrelated transactions sharing a date and amount; the match is best effort
and a missing timestamp is never an error.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from qbopulse.domain.errors import ReportFetchError
from qbopulse.qbo.base import ReportSource
from qbopulse.utils.amount_parser import parse_amount_or_zero
from qbopulse.utils.date_parser import parse_timestamp

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = (
    "Purchase",
    "SalesReceipt",
    "Invoice",
    "Payment",
    "Bill",
    "BillPayment",
    "JournalEntry",
    "Deposit",
    "RefundReceipt",
    "CreditMemo",
    "VendorCredit",
)


def amount_key(txn_date: str, amount: Decimal | float | int) -> str:
    """Key used to match a report line to fetched transaction metadata."""
    return f"{txn_date}-{abs(Decimal(str(amount))):.2f}"


def identity_key(txn_type: str, txn_id: str) -> str:
    """Exact entity key, ``{type}-{id}``."""
    return f"{txn_type}-{txn_id}"


@dataclass(frozen=True)
class TransactionMetadata:
    """The fields of a QBO transaction entity the reconciler needs."""

    txn_type: str
    id: str
    date: str
    total_amount: Decimal
    line_amounts: tuple[Decimal, ...] = ()
    last_updated: Optional[datetime] = None

    @classmethod
    def from_entity(cls, txn_type: str, raw: dict) -> "TransactionMetadata":
        """Build metadata from a QBO query response entity."""
        lines = raw.get("Line") or []
        return cls(
            txn_type=txn_type,
            id=str(raw.get("Id", "")),
            date=raw.get("TxnDate", "") or "",
            total_amount=parse_amount_or_zero(raw.get("TotalAmt")),
            line_amounts=tuple(
                parse_amount_or_zero(line.get("Amount")) for line in lines if isinstance(line, dict)
            ),
            last_updated=parse_timestamp((raw.get("MetaData") or {}).get("LastUpdatedTime")),
        )


class ReconciliationMap:
    """Read-only mapping of composite keys to last-modified timestamps."""

    def __init__(self, entries: Optional[dict[str, datetime]] = None):
        self._entries = dict(entries or {})

    @classmethod
    def build(cls, transactions: Iterable[TransactionMetadata]) -> "ReconciliationMap":
        """Index transactions under identity, total and line keys.

        Identity and total keys take the most recently seen timestamp; a line
        key is only added if no earlier transaction claimed it.
        """
        entries: dict[str, datetime] = {}
        for txn in transactions:
            if txn.last_updated is None:
                continue
            entries[identity_key(txn.txn_type, txn.id)] = txn.last_updated
            entries[amount_key(txn.date, txn.total_amount)] = txn.last_updated
            for line_amount in txn.line_amounts:
                entries.setdefault(amount_key(txn.date, line_amount), txn.last_updated)
        return cls(entries)

    def lookup(self, txn_date: str | date, amount: Decimal | float | int) -> Optional[datetime]:
        """Return the timestamp for a report line, or None when unmatched."""
        if isinstance(txn_date, date):
            txn_date = txn_date.isoformat()
        return self._entries.get(amount_key(txn_date, amount))

    def identity(self, txn_type: str, txn_id: str) -> Optional[datetime]:
        """Return the timestamp recorded under the exact entity key."""
        return self._entries.get(identity_key(txn_type, txn_id))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


def build_reconciliation_map(
    source: ReportSource,
    since: date,
    txn_types: Iterable[str] = TRANSACTION_TYPES,
) -> ReconciliationMap:
    """Fetch transaction metadata for every type and build the lookup.

    A failure for one transaction type is logged and that type is skipped;
    the resulting map is partial rather than absent.
    """
    metadata: list[TransactionMetadata] = []
    for txn_type in txn_types:
        try:
            entities = source.fetch_transactions(txn_type, since)
        except ReportFetchError as e:
            logger.warning("Skipping %s: %s", txn_type, e)
            continue
        metadata.extend(TransactionMetadata.from_entity(txn_type, raw) for raw in entities)
        logger.info("Fetched %d %s transactions", len(entities), txn_type)

    reconciliation = ReconciliationMap.build(metadata)
    logger.info("Built LastUpdatedTime map with %d entries", len(reconciliation))
    return reconciliation
