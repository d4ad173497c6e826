"""Profit and Loss report parsing.

Two passes over the same report shape:

* summary mode reads the section totals (income, cost of sales, expenses);
* detail mode walks a ProfitAndLossDetail report and emits one
  TransactionRecord per line, classified by the section it sits under.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Mapping, Optional, Protocol

from qbopulse.domain.entities import AccountReference, MonthRange, Section, TransactionRecord
from qbopulse.domain.report_rows import (
    DataRow,
    GroupRow,
    ReportRow,
    build_report_tree,
)
from qbopulse.utils.amount_parser import parse_amount_or_zero, round2
from qbopulse.utils.date_parser import parse_report_date

DESCRIPTION_MAX_LENGTH = 500
DEFAULT_DESCRIPTION = "From P&L Report"

# Detail report column order
DATE_COL, TYPE_COL, NUM_COL, NAME_COL, MEMO_COL, SPLIT_COL, AMOUNT_COL = range(7)


@dataclass(frozen=True)
class TotalRule:
    """Maps exact lower-cased total labels onto a SummaryTotals field."""

    labels: frozenset[str]
    field: str
    only_if_zero: bool = False


# Checked in order for every Summary/Header row; the last matching row wins.
TOTAL_RULES: tuple[TotalRule, ...] = (
    TotalRule(frozenset({"total income", "total for income"}), "revenue"),
    TotalRule(frozenset({"total for cost of sales", "total cost of sales"}), "cogs"),
    TotalRule(
        frozenset({"total for cost of goods sold", "total cost of goods sold"}),
        "cogs",
        only_if_zero=True,
    ),
    TotalRule(frozenset({"total expenses", "total for expenses"}), "expenses"),
)

# Header labels containing any of these are structural, not account groups
NON_ACCOUNT_HEADER_TERMS = ("total", "income", "expense", "cost of", "gross profit", "net")


@dataclass(frozen=True)
class SummaryTotals:
    """Section totals read from a P&L summary report."""

    revenue: Decimal = Decimal("0.00")
    cogs: Decimal = Decimal("0.00")
    expenses: Decimal = Decimal("0.00")

    @property
    def net_profit(self) -> Decimal:
        return round2(self.revenue - self.cogs - self.expenses)


class TimestampLookup(Protocol):
    """Anything that can resolve a (date, amount) pair to a timestamp."""

    def lookup(self, txn_date: str, amount: Decimal): ...


def parse_summary(report: Optional[dict]) -> SummaryTotals:
    """Extract revenue, COGS and expense totals from a P&L summary report.

    Args:
        report: Raw ProfitAndLoss report JSON

    Returns:
        SummaryTotals rounded to cents; missing totals are zero
    """
    totals = {"revenue": Decimal("0"), "cogs": Decimal("0"), "expenses": Decimal("0")}

    def visit(rows: tuple[ReportRow, ...]) -> None:
        for row in rows:
            if not isinstance(row, GroupRow):
                continue
            for total_row in (row.summary, row.header):
                if total_row is not None:
                    _apply_total_rules(total_row.columns, totals)
            visit(row.rows)

    visit(build_report_tree(report))
    return SummaryTotals(
        revenue=round2(totals["revenue"]),
        cogs=round2(totals["cogs"]),
        expenses=round2(totals["expenses"]),
    )


def _apply_total_rules(columns: tuple[str, ...], totals: dict[str, Decimal]) -> None:
    if not columns:
        return
    label = columns[0].lower()
    amount = parse_amount_or_zero(columns[1] if len(columns) > 1 else None)
    for rule in TOTAL_RULES:
        if label not in rule.labels:
            continue
        if rule.only_if_zero and totals[rule.field] != 0:
            continue
        totals[rule.field] = amount


@dataclass(frozen=True)
class ParseState:
    """Section context carried down the detail report tree."""

    section: Optional[Section] = None
    parent_account: Optional[str] = None

    def enter_header(self, label: str) -> "ParseState":
        """Return the state after passing a section header."""
        lower = label.lower()
        section = self.section
        if "income" in lower and "net" not in lower and "total" not in lower:
            section = Section.INCOME
        elif "cost of sales" in lower or "cost of goods" in lower:
            section = Section.COGS
        elif "expense" in lower and "net" not in lower and "total" not in lower:
            section = Section.EXPENSE

        parent_account = self.parent_account
        if not any(term in lower for term in NON_ACCOUNT_HEADER_TERMS):
            parent_account = label

        return replace(self, section=section, parent_account=parent_account)


@dataclass(frozen=True)
class DetailLine:
    """Columns of a detail report data row that survived filtering."""

    date: str
    txn_type: str
    doc_number: str
    name: str
    memo: str
    split: str
    amount: Decimal

    @classmethod
    def from_row(cls, row: DataRow) -> Optional["DetailLine"]:
        txn_date = row.column(DATE_COL)
        txn_type = row.column(TYPE_COL)
        if not txn_date or "total" in txn_date.lower():
            return None
        if "total" in txn_type.lower():
            return None

        amount_str = row.column(AMOUNT_COL) or row.column(-2) or "0"
        amount = parse_amount_or_zero(amount_str)
        if amount == 0:
            return None

        return cls(
            date=txn_date,
            txn_type=txn_type,
            doc_number=row.column(NUM_COL),
            name=row.column(NAME_COL),
            memo=row.column(MEMO_COL),
            split=row.column(SPLIT_COL),
            amount=amount,
        )


def parse_detail(
    report: Optional[dict],
    month_range: MonthRange,
    company_id: str,
    accounts_by_name: Optional[Mapping[str, AccountReference]] = None,
    timestamps: Optional[TimestampLookup] = None,
) -> list[TransactionRecord]:
    """Extract individual line items from a P&L detail report.

    Lines are kept only while an income, cost-of-sales or expense section is
    active. Duplicates on (date, type, doc number, amount, account name) are
    dropped; the seen-set lives for this call only.

    Args:
        report: Raw ProfitAndLossDetail report JSON
        month_range: Month the report covers, used for synthetic txn ids
        company_id: Owning company
        accounts_by_name: Chart of accounts keyed by lower-cased trimmed name
        timestamps: Reconciliation lookup for last-modified times

    Returns:
        TransactionRecords in report order
    """
    accounts_by_name = accounts_by_name or {}
    transactions: list[TransactionRecord] = []
    seen_keys: set[tuple[str, str, str, str, str]] = set()

    def visit(rows: tuple[ReportRow, ...], state: ParseState) -> None:
        for row in rows:
            if isinstance(row, GroupRow):
                if row.header is not None and row.header.columns:
                    state = state.enter_header(row.header.label)
                visit(row.rows, state)
                continue

            record = _build_record(row, state)
            if record is not None:
                transactions.append(record)

    def _build_record(row: DataRow, state: ParseState) -> Optional[TransactionRecord]:
        line = DetailLine.from_row(row)
        if line is None or state.section is None:
            return None

        txn_date = parse_report_date(line.date)
        if txn_date is None:
            return None

        search_name = (state.parent_account or line.split or line.name or "").lower().strip()
        magnitude = round2(abs(line.amount))
        unique_key = (line.date, line.txn_type, line.doc_number, f"{magnitude:.2f}", search_name)
        if unique_key in seen_keys:
            return None
        seen_keys.add(unique_key)

        account = accounts_by_name.get(search_name)
        parts = [line.memo, line.name, line.split, state.parent_account]
        description = " | ".join(p for p in parts if p)[:DESCRIPTION_MAX_LENGTH]

        return TransactionRecord(
            company_id=company_id,
            txn_id=f"RPT-{month_range.key}-{len(transactions) + 1}",
            date=txn_date,
            amount=magnitude,
            source=f"PnL-{line.txn_type or 'Transaction'}",
            description=description or DEFAULT_DESCRIPTION,
            section=state.section,
            account_id=account.external_id if account else None,
            qbo_last_updated=timestamps.lookup(line.date, line.amount) if timestamps else None,
        )

    visit(build_report_tree(report), ParseState())
    return transactions
