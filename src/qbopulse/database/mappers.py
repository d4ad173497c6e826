"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the parsers and projection code
only ever see domain entities.
"""

from decimal import Decimal

from qbopulse.domain import entities as domain
from qbopulse.database.models import (
    Account as ORMAccount,
    MonthlyPL as ORMMonthlyPL,
    RawTransaction as ORMRawTransaction,
    SyncStatusRecord as ORMSyncStatus,
)


def _decimal(value) -> Decimal:
    # SQLite hands Numeric back as float-backed Decimal; normalise to cents
    return Decimal(str(value if value is not None else 0)).quantize(Decimal("0.01"))


def monthly_fact_to_domain(orm_fact: ORMMonthlyPL) -> domain.MonthlyFinancialFact:
    """Convert SQLAlchemy MonthlyPL model to domain MonthlyFinancialFact entity."""
    return domain.MonthlyFinancialFact(
        company_id=orm_fact.company_id,
        month=orm_fact.month,
        revenue=_decimal(orm_fact.revenue),
        cogs=_decimal(orm_fact.cogs),
        expenses=_decimal(orm_fact.expenses),
        net_profit=_decimal(orm_fact.net_profit),
        updated_at=orm_fact.updated_at,
    )


def transaction_to_domain(orm_txn: ORMRawTransaction) -> domain.TransactionRecord:
    """Convert SQLAlchemy RawTransaction model to domain TransactionRecord entity."""
    return domain.TransactionRecord(
        company_id=orm_txn.company_id,
        txn_id=orm_txn.txn_id,
        date=orm_txn.date,
        amount=_decimal(orm_txn.amount),
        source=orm_txn.source,
        description=orm_txn.description,
        section=domain.Section(orm_txn.section),
        account_id=orm_txn.account_id,
        qbo_last_updated=orm_txn.qbo_last_updated,
    )


def transaction_to_orm(record: domain.TransactionRecord) -> ORMRawTransaction:
    """Convert domain TransactionRecord to a new SQLAlchemy RawTransaction row."""
    return ORMRawTransaction(
        company_id=record.company_id,
        txn_id=record.txn_id,
        date=record.date,
        amount=record.amount,
        source=record.source,
        description=record.description,
        section=record.section.value,
        account_id=record.account_id,
        qbo_last_updated=record.qbo_last_updated,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.AccountReference:
    """Convert SQLAlchemy Account model to domain AccountReference entity."""
    return domain.AccountReference(
        company_id=orm_account.company_id,
        external_id=orm_account.qbo_account_id,
        name=orm_account.name,
        type=orm_account.type,
        subtype=orm_account.subtype,
    )


def sync_status_to_domain(orm_status: ORMSyncStatus) -> domain.SyncStatus:
    """Convert SQLAlchemy SyncStatusRecord model to domain SyncStatus entity."""
    return domain.SyncStatus(
        id=orm_status.id,
        company_id=orm_status.company_id,
        status=domain.SyncState(orm_status.status),
        created_at=orm_status.created_at,
        started_at=orm_status.started_at,
        completed_at=orm_status.completed_at,
        records_synced=orm_status.records_synced or 0,
        error_message=orm_status.error_message,
    )
