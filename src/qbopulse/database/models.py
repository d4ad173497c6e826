"""SQLAlchemy models for qbopulse database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Date,
    Numeric,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class MonthlyPL(Base):
    """Monthly profit and loss fact."""

    __tablename__ = "monthly_pl"

    id = Column(Integer, primary_key=True)
    company_id = Column(String, nullable=False, index=True)
    month = Column(Date, nullable=False)
    revenue = Column(Numeric(14, 2), nullable=False, default=0)
    cogs = Column(Numeric(14, 2), nullable=False, default=0)
    expenses = Column(Numeric(14, 2), nullable=False, default=0)
    net_profit = Column(Numeric(14, 2), nullable=False, default=0)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # One fact per company and month
    __table_args__ = (UniqueConstraint("company_id", "month", name="uq_company_month"),)


class RawTransaction(Base):
    """Line item parsed from a P&L detail report."""

    __tablename__ = "raw_transactions"

    id = Column(Integer, primary_key=True)
    company_id = Column(String, nullable=False, index=True)
    txn_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    source = Column(String, nullable=False)
    description = Column(String(500), nullable=False)
    section = Column(String, nullable=False)
    account_id = Column(String, nullable=True)
    qbo_last_updated = Column(DateTime(timezone=True), nullable=True)


class Account(Base):
    """Chart-of-accounts snapshot row."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(String, nullable=False, index=True)
    qbo_account_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    type = Column(String, nullable=True)
    subtype = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "qbo_account_id", name="uq_company_qbo_account"),
    )


class SyncStatusRecord(Base):
    """Backfill run status."""

    __tablename__ = "sync_status"

    id = Column(Integer, primary_key=True)
    company_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    records_synced = Column(Integer, nullable=False, default=0)
    error_message = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
