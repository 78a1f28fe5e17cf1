"""SQLAlchemy models for cashbook database.

Every table carries a ``tenant_id`` column; uniqueness constraints are
scoped to the tenant.
"""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(14, 2)


def _now() -> datetime:
    return datetime.now(UTC)


class AccountingSettings(Base):
    """Per-tenant accounting settings."""

    __tablename__ = "accounting_settings"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, unique=True)
    country = Column(String, nullable=False)
    is_initialized = Column(Boolean, default=False, nullable=False)
    initialized_at = Column(DateTime, nullable=True)


class Account(Base):
    """Chart-of-accounts entry."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    parent_code = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_account_tenant_code"),)


class AccountMapping(Base):
    """Default debit/credit accounts for one kind of source record."""

    __tablename__ = "account_mappings"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    source_type = Column(String, nullable=False)
    source_category = Column(String, nullable=False)
    debit_code = Column(String, nullable=False)
    credit_code = Column(String, nullable=False)
    description = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "source_type", "source_category", name="uq_mapping_tenant_source"
        ),
    )


class TaxRate(Base):
    """VAT rate in percent."""

    __tablename__ = "tax_rates"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    rate = Column(Numeric(6, 3), nullable=False)
    tax_type = Column(String, nullable=False)
    account_code = Column(String, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)


class JournalEntry(Base):
    """Append-only double-entry journal row."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    debit_account = Column(String, nullable=False)
    credit_account = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    description = Column(String, nullable=False)
    reference_type = Column(String, nullable=False)
    reference_id = Column(String, nullable=True, index=True)
    journal_code = Column(String, nullable=False)
    journal_name = Column(String, nullable=False)
    reversal_of_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Client(Base):
    """Invoice recipient."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    vat_number = Column(String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    invoices = relationship("Invoice", back_populates="client")


class Company(Base):
    """The tenant's own company profile (invoice seller)."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    tax_id = Column(String, nullable=True)
    iban = Column(String, nullable=True)
    address = Column(String, nullable=True)
    country = Column(String, nullable=True)


class Invoice(Base):
    """Client invoice."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    invoice_number = Column(String, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    total_ht = Column(MONEY, nullable=False)
    total_ttc = Column(MONEY, nullable=False)
    tax_rate = Column(Numeric(6, 3), nullable=False)
    status = Column(String, nullable=False, default="draft")
    category = Column(String, nullable=False, default="revenue")
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_number", name="uq_invoice_tenant_number"),
    )

    client = relationship("Client", back_populates="invoices")


class Expense(Base):
    """Expense paid from the bank."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    amount = Column(MONEY, nullable=False)
    description = Column(String, nullable=True)
    category = Column(String, nullable=False, default="general")
    tax_amount = Column(MONEY, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class SupplierInvoice(Base):
    """Invoice received from a supplier."""

    __tablename__ = "supplier_invoices"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    invoice_number = Column(String, nullable=True)
    supplier_name = Column(String, nullable=True)
    invoice_date = Column(Date, nullable=False)
    total_ht = Column(MONEY, nullable=False)
    vat_amount = Column(MONEY, nullable=False)
    payment_status = Column(String, nullable=False, default="pending")
    category = Column(String, nullable=False, default="purchase")
    created_at = Column(DateTime, default=_now, nullable=False)


class BankStatement(Base):
    """Imported bank statement."""

    __tablename__ = "bank_statements"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    bank_name = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    period_start = Column(Date, nullable=True)
    period_end = Column(Date, nullable=True)
    opening_balance = Column(MONEY, nullable=True)
    closing_balance = Column(MONEY, nullable=True)
    parse_status = Column(String, nullable=False, default="pending")
    line_count = Column(Integer, nullable=False, default=0)
    parse_errors = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    lines = relationship(
        "BankStatementLine", back_populates="statement", cascade="all, delete-orphan"
    )
    sessions = relationship(
        "ReconciliationSession", back_populates="statement", cascade="all, delete-orphan"
    )


class BankStatementLine(Base):
    """One transaction of a bank statement with its reconciliation state."""

    __tablename__ = "bank_statement_lines"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    statement_id = Column(Integer, ForeignKey("bank_statements.id"), nullable=False)
    line_number = Column(Integer, nullable=False)
    transaction_date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    amount = Column(MONEY, nullable=False)
    reconciliation_status = Column(String, nullable=False, default="unmatched")
    matched_source_type = Column(String, nullable=True)
    matched_source_id = Column(String, nullable=True)
    matched_by = Column(String, nullable=True)
    matched_at = Column(DateTime, nullable=True)
    match_confidence = Column(Numeric(5, 2), nullable=True)

    # Relationships
    statement = relationship("BankStatement", back_populates="lines")


class ReconciliationSession(Base):
    """Reconciliation work session with a snapshot of the summary."""

    __tablename__ = "reconciliation_sessions"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    statement_id = Column(Integer, ForeignKey("bank_statements.id"), nullable=False)
    status = Column(String, nullable=False, default="in_progress")
    total_lines = Column(Integer, nullable=False, default=0)
    matched_lines = Column(Integer, nullable=False, default=0)
    unmatched_lines = Column(Integer, nullable=False, default=0)
    ignored_lines = Column(Integer, nullable=False, default=0)
    match_rate = Column(Numeric(5, 1), nullable=False, default=0)
    total_credits = Column(MONEY, nullable=False, default=0)
    total_debits = Column(MONEY, nullable=False, default=0)
    matched_credits = Column(MONEY, nullable=False, default=0)
    matched_debits = Column(MONEY, nullable=False, default=0)
    unmatched_credits = Column(MONEY, nullable=False, default=0)
    unmatched_debits = Column(MONEY, nullable=False, default=0)
    difference = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime, default=_now, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    statement = relationship("BankStatement", back_populates="sessions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
