"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic: string columns become enums,
JSON columns become tuples, and money columns become Decimals.
"""

from decimal import Decimal
from typing import Optional

from cashbook.domain import entities as domain
from cashbook.database.models import (
    Account as ORMAccount,
    AccountingSettings as ORMAccountingSettings,
    AccountMapping as ORMAccountMapping,
    BankStatement as ORMBankStatement,
    BankStatementLine as ORMBankStatementLine,
    Client as ORMClient,
    Company as ORMCompany,
    Expense as ORMExpense,
    Invoice as ORMInvoice,
    JournalEntry as ORMJournalEntry,
    ReconciliationSession as ORMReconciliationSession,
    SupplierInvoice as ORMSupplierInvoice,
    TaxRate as ORMTaxRate,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def settings_to_domain(orm_settings: ORMAccountingSettings) -> domain.AccountingSettings:
    """Convert SQLAlchemy AccountingSettings model to domain entity."""
    return domain.AccountingSettings(
        country=orm_settings.country,
        is_initialized=orm_settings.is_initialized,
        initialized_at=orm_settings.initialized_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        code=orm_account.code,
        name=orm_account.name,
        category=domain.AccountCategory(orm_account.category),
        parent_code=orm_account.parent_code,
        created_at=orm_account.created_at,
    )


def account_mapping_to_domain(orm_mapping: ORMAccountMapping) -> domain.AccountMapping:
    """Convert SQLAlchemy AccountMapping model to domain AccountMapping entity."""
    return domain.AccountMapping(
        id=orm_mapping.id,
        source_type=orm_mapping.source_type,
        source_category=orm_mapping.source_category,
        debit_code=orm_mapping.debit_code,
        credit_code=orm_mapping.credit_code,
        description=orm_mapping.description,
    )


def tax_rate_to_domain(orm_rate: ORMTaxRate) -> domain.TaxRate:
    """Convert SQLAlchemy TaxRate model to domain TaxRate entity."""
    return domain.TaxRate(
        id=orm_rate.id,
        name=orm_rate.name,
        rate=_decimal(orm_rate.rate),
        tax_type=orm_rate.tax_type,
        account_code=orm_rate.account_code,
        is_default=orm_rate.is_default,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model to domain JournalEntry entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        date=orm_entry.date,
        debit_account=orm_entry.debit_account,
        credit_account=orm_entry.credit_account,
        amount=_decimal(orm_entry.amount),
        description=orm_entry.description,
        reference_type=domain.ReferenceType(orm_entry.reference_type),
        reference_id=orm_entry.reference_id,
        journal_code=orm_entry.journal_code,
        journal_name=orm_entry.journal_name,
        reversal_of_id=orm_entry.reversal_of_id,
        created_at=orm_entry.created_at,
    )


def client_to_domain(orm_client: ORMClient) -> domain.Client:
    """Convert SQLAlchemy Client model to domain Client entity."""
    return domain.Client(
        id=orm_client.id,
        name=orm_client.name,
        vat_number=orm_client.vat_number,
        email=orm_client.email,
        address=orm_client.address,
        created_at=orm_client.created_at,
    )


def company_to_domain(orm_company: ORMCompany) -> domain.Company:
    """Convert SQLAlchemy Company model to domain Company entity."""
    return domain.Company(
        name=orm_company.name,
        tax_id=orm_company.tax_id,
        iban=orm_company.iban,
        address=orm_company.address,
        country=orm_company.country,
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        invoice_number=orm_invoice.invoice_number,
        client_id=orm_invoice.client_id,
        client_name=orm_invoice.client.name if orm_invoice.client is not None else None,
        date=orm_invoice.date,
        due_date=orm_invoice.due_date,
        total_ht=_decimal(orm_invoice.total_ht),
        total_ttc=_decimal(orm_invoice.total_ttc),
        tax_rate=_decimal(orm_invoice.tax_rate),
        status=orm_invoice.status,
        category=orm_invoice.category,
        created_at=orm_invoice.created_at,
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        date=orm_expense.date,
        amount=_decimal(orm_expense.amount),
        description=orm_expense.description,
        category=orm_expense.category,
        tax_amount=_decimal(orm_expense.tax_amount),
        created_at=orm_expense.created_at,
    )


def supplier_invoice_to_domain(orm_invoice: ORMSupplierInvoice) -> domain.SupplierInvoice:
    """Convert SQLAlchemy SupplierInvoice model to domain SupplierInvoice entity."""
    return domain.SupplierInvoice(
        id=orm_invoice.id,
        invoice_number=orm_invoice.invoice_number,
        supplier_name=orm_invoice.supplier_name,
        invoice_date=orm_invoice.invoice_date,
        total_ht=_decimal(orm_invoice.total_ht),
        vat_amount=_decimal(orm_invoice.vat_amount),
        payment_status=orm_invoice.payment_status,
        category=orm_invoice.category,
        created_at=orm_invoice.created_at,
    )


def statement_to_domain(orm_statement: ORMBankStatement) -> domain.BankStatement:
    """Convert SQLAlchemy BankStatement model to domain BankStatement entity."""
    return domain.BankStatement(
        id=orm_statement.id,
        bank_name=orm_statement.bank_name,
        account_number=orm_statement.account_number,
        period_start=orm_statement.period_start,
        period_end=orm_statement.period_end,
        opening_balance=_decimal(orm_statement.opening_balance),
        closing_balance=_decimal(orm_statement.closing_balance),
        parse_status=domain.ParseStatus(orm_statement.parse_status),
        line_count=orm_statement.line_count,
        parse_errors=tuple(orm_statement.parse_errors or ()),
        created_at=orm_statement.created_at,
    )


def statement_line_to_domain(orm_line: ORMBankStatementLine) -> domain.BankStatementLine:
    """Convert SQLAlchemy BankStatementLine model to domain BankStatementLine entity."""
    return domain.BankStatementLine(
        id=orm_line.id,
        statement_id=orm_line.statement_id,
        line_number=orm_line.line_number,
        transaction_date=orm_line.transaction_date,
        description=orm_line.description,
        reference=orm_line.reference,
        amount=_decimal(orm_line.amount),
        reconciliation_status=domain.ReconciliationStatus(orm_line.reconciliation_status),
        matched_source_type=(
            domain.SourceType(orm_line.matched_source_type)
            if orm_line.matched_source_type
            else None
        ),
        matched_source_id=orm_line.matched_source_id,
        matched_by=domain.MatchedBy(orm_line.matched_by) if orm_line.matched_by else None,
        matched_at=orm_line.matched_at,
        match_confidence=_decimal(orm_line.match_confidence),
    )


def session_to_domain(orm_session: ORMReconciliationSession) -> domain.ReconciliationSession:
    """Convert SQLAlchemy ReconciliationSession model to domain entity."""
    summary = domain.ReconciliationSummary(
        total_lines=orm_session.total_lines,
        matched_lines=orm_session.matched_lines,
        unmatched_lines=orm_session.unmatched_lines,
        ignored_lines=orm_session.ignored_lines,
        match_rate=_decimal(orm_session.match_rate),
        total_credits=_decimal(orm_session.total_credits),
        total_debits=_decimal(orm_session.total_debits),
        matched_credits=_decimal(orm_session.matched_credits),
        matched_debits=_decimal(orm_session.matched_debits),
        unmatched_credits=_decimal(orm_session.unmatched_credits),
        unmatched_debits=_decimal(orm_session.unmatched_debits),
        difference=_decimal(orm_session.difference),
    )
    return domain.ReconciliationSession(
        id=orm_session.id,
        statement_id=orm_session.statement_id,
        status=domain.SessionStatus(orm_session.status),
        summary=summary,
        created_at=orm_session.created_at,
        completed_at=orm_session.completed_at,
    )
