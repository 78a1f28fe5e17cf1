"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from cashbook.domain.entities import (
    Account,
    AccountingSettings,
    AccountMapping,
    BankStatement,
    BankStatementLine,
    Client,
    Company,
    Expense,
    Invoice,
    JournalEntry,
    JournalEntryDraft,
    ReconciliationSession,
    ReconciliationSummary,
    SupplierInvoice,
    TaxRate,
)


class Database(ABC):
    """Abstract database interface for cashbook.

    A database instance is bound to one tenant: every read and write is
    scoped to ``tenant_id``.
    """

    tenant_id: str

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group writes into one atomic unit.

        Commits when the block exits normally and rolls back when it raises.
        Nested uses join the outermost transaction.
        """
        pass

    # Accounting settings
    @abstractmethod
    def get_settings(self) -> Optional[AccountingSettings]:
        """Get the tenant's accounting settings, if any."""
        pass

    @abstractmethod
    def save_settings(self, country: str, is_initialized: bool = True) -> None:
        """Create or update the tenant's accounting settings."""
        pass

    # Chart of accounts
    @abstractmethod
    def create_account(
        self, code: str, name: str, category: str, parent_code: Optional[str] = None
    ) -> int:
        """Create a ledger account. Returns account ID."""
        pass

    @abstractmethod
    def update_account(
        self, code: str, name: str, category: str, parent_code: Optional[str] = None
    ) -> None:
        """Update name, category and parent of an existing account."""
        pass

    @abstractmethod
    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get account by code."""
        pass

    @abstractmethod
    def list_accounts(self, category: Optional[str] = None) -> list[Account]:
        """List accounts sorted by code, optionally filtered by category."""
        pass

    @abstractmethod
    def account_has_entries(self, code: str) -> bool:
        """Check whether any journal entry references the account."""
        pass

    @abstractmethod
    def create_account_mapping(
        self,
        source_type: str,
        source_category: str,
        debit_code: str,
        credit_code: str,
        description: Optional[str] = None,
    ) -> int:
        """Create an account mapping. Returns mapping ID."""
        pass

    @abstractmethod
    def list_account_mappings(self, source_type: Optional[str] = None) -> list[AccountMapping]:
        """List account mappings, optionally filtered by source type."""
        pass

    @abstractmethod
    def create_tax_rate(
        self, name: str, rate: Decimal, tax_type: str, account_code: str, is_default: bool = False
    ) -> int:
        """Create a tax rate. Returns tax rate ID."""
        pass

    @abstractmethod
    def list_tax_rates(self, tax_type: Optional[str] = None) -> list[TaxRate]:
        """List tax rates, optionally filtered by type (output/input)."""
        pass

    # Journal
    @abstractmethod
    def create_journal_entry(self, draft: JournalEntryDraft) -> JournalEntry:
        """Persist a journal entry and return it with its ID."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_code: Optional[str] = None,
        reference_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[JournalEntry]:
        """List journal entries in date, then ID order.

        Args:
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            account_code: Only entries debiting or crediting this account
            reference_id: Only entries for this source reference
            limit: Optional maximum number of entries
        """
        pass

    @abstractmethod
    def list_unreversed_entries(self, reference_id: str) -> list[JournalEntry]:
        """List non-reversal entries for a reference that have not been reversed."""
        pass

    @abstractmethod
    def get_account_totals(self, as_of: Optional[date] = None) -> list[dict[str, Any]]:
        """Sum debits and credits per account.

        Returns a list of dictionaries with account_code, total_debit and
        total_credit, for every account that appears in an entry dated on or
        before ``as_of``.
        """
        pass

    # Clients and company
    @abstractmethod
    def create_client(
        self,
        name: str,
        vat_number: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
    ) -> int:
        """Create a client. Returns client ID."""
        pass

    @abstractmethod
    def get_client(self, client_id: int) -> Optional[Client]:
        """Get client by ID."""
        pass

    @abstractmethod
    def list_clients(self) -> list[Client]:
        """List clients sorted by name."""
        pass

    @abstractmethod
    def get_company(self) -> Optional[Company]:
        """Get the tenant's company profile."""
        pass

    @abstractmethod
    def save_company(
        self,
        name: str,
        tax_id: Optional[str] = None,
        iban: Optional[str] = None,
        address: Optional[str] = None,
        country: Optional[str] = None,
    ) -> None:
        """Create or replace the tenant's company profile."""
        pass

    # Invoices
    @abstractmethod
    def create_invoice(
        self,
        invoice_number: str,
        client_id: Optional[int],
        date: date,
        total_ht: Decimal,
        total_ttc: Decimal,
        tax_rate: Decimal,
        status: str = "draft",
        category: str = "revenue",
        due_date: Optional[date] = None,
    ) -> int:
        """Create an invoice. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def get_invoice_by_number(self, invoice_number: str) -> Optional[Invoice]:
        """Get invoice by its number."""
        pass

    @abstractmethod
    def list_invoices(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Invoice]:
        """List invoices sorted by date."""
        pass

    @abstractmethod
    def update_invoice_status(self, invoice_id: int, status: str) -> None:
        """Update invoice status."""
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: int) -> None:
        """Delete an invoice."""
        pass

    # Expenses
    @abstractmethod
    def create_expense(
        self,
        date: date,
        amount: Decimal,
        description: Optional[str] = None,
        category: str = "general",
        tax_amount: Optional[Decimal] = None,
    ) -> int:
        """Create an expense. Returns expense ID."""
        pass

    @abstractmethod
    def get_expense(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID."""
        pass

    @abstractmethod
    def list_expenses(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[Expense]:
        """List expenses sorted by date."""
        pass

    @abstractmethod
    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense."""
        pass

    # Supplier invoices
    @abstractmethod
    def create_supplier_invoice(
        self,
        invoice_date: date,
        total_ht: Decimal,
        vat_amount: Decimal,
        invoice_number: Optional[str] = None,
        supplier_name: Optional[str] = None,
        category: str = "purchase",
        payment_status: str = "pending",
    ) -> int:
        """Create a supplier invoice. Returns supplier invoice ID."""
        pass

    @abstractmethod
    def get_supplier_invoice(self, supplier_invoice_id: int) -> Optional[SupplierInvoice]:
        """Get supplier invoice by ID."""
        pass

    @abstractmethod
    def list_supplier_invoices(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        payment_status: Optional[str] = None,
    ) -> list[SupplierInvoice]:
        """List supplier invoices sorted by invoice date."""
        pass

    @abstractmethod
    def update_supplier_invoice_status(self, supplier_invoice_id: int, payment_status: str) -> None:
        """Update supplier invoice payment status."""
        pass

    @abstractmethod
    def delete_supplier_invoice(self, supplier_invoice_id: int) -> None:
        """Delete a supplier invoice."""
        pass

    # Bank statements
    @abstractmethod
    def create_statement(
        self,
        bank_name: Optional[str] = None,
        account_number: Optional[str] = None,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        opening_balance: Optional[Decimal] = None,
        closing_balance: Optional[Decimal] = None,
    ) -> int:
        """Create a bank statement in pending status. Returns statement ID."""
        pass

    @abstractmethod
    def update_statement_status(
        self, statement_id: int, parse_status: str, line_count: int, parse_errors: list[str]
    ) -> None:
        """Record the outcome of parsing a statement."""
        pass

    @abstractmethod
    def get_statement(self, statement_id: int) -> Optional[BankStatement]:
        """Get bank statement by ID."""
        pass

    @abstractmethod
    def list_statements(self) -> list[BankStatement]:
        """List bank statements, newest first."""
        pass

    @abstractmethod
    def delete_statement(self, statement_id: int) -> None:
        """Delete a statement with its lines and sessions."""
        pass

    @abstractmethod
    def create_statement_line(
        self,
        statement_id: int,
        line_number: int,
        transaction_date: date,
        description: str,
        amount: Decimal,
        reference: Optional[str] = None,
    ) -> int:
        """Create an unmatched statement line. Returns line ID."""
        pass

    @abstractmethod
    def get_statement_line(self, line_id: int) -> Optional[BankStatementLine]:
        """Get statement line by ID."""
        pass

    @abstractmethod
    def list_statement_lines(
        self, statement_id: int, status: Optional[str] = None
    ) -> list[BankStatementLine]:
        """List statement lines in line-number order, optionally filtered by status."""
        pass

    @abstractmethod
    def update_statement_line_match(
        self,
        line_id: int,
        status: str,
        source_type: Optional[str] = None,
        source_id: Optional[str] = None,
        matched_by: Optional[str] = None,
        matched_at: Optional[datetime] = None,
        confidence: Optional[Decimal] = None,
    ) -> None:
        """Set a line's reconciliation status and match fields."""
        pass

    # Reconciliation sessions
    @abstractmethod
    def create_reconciliation_session(
        self, statement_id: int, summary: ReconciliationSummary
    ) -> int:
        """Create an in-progress session. Returns session ID."""
        pass

    @abstractmethod
    def get_reconciliation_session(self, session_id: int) -> Optional[ReconciliationSession]:
        """Get reconciliation session by ID."""
        pass

    @abstractmethod
    def complete_reconciliation_session(
        self, session_id: int, summary: ReconciliationSummary, completed_at: datetime
    ) -> None:
        """Store the final summary and mark the session completed."""
        pass
