"""Source-record domain service.

Invoices, expenses and supplier invoices are created and deleted together
with their journal entries: the record and its ledger effect are written in
one transaction, and deleting a record reverses its entries before the row
goes away.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from cashbook.database.base import Database
from cashbook.domain.chart import ChartService
from cashbook.domain.entities import Client, Company, Expense, Invoice, SupplierInvoice
from cashbook.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    invoice_not_found,
)
from cashbook.domain.events import (
    ExpenseRecorded,
    InvoiceIssued,
    PaymentReceived,
    SupplierInvoicePaid,
    SupplierInvoiceRecorded,
)
from cashbook.domain.ledger import LedgerService, quantize_amount

logger = logging.getLogger(__name__)

INVOICE_STATUSES = ("draft", "sent", "paid", "overdue", "cancelled")


def invoice_reference(invoice: Invoice) -> str:
    """Ledger reference of a client invoice."""
    return invoice.invoice_number


def expense_reference(expense_id: int) -> str:
    """Ledger reference of an expense."""
    return f"EXP-{expense_id}"


def supplier_invoice_reference(supplier_invoice_id: int) -> str:
    """Ledger reference of a supplier invoice."""
    return f"SINV-{supplier_invoice_id}"


class DocumentService:
    """Service for clients, invoices, expenses and supplier invoices."""

    def __init__(self, db: Database, ledger: Optional[LedgerService] = None):
        """Initialize document service.

        Args:
            db: Database instance
            ledger: Ledger service the records are booked through
        """
        self.db = db
        self.ledger = ledger or LedgerService(db)
        self.chart: ChartService = self.ledger.chart

    # Clients and company
    def create_client(
        self,
        name: str,
        vat_number: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Client:
        if not name or not name.strip():
            raise ValidationError("Client name must not be empty")
        client_id = self.db.create_client(name.strip(), vat_number, email, address)
        return self.db.get_client(client_id)

    def list_clients(self) -> list[Client]:
        return self.db.list_clients()

    def set_company(
        self,
        name: str,
        tax_id: Optional[str] = None,
        iban: Optional[str] = None,
        address: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Company:
        """Create or replace the company profile used as invoice seller."""
        if not name or not name.strip():
            raise ValidationError("Company name must not be empty")
        self.db.save_company(name.strip(), tax_id, iban, address, country)
        return self.db.get_company()

    def get_company(self) -> Optional[Company]:
        return self.db.get_company()

    # Invoices
    def create_invoice(
        self,
        invoice_number: str,
        invoice_date: date,
        total_ht: Decimal,
        tax_rate: Optional[Decimal] = None,
        client_id: Optional[int] = None,
        due_date: Optional[date] = None,
        category: str = "revenue",
        status: str = "sent",
    ) -> Invoice:
        """Create a client invoice and book it.

        Draft invoices are stored without journal entries; they are booked
        when issued.

        Args:
            invoice_number: Unique invoice number, also the ledger reference
            invoice_date: Invoice date
            total_ht: Amount excluding tax
            tax_rate: VAT rate in percent (defaults to the tenant's rate)
            client_id: Optional client ID
            due_date: Optional payment due date
            category: Revenue category (revenue, service, product)
            status: Initial status (draft or sent)

        Returns:
            The created invoice

        Raises:
            ValidationError: If the number, amount or status is invalid
            NotFoundError: If the client doesn't exist
            ConflictError: If the invoice number is already used
            MissingAccountMapping: If the chart cannot book the invoice
        """
        if not invoice_number or not invoice_number.strip():
            raise ValidationError("Invoice number must not be empty")
        if status not in ("draft", "sent"):
            raise ValidationError("New invoices must be 'draft' or 'sent'")
        if client_id is not None and self.db.get_client(client_id) is None:
            raise NotFoundError(f"Client {client_id} not found")

        total_ht = quantize_amount(total_ht)
        if total_ht <= 0:
            raise ValidationError("Invoice amount must be positive")
        if tax_rate is None:
            tax_rate = self.chart.get_default_vat_rate()
        tax_rate = Decimal(str(tax_rate))
        if tax_rate < 0:
            raise ValidationError("Tax rate must not be negative")
        total_ttc = quantize_amount(total_ht * (Decimal("100") + tax_rate) / Decimal("100"))

        with self.db.transaction():
            invoice_id = self.db.create_invoice(
                invoice_number=invoice_number.strip(),
                client_id=client_id,
                date=invoice_date,
                total_ht=total_ht,
                total_ttc=total_ttc,
                tax_rate=tax_rate,
                status=status,
                category=category,
                due_date=due_date,
            )
            invoice = self.db.get_invoice(invoice_id)
            if status != "draft":
                self._book_invoice(invoice)
        return invoice

    def issue_invoice(self, invoice_id: int) -> Invoice:
        """Move a draft invoice to 'sent' and book it."""
        invoice = self._get_invoice(invoice_id)
        if invoice.status != "draft":
            raise ConflictError(f"Invoice {invoice.invoice_number} is not a draft")
        with self.db.transaction():
            self.db.update_invoice_status(invoice_id, "sent")
            self._book_invoice(invoice)
        return self.db.get_invoice(invoice_id)

    def pay_invoice(
        self, invoice_id: int, payment_date: Optional[date] = None, method: str = "bank_transfer"
    ) -> Invoice:
        """Record full payment of an invoice."""
        invoice = self._get_invoice(invoice_id)
        if invoice.status in ("draft", "cancelled", "paid"):
            raise ConflictError(
                f"Invoice {invoice.invoice_number} cannot be paid from status '{invoice.status}'"
            )
        with self.db.transaction():
            self.ledger.record_event(
                PaymentReceived(
                    reference_id=invoice_reference(invoice),
                    date=payment_date or date.today(),
                    amount=invoice.total_ttc,
                    method=method,
                )
            )
            self.db.update_invoice_status(invoice_id, "paid")
        return self.db.get_invoice(invoice_id)

    def cancel_invoice(self, invoice_id: int) -> Invoice:
        """Cancel an invoice, reversing everything booked for it."""
        invoice = self._get_invoice(invoice_id)
        if invoice.status == "cancelled":
            return invoice
        with self.db.transaction():
            self.ledger.reverse_event(invoice_reference(invoice))
            self.db.update_invoice_status(invoice_id, "cancelled")
        return self.db.get_invoice(invoice_id)

    def delete_invoice(self, invoice_id: int) -> None:
        """Delete an invoice after reversing its entries."""
        invoice = self._get_invoice(invoice_id)
        with self.db.transaction():
            self.ledger.reverse_event(invoice_reference(invoice))
            self.db.delete_invoice(invoice_id)
        logger.info("invoice deleted tenant=%s number=%s", self.db.tenant_id, invoice.invoice_number)

    def list_invoices(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Invoice]:
        return self.db.list_invoices(start_date=start_date, end_date=end_date, status=status)

    def find_invoice(self, invoice_ref: str) -> Invoice:
        """Look up an invoice by its number, falling back to its numeric ID.

        Raises:
            NotFoundError: If neither the number nor the ID exists
        """
        invoice_ref = str(invoice_ref).strip()
        invoice = self.db.get_invoice_by_number(invoice_ref)
        if invoice is None and invoice_ref.isdigit():
            invoice = self.db.get_invoice(int(invoice_ref))
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_ref))
        return invoice

    def _get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def _book_invoice(self, invoice: Invoice) -> None:
        self.ledger.record_event(
            InvoiceIssued(
                reference_id=invoice_reference(invoice),
                date=invoice.date,
                total_ht=invoice.total_ht,
                total_ttc=invoice.total_ttc,
                category=invoice.category,
                description=(
                    f"Facture {invoice.invoice_number} - {invoice.client_name}"
                    if invoice.client_name
                    else None
                ),
            )
        )

    # Expenses
    def add_expense(
        self,
        expense_date: date,
        amount: Decimal,
        description: Optional[str] = None,
        category: str = "general",
        tax_amount: Optional[Decimal] = None,
    ) -> Expense:
        """Record an expense paid from the bank and book it.

        Raises:
            ValidationError: If the amount is not positive
            MissingAccountMapping: If the chart cannot book the expense
        """
        amount = quantize_amount(amount)
        if amount <= 0:
            raise ValidationError("Expense amount must be positive")
        if tax_amount is not None:
            tax_amount = quantize_amount(tax_amount)

        with self.db.transaction():
            expense_id = self.db.create_expense(
                date=expense_date,
                amount=amount,
                description=description,
                category=category,
                tax_amount=tax_amount,
            )
            self.ledger.record_event(
                ExpenseRecorded(
                    reference_id=expense_reference(expense_id),
                    date=expense_date,
                    amount=amount,
                    category=category,
                    tax_amount=tax_amount,
                    description=description,
                )
            )
        return self.db.get_expense(expense_id)

    def delete_expense(self, expense_id: int) -> None:
        if self.db.get_expense(expense_id) is None:
            raise NotFoundError(f"Expense {expense_id} not found")
        with self.db.transaction():
            self.ledger.reverse_event(expense_reference(expense_id))
            self.db.delete_expense(expense_id)

    def list_expenses(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[Expense]:
        return self.db.list_expenses(start_date=start_date, end_date=end_date)

    # Supplier invoices
    def add_supplier_invoice(
        self,
        invoice_date: date,
        total_ht: Decimal,
        vat_amount: Decimal = Decimal("0"),
        invoice_number: Optional[str] = None,
        supplier_name: Optional[str] = None,
        category: str = "purchase",
    ) -> SupplierInvoice:
        """Record a supplier invoice as payable and book it."""
        total_ht = quantize_amount(total_ht)
        vat_amount = quantize_amount(vat_amount)
        if total_ht <= 0 or vat_amount < 0:
            raise ValidationError("Supplier invoice amount must be positive")

        with self.db.transaction():
            supplier_invoice_id = self.db.create_supplier_invoice(
                invoice_date=invoice_date,
                total_ht=total_ht,
                vat_amount=vat_amount,
                invoice_number=invoice_number,
                supplier_name=supplier_name,
                category=category,
            )
            label = supplier_name or invoice_number
            self.ledger.record_event(
                SupplierInvoiceRecorded(
                    reference_id=supplier_invoice_reference(supplier_invoice_id),
                    date=invoice_date,
                    total_ht=total_ht,
                    vat_amount=vat_amount,
                    category=category,
                    description=f"Facture fournisseur {label}" if label else None,
                )
            )
        return self.db.get_supplier_invoice(supplier_invoice_id)

    def pay_supplier_invoice(
        self, supplier_invoice_id: int, payment_date: Optional[date] = None
    ) -> SupplierInvoice:
        invoice = self._get_supplier_invoice(supplier_invoice_id)
        if invoice.payment_status == "paid":
            raise ConflictError(f"Supplier invoice {supplier_invoice_id} is already paid")
        with self.db.transaction():
            self.ledger.record_event(
                SupplierInvoicePaid(
                    reference_id=supplier_invoice_reference(supplier_invoice_id),
                    date=payment_date or date.today(),
                    amount=invoice.total_ht + invoice.vat_amount,
                )
            )
            self.db.update_supplier_invoice_status(supplier_invoice_id, "paid")
        return self.db.get_supplier_invoice(supplier_invoice_id)

    def delete_supplier_invoice(self, supplier_invoice_id: int) -> None:
        self._get_supplier_invoice(supplier_invoice_id)
        with self.db.transaction():
            self.ledger.reverse_event(supplier_invoice_reference(supplier_invoice_id))
            self.db.delete_supplier_invoice(supplier_invoice_id)

    def list_supplier_invoices(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        payment_status: Optional[str] = None,
    ) -> list[SupplierInvoice]:
        return self.db.list_supplier_invoices(
            start_date=start_date, end_date=end_date, payment_status=payment_status
        )

    def _get_supplier_invoice(self, supplier_invoice_id: int) -> SupplierInvoice:
        invoice = self.db.get_supplier_invoice(supplier_invoice_id)
        if invoice is None:
            raise NotFoundError(f"Supplier invoice {supplier_invoice_id} not found")
        return invoice
