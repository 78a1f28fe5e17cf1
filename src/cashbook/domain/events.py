"""Business events accepted by the ledger writer.

Each event type is its own frozen dataclass declaring the fields it needs.
``LedgerService.record_event`` dispatches on the concrete class; the
``type`` tag is kept for logging and serialization.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class InvoiceIssued:
    """Client invoice: receivable against revenue and output VAT."""

    type: ClassVar[str] = "invoice_issued"

    reference_id: str
    date: date
    total_ht: Decimal
    total_ttc: Decimal
    category: str = "revenue"
    description: Optional[str] = None


@dataclass(frozen=True)
class PaymentReceived:
    """Client payment clearing a receivable."""

    type: ClassVar[str] = "payment_received"

    reference_id: str
    date: date
    amount: Decimal
    method: str = "bank_transfer"
    description: Optional[str] = None


@dataclass(frozen=True)
class CreditNoteIssued:
    """Credit note cancelling part or all of a client invoice."""

    type: ClassVar[str] = "credit_note_issued"

    reference_id: str
    date: date
    total_ht: Decimal
    total_ttc: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class ExpenseRecorded:
    """Expense paid from the bank.

    ``tax_amount`` is optional: expenses usually have no verified tax
    breakdown, in which case the whole amount goes to the expense account.
    """

    type: ClassVar[str] = "expense_recorded"

    reference_id: str
    date: date
    amount: Decimal
    category: str = "general"
    tax_amount: Optional[Decimal] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class SupplierInvoiceRecorded:
    type: ClassVar[str] = "supplier_invoice_recorded"

    reference_id: str
    date: date
    total_ht: Decimal
    vat_amount: Decimal
    category: str = "purchase"
    description: Optional[str] = None


@dataclass(frozen=True)
class SupplierInvoicePaid:
    type: ClassVar[str] = "supplier_invoice_paid"

    reference_id: str
    date: date
    amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class OpeningBalance:
    """Opening balance of one account against equity.

    A positive amount is a debit balance on ``account_code``; a negative
    amount is a credit balance.
    """

    type: ClassVar[str] = "opening_balance"

    reference_id: str
    date: date
    account_code: str
    amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class AssetPurchased:
    type: ClassVar[str] = "asset_purchased"

    reference_id: str
    date: date
    amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class LoanReceived:
    type: ClassVar[str] = "loan_received"

    reference_id: str
    date: date
    amount: Decimal
    description: Optional[str] = None


BusinessEvent = Union[
    InvoiceIssued,
    PaymentReceived,
    CreditNoteIssued,
    ExpenseRecorded,
    SupplierInvoiceRecorded,
    SupplierInvoicePaid,
    OpeningBalance,
    AssetPurchased,
    LoanReceived,
]
